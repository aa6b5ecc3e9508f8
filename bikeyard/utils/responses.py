"""
bikeyard/utils/responses.py
---------------------------
The `{success, data?, message?, error?}` envelope every endpoint returns.
"""
from functools import wraps

from flask import current_app, jsonify
from werkzeug.exceptions import HTTPException

from bikeyard.utils.errors import ApiError
from bikeyard.services.blobs import BlobStoreError
from bikeyard.services.documents import StoreError


def ok(data=None, message=None, status=200):
    body = {'success': True}
    if data is not None:
        body['data'] = data
    if message:
        body['message'] = message
    return jsonify(body), status


def fail(error, status=500, data=None, message=None):
    body = {'success': False, 'error': error}
    if data is not None:
        body['data'] = data
    if message:
        body['message'] = message
    return jsonify(body), status


def handle_errors(failure_message):
    """
    Route decorator: known errors (including werkzeug HTTP errors such as
    413 from an oversized body) propagate to the app-level handlers,
    anything else is logged and answered with a 500 carrying
    `failure_message`.
    """
    def decorator(f):
        @wraps(f)
        def decorated(*args, **kwargs):
            try:
                return f(*args, **kwargs)
            except (ApiError, HTTPException, StoreError, BlobStoreError):
                raise
            except Exception:
                current_app.logger.exception(failure_message)
                return fail(failure_message, 500)
        return decorated
    return decorator
