"""
bikeyard/utils/logging.py
─────────────────────────
Configures structured logging for production.
"""
import os
import logging
from logging.handlers import RotatingFileHandler
from flask import g, has_request_context, request


class RequestFormatter(logging.Formatter):
    """
    Formatter that injects request info (IP, URL, caller uid) into log
    records when a request context is available.
    """
    def format(self, record):
        if has_request_context():
            record.url = request.url
            record.remote_addr = request.remote_addr
            user = g.get('current_user')
            record.uid = user.uid if user else '-'
        else:
            record.url = None
            record.remote_addr = None
            record.uid = '-'
        return super().format(record)


def setup_logging(app):
    """
    Configure rotating file logging: logs/app.log
    Max size: 5MB
    Backup count: 5 files
    Format: timestamp | level | module | remote addr | uid | url | message
    """
    # 1. File Logger (skipped when the filesystem is read-only)
    if not app.testing:
        try:
            log_dir = app.config.get('LOG_DIR') or os.path.join(app.root_path, '..', 'logs')
            os.makedirs(log_dir, exist_ok=True)

            file_handler = RotatingFileHandler(
                os.path.join(log_dir, 'app.log'),
                maxBytes=5 * 1024 * 1024,
                backupCount=5
            )
            file_handler.setFormatter(RequestFormatter(
                '%(asctime)s | %(levelname)s | %(name)s | %(remote_addr)s | %(uid)s | %(url)s | %(message)s'
            ))
            file_handler.setLevel(logging.INFO)
            app.logger.addHandler(file_handler)
        except OSError:
            app.logger.warning("File logging disabled: log directory is not writable")

    # 2. Stdout Logger (app.logger is shared by every app built in-process)
    if not any(h.get_name() == 'bikeyard-stdout' for h in app.logger.handlers):
        stream_handler = logging.StreamHandler()
        stream_handler.set_name('bikeyard-stdout')
        stream_handler.setFormatter(logging.Formatter(
            '%(asctime)s | %(levelname)s | %(message)s'
        ))
        stream_handler.setLevel(logging.INFO)
        app.logger.addHandler(stream_handler)

    app.logger.setLevel(logging.INFO)
    app.logger.info("Bikeyard API startup")


def log_request(response):
    """after_request hook: one access line per request."""
    from flask import current_app
    current_app.logger.info(
        f"{request.method} {request.full_path.rstrip('?')} -> {response.status_code}"
    )
    return response
