import re
import time
from datetime import datetime, timezone

from flask import abort, current_app, g, request, send_file

from bikeyard.uploads import uploads, files
from bikeyard.auth.decorators import login_required
from bikeyard.services import get_services
from bikeyard.services.blobs import BucketNotFound, ObjectNotFound
from bikeyard.utils.errors import BadRequest, NotFound
from bikeyard.utils.responses import ok, handle_errors

UPLOAD_TYPES = ('bike', 'aadhar')
UNSAFE_FILENAME_CHARS = re.compile(r'[^a-zA-Z0-9.-]')


def storage_key(upload_type: str, original_name: str, timestamp_ms: int = None) -> str:
    """`bikes/1718000000000_front_view.jpg` style object key."""
    if timestamp_ms is None:
        timestamp_ms = int(time.time() * 1000)
    safe_name = UNSAFE_FILENAME_CHARS.sub('_', original_name or 'upload')
    return f'{upload_type}s/{timestamp_ms}_{safe_name}'


@uploads.route('/storage/test', methods=['GET'])
@login_required
@handle_errors('Storage configuration error')
def storage_test():
    """Probe the configured bucket."""
    try:
        meta = get_services().blobs.bucket_metadata()
    except BucketNotFound:
        raise NotFound(
            'Storage bucket not found',
            details='Create it with `flask init-storage`',
        ) from None

    return ok({
        'bucketName':   meta['name'],
        'location':     meta['location'],
        'created':      meta['timeCreated'],
        'storageClass': meta['storageClass'],
    }, message='Storage is configured correctly')


@uploads.route('/upload', methods=['POST'])
@login_required
@handle_errors('Failed to upload file')
def upload():
    """Store one image (bike photo or Aadhar scan) and return its public URL."""
    file = request.files.get('file')
    upload_type = request.form.get('type')

    if file is None or not file.filename:
        raise BadRequest('No file uploaded')
    if upload_type not in UPLOAD_TYPES:
        raise BadRequest('Invalid upload type. Must be "bike" or "aadhar"')

    max_size = current_app.config['MAX_UPLOAD_SIZE']
    data = file.read(max_size + 1)
    if len(data) > max_size:
        raise BadRequest(f'File too large. Maximum size is {max_size // (1024 * 1024)}MB')
    if not (file.mimetype or '').startswith('image/'):
        raise BadRequest('Only image files are allowed')

    blobs = get_services().blobs
    key = storage_key(upload_type, file.filename)
    blobs.upload(key, data, content_type=file.mimetype, metadata={
        'uploadedBy':   g.current_user.uid,
        'uploadedAt':   datetime.now(timezone.utc).isoformat(),
        'originalName': file.filename,
    })
    blobs.make_public(key)

    current_app.logger.info(f"Upload stored: {key} ({len(data)} bytes) by {g.current_user.email}")
    return ok({
        'downloadURL': blobs.public_url(key),
        'fileName':    key,
        'fileSize':    len(data),
        'contentType': file.mimetype,
    }, message='File uploaded successfully')


@files.route('/<bucket>/<path:key>', methods=['GET'])
def public_file(bucket, key):
    blobs = get_services().blobs
    if bucket != blobs.bucket_name:
        abort(404)
    try:
        path, content_type = blobs.open_public(key)
    except (BucketNotFound, ObjectNotFound):
        abort(404)
    return send_file(path, mimetype=content_type)
