"""
bikeyard/services/blobs.py
--------------------------
Blob-store adapter. A bucket is a directory under STORAGE_ROOT; each object
has a JSON sidecar under `.meta/` holding content type, custom metadata and
the public-read flag.
"""
import json
import os
from datetime import datetime, timezone


class BlobStoreError(Exception):
    """Base class for blob-store failures."""


class BucketNotFound(BlobStoreError):
    pass


class ObjectNotFound(BlobStoreError):
    pass


class BlobStore:

    META_DIR = '.meta'

    def __init__(self, root: str, bucket_name: str, public_base_url: str):
        self.root = root
        self.bucket_name = bucket_name
        self.public_base_url = public_base_url.rstrip('/')

    @property
    def bucket_path(self) -> str:
        return os.path.join(self.root, self.bucket_name)

    def _require_bucket(self):
        if not os.path.isdir(self.bucket_path):
            raise BucketNotFound(f'The bucket {self.bucket_name} does not exist')

    def _object_path(self, key: str) -> str:
        path = os.path.normpath(os.path.join(self.bucket_path, key))
        if not path.startswith(os.path.normpath(self.bucket_path) + os.sep):
            raise ObjectNotFound(key)
        return path

    def _meta_path(self, key: str) -> str:
        return os.path.join(self.bucket_path, self.META_DIR, key + '.json')

    def _read_meta(self, key: str) -> dict:
        try:
            with open(self._meta_path(key), encoding='utf-8') as fh:
                return json.load(fh)
        except FileNotFoundError:
            raise ObjectNotFound(key) from None

    def _write_meta(self, key: str, meta: dict) -> None:
        path = self._meta_path(key)
        os.makedirs(os.path.dirname(path), exist_ok=True)
        with open(path, 'w', encoding='utf-8') as fh:
            json.dump(meta, fh)

    # ── Bucket ────────────────────────────────────────────────────

    def create_bucket(self) -> bool:
        """Create the bucket directory. Returns False if it already existed."""
        if os.path.isdir(self.bucket_path):
            return False
        os.makedirs(self.bucket_path)
        return True

    def bucket_metadata(self) -> dict:
        self._require_bucket()
        created = datetime.fromtimestamp(os.stat(self.bucket_path).st_ctime, timezone.utc)
        return {
            'name': self.bucket_name,
            'location': os.path.abspath(self.bucket_path),
            'timeCreated': created.isoformat(),
            'storageClass': 'STANDARD',
        }

    # ── Objects ───────────────────────────────────────────────────

    def upload(self, key: str, data: bytes, content_type: str, metadata: dict = None) -> dict:
        self._require_bucket()
        path = self._object_path(key)
        os.makedirs(os.path.dirname(path), exist_ok=True)
        with open(path, 'wb') as fh:
            fh.write(data)
        meta = {
            'contentType': content_type,
            'size': len(data),
            'public': False,
            'metadata': dict(metadata or {}),
        }
        self._write_meta(key, meta)
        return meta

    def make_public(self, key: str) -> None:
        meta = self._read_meta(key)
        meta['public'] = True
        self._write_meta(key, meta)

    def public_url(self, key: str) -> str:
        return f'{self.public_base_url}/{self.bucket_name}/{key}'

    def open_public(self, key: str):
        """Return (path, content_type) for a publicly readable object."""
        self._require_bucket()
        path = self._object_path(key)
        meta = self._read_meta(key)
        if not meta.get('public') or not os.path.isfile(path):
            raise ObjectNotFound(key)
        return path, meta.get('contentType')
