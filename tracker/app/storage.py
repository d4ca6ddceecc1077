# tracker/app/storage.py
"""
Blob storage for uploaded assets.

Objects live under ``<ASSET_STORAGE_DIR>/<bucket>/<key>`` and are referenced in
the database by an ``s3://<bucket>/<key>`` URI. Time-limited download links are
signed JWTs checked by the ``/api/assets/files/{key}`` route.
"""
import logging
from datetime import datetime, timedelta, timezone
from pathlib import Path
from urllib.parse import quote

from jose import JWTError, jwt

from .config import settings

logger = logging.getLogger(__name__)

URI_SCHEME = "s3://"


class BlobStore:
    def __init__(self, root, bucket: str, base_url: str, secret: str, algorithm: str = "HS256"):
        self.root = Path(root)
        self.bucket = bucket
        self.base_url = base_url.rstrip("/")
        self.secret = secret
        self.algorithm = algorithm

    def path_for(self, key: str) -> Path:
        bucket_dir = (self.root / self.bucket).resolve()
        path = (bucket_dir / key).resolve()
        if bucket_dir not in path.parents:
            raise ValueError(f"invalid storage key: {key!r}")
        return path

    def put(self, key: str, data: bytes):
        path = self.path_for(key)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(data)

    def delete(self, key: str):
        self.path_for(key).unlink()

    def exists(self, key: str) -> bool:
        return self.path_for(key).is_file()

    def to_uri(self, key: str) -> str:
        return f"{URI_SCHEME}{self.bucket}/{key}"

    def from_uri(self, uri: str) -> str:
        prefix = f"{URI_SCHEME}{self.bucket}/"
        if not uri or not uri.startswith(prefix):
            raise ValueError(f"not a {self.bucket} storage uri: {uri!r}")
        return uri[len(prefix):]

    # ---------------------------
    # Signed download links
    # ---------------------------
    def create_presigned_get_url(self, key: str, expires_in: int) -> str:
        payload = {
            "bucket": self.bucket,
            "key": key,
            "exp": datetime.now(timezone.utc) + timedelta(seconds=expires_in),
        }
        token = jwt.encode(payload, self.secret, algorithm=self.algorithm)
        return f"{self.base_url}/api/assets/files/{quote(key)}?token={token}"

    def verify_download_token(self, key: str, token: str) -> bool:
        try:
            payload = jwt.decode(token, self.secret, algorithms=[self.algorithm])
        except JWTError:
            return False
        return payload.get("bucket") == self.bucket and payload.get("key") == key


_store = None

def get_blob_store() -> BlobStore:
    global _store
    if _store is None:
        _store = BlobStore(settings.ASSET_STORAGE_DIR, settings.ASSET_BUCKET,
                           settings.PUBLIC_BASE_URL, settings.ASSET_SIGNING_SECRET, settings.AUTH_ALGORITHM)
    return _store
