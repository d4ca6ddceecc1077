# tracker/app/assets.py
import logging
import time
from pathlib import PurePath
from typing import Optional

from fastapi import HTTPException
from sqlalchemy.orm import Session

from .config import settings
from .models import Asset
from .storage import BlobStore
from .utils import serialize_asset

logger = logging.getLogger(__name__)


def make_storage_key(filename: str, now_ms: Optional[int] = None) -> str:
    # same-name uploads in the same millisecond share a key
    if now_ms is None:
        now_ms = int(time.time() * 1000)
    return f"{now_ms}-{PurePath(filename).name}"


class AssetManager:
    def __init__(self, db: Session, store: BlobStore, url_ttl: int = settings.SIGNED_URL_TTL):
        self.db = db
        self.store = store
        self.url_ttl = url_ttl

    def upload(self, filename: str, data: bytes, mime_type: Optional[str]) -> Asset:
        key = make_storage_key(filename)
        self.store.put(key, data)

        asset = Asset(filename=filename, url=self.store.to_uri(key),
                      size=len(data), mime_type=mime_type)
        self.db.add(asset)
        try:
            self.db.commit()
        except Exception:
            self.db.rollback()
            try:
                self.store.delete(key)
            except Exception:
                logger.exception("could not remove blob %s after failed metadata write", key)
            raise
        self.db.refresh(asset)
        logger.info("uploaded asset %s (%s bytes) as %s", asset.id, asset.size, key)
        return asset

    def signed_url(self, asset: Asset) -> Optional[str]:
        try:
            key = self.store.from_uri(asset.url)
            return self.store.create_presigned_get_url(key, self.url_ttl)
        except Exception as e:
            logger.warning("could not sign download url for asset %s: %s", asset.id, e)
            return None

    def list(self):
        assets = (self.db.query(Asset)
                  .order_by(Asset.uploaded_at.desc(), Asset.id.desc())
                  .all())
        out = []
        for a in assets:
            item = serialize_asset(a)
            item["downloadUrl"] = self.signed_url(a)
            out.append(item)
        return out

    def delete(self, asset_id: int):
        asset = self.db.query(Asset).filter(Asset.id == asset_id).first()
        if not asset:
            raise HTTPException(status_code=404, detail="Not found")

        # best-effort: the record goes even if the blob does not
        try:
            self.store.delete(self.store.from_uri(asset.url))
        except Exception:
            logger.exception("failed to delete asset %s from storage", asset.id)

        self.db.delete(asset)
        self.db.commit()
        logger.info("deleted asset %s", asset_id)
