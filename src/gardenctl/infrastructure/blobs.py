"""Blob storage and media metadata collaborators.

The content store never talks to a storage vendor directly.  It consumes
two narrow interfaces:

- :class:`BlobStore` — presign an upload target, confirm an object exists,
  read it back, or (single-phase uploads) write it.
- :class:`MetadataExtractor` — best-effort media facts for a stored object.

:class:`LocalBlobStore` keeps objects under a directory and is the default
for a store root.  Vendor adapters (S3, R2, ...) implement the same
protocol outside this package.
"""

from __future__ import annotations

import hashlib
import hmac
import logging
import time
from dataclasses import dataclass
from io import BytesIO
from pathlib import Path
from typing import BinaryIO, Protocol, runtime_checkable
from urllib.parse import quote

from PIL import Image, UnidentifiedImageError
from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BlobInfo:
    """Result of an existence check."""

    exists: bool
    size: int | None = None


class MediaMetadata(BaseModel):
    """Optional facts about an uploaded media object.

    Client-supplied values pass through this model before they are stored.
    """

    model_config = {"frozen": True, "extra": "ignore"}

    width: int | None = Field(default=None, ge=0)
    height: int | None = Field(default=None, ge=0)
    duration: int | None = Field(default=None, ge=0)
    thumbnail_key: str | None = Field(default=None, min_length=1)

    def as_dict(self) -> dict[str, int | str]:
        return self.model_dump(exclude_none=True)


@runtime_checkable
class BlobStore(Protocol):
    def presign_upload(self, key: str, mime_type: str, ttl: int) -> str: ...

    def verify_exists(self, key: str) -> BlobInfo: ...

    def read(self, key: str) -> BinaryIO: ...

    def put(self, key: str, data: bytes, mime_type: str) -> None: ...

    def public_url(self, key: str, ttl: int) -> str: ...


@runtime_checkable
class MetadataExtractor(Protocol):
    def extract(self, mime_type: str, key: str) -> MediaMetadata: ...


# ---------------------------------------------------------------------------
# Local filesystem implementation
# ---------------------------------------------------------------------------


class LocalBlobStore:
    """Objects stored as files under *root*, keys map to relative paths.

    Presigned targets are ``file://`` URLs carrying an expiry timestamp and
    an HMAC signature over ``key|expires``; callers copy bytes to the path
    and then finalize.
    """

    def __init__(self, root: Path, *, secret: str = "gardenctl-local") -> None:
        self._root = root
        self._secret = secret.encode("utf-8")

    @property
    def root(self) -> Path:
        return self._root

    def path_for(self, key: str) -> Path:
        """Resolve *key* under the root, rejecting escapes."""
        path = (self._root / key).resolve()
        if not path.is_relative_to(self._root.resolve()):
            msg = f"Storage key escapes blob root: {key!r}"
            raise ValueError(msg)
        return path

    def _sign(self, key: str, expires: int) -> str:
        payload = f"{key}|{expires}".encode()
        return hmac.new(self._secret, payload, hashlib.sha256).hexdigest()[:32]

    def presign_upload(self, key: str, mime_type: str, ttl: int) -> str:
        path = self.path_for(key)
        path.parent.mkdir(parents=True, exist_ok=True)
        expires = int(time.time()) + ttl
        signature = self._sign(key, expires)
        return (
            f"{path.as_uri()}?expires={expires}"
            f"&content_type={quote(mime_type, safe='')}&signature={signature}"
        )

    def verify_exists(self, key: str) -> BlobInfo:
        path = self.path_for(key)
        if not path.is_file():
            return BlobInfo(exists=False)
        return BlobInfo(exists=True, size=path.stat().st_size)

    def read(self, key: str) -> BinaryIO:
        return self.path_for(key).open("rb")

    def put(self, key: str, data: bytes, mime_type: str) -> None:
        path = self.path_for(key)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(data)
        logger.debug("Stored blob %s (%d bytes, %s)", key, len(data), mime_type)

    def public_url(self, key: str, ttl: int) -> str:
        return self.path_for(key).as_uri()


# ---------------------------------------------------------------------------
# Metadata extraction
# ---------------------------------------------------------------------------


class NullMetadataExtractor:
    """Extractor that knows nothing — every field omitted."""

    def extract(self, mime_type: str, key: str) -> MediaMetadata:
        return MediaMetadata()


def thumbnail_key(key: str, size: int) -> str:
    """Key of the JPEG thumbnail stored next to *key*.

    Examples:
        >>> thumbnail_key("uploads/alice/3f2a.png", 300)
        'uploads/alice/3f2a-thumb-300.jpg'
    """
    folder, slash, name = key.rpartition("/")
    stem = name.rpartition(".")[0] or name
    return f"{folder}{slash}{stem}-thumb-{size}.jpg"


class ImageExtractor:
    """Image dimensions plus a JPEG thumbnail, read with Pillow.

    The thumbnail fits in a *thumbnail_size* square and is written back
    through the blob store.  Non-image mime types and bytes Pillow cannot
    identify yield empty metadata.
    """

    def __init__(self, blobs: BlobStore, *, thumbnail_size: int = 300, quality: int = 85) -> None:
        self._blobs = blobs
        self._size = thumbnail_size
        self._quality = quality

    def extract(self, mime_type: str, key: str) -> MediaMetadata:
        if not mime_type.startswith("image/"):
            return MediaMetadata()
        try:
            with self._blobs.read(key) as fh, Image.open(fh) as img:
                width, height = img.size
                thumb = img.convert("RGB")
        except UnidentifiedImageError:
            logger.debug("Not a readable image: %s", key)
            return MediaMetadata()

        thumb.thumbnail((self._size, self._size))
        buf = BytesIO()
        thumb.save(buf, format="JPEG", quality=self._quality)
        thumb_key = thumbnail_key(key, self._size)
        self._blobs.put(thumb_key, buf.getvalue(), "image/jpeg")
        return MediaMetadata(width=width, height=height, thumbnail_key=thumb_key)
