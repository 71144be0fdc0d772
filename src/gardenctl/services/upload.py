"""UploadLifecycle — two-phase and single-phase file uploads.

Two-phase: INITIATE (dedup check, create node in ``uploading``, presign)
→ client transfers bytes to the blob store → FINALIZE (verify object,
extract metadata, ``ready`` or ``failed``).

Single-phase: the caller hands over the bytes; they are written through
the blob store and the node is created directly in ``ready``.

Blob store calls never run inside a database transaction.
"""

from __future__ import annotations

import hashlib
import json
import logging
import mimetypes
from typing import TYPE_CHECKING, Any, BinaryIO

from pydantic import ValidationError as PydanticValidationError
from sqlalchemy import and_, select, update

from gardenctl.domain.errors import NotFoundError, UploadFailedError, ValidationError
from gardenctl.domain.ids import file_extension, new_node_id, split_file_name, storage_key
from gardenctl.domain.lifecycle import UploadStatus, is_finalized, is_valid_transition
from gardenctl.domain.nodes import validate_title
from gardenctl.domain.payloads import FilePayload, PayloadKind, build_payload
from gardenctl.infrastructure.blobs import MediaMetadata
from gardenctl.infrastructure.database.schema import content_nodes, file_payloads
from gardenctl.services._helpers import now_iso
from gardenctl.services.base import BaseService
from gardenctl.services.payloads import attach_payload, node_draft
from gardenctl.services.slugs import insert_with_slug_retry
from gardenctl.services.telemetry import trace_span

if TYPE_CHECKING:
    from collections.abc import Iterable

    from gardenctl.domain.nodes import ContentNode
    from gardenctl.infrastructure.store import StoreTransaction

logger = logging.getLogger(__name__)

_CHUNK = 1024 * 1024
_MEDIA_FIELDS = ("width", "height", "duration", "thumbnail_key")
_MAX_FILE_NAME = 255


def checksum_bytes(data: bytes) -> str:
    """SHA-256 hex digest of *data*."""
    return hashlib.sha256(data).hexdigest()


def checksum_stream(stream: BinaryIO) -> str:
    """SHA-256 hex digest of a binary stream, read in chunks."""
    digest = hashlib.sha256()
    for chunk in iter(lambda: stream.read(_CHUNK), b""):
        digest.update(chunk)
    return digest.hexdigest()


def _check_file_name(file_name: str) -> None:
    if len(file_name) > _MAX_FILE_NAME:
        raise ValidationError(
            f"File name exceeds {_MAX_FILE_NAME} characters",
            detail={"length": len(file_name)},
        )


def _supplied_media(metadata: dict[str, Any] | None) -> MediaMetadata:
    """Media fields a client passed to finalize, type-checked."""
    given = {k: v for k, v in (metadata or {}).items() if k in _MEDIA_FIELDS}
    try:
        return MediaMetadata.model_validate(given)
    except PydanticValidationError as exc:
        problems = "; ".join(
            f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in exc.errors()
        )
        raise ValidationError(f"Invalid media metadata: {problems}") from exc


def guess_mime_type(file_name: str) -> str:
    return mimetypes.guess_type(file_name)[0] or "application/octet-stream"


class UploadLifecycle(BaseService):
    """Creates file nodes and drives them through ``uploading → ready | failed``."""

    @property
    def _config(self) -> Any:
        return self._store.settings.uploads

    # ------------------------------------------------------------------
    # Two-phase upload
    # ------------------------------------------------------------------

    def initiate(
        self,
        owner_id: str,
        file_name: str,
        file_size: int,
        mime_type: str,
        checksum: str | None = None,
        parent_id: str | None = None,
        title: str | None = None,
        custom_icon: str | None = None,
        icon_color: str | None = None,
    ) -> dict[str, Any]:
        """Create a file node in ``uploading`` and presign its upload target.

        When *checksum* matches a ready file of the same size owned by
        *owner_id*, nothing is created and the existing node is returned.
        """
        self._validate_file(file_name, file_size)
        if not mime_type:
            raise ValidationError("Missing required field: mime_type")
        node_title = validate_title(title or file_name, max_length=self._max_title_length)

        with self._store.transaction() as txn:
            if parent_id is not None:
                txn.require_folder(parent_id, owner_id)
            if checksum:
                existing = self._find_identical(
                    txn, owner_id, checksum, file_size, (UploadStatus.READY,)
                )
                if existing is not None:
                    logger.info("Upload deduplicated against %s", existing)
                    return {"is_duplicate": True, "existing_content_id": existing}

        key = storage_key(owner_id, file_name, prefix=self._config.key_prefix)
        payload = build_payload(
            PayloadKind.FILE.value,
            {
                "file_name": file_name,
                "file_extension": file_extension(file_name) or None,
                "mime_type": mime_type,
                "file_size": file_size,
                "checksum": checksum or "",
                "storage_key": key,
                "upload_status": UploadStatus.UPLOADING,
            },
        )
        node = self._insert_file_node(
            owner_id,
            node_title,
            payload,
            parent_id=parent_id,
            custom_icon=custom_icon,
            icon_color=icon_color,
        )

        ttl = self._config.presign_ttl_seconds
        with trace_span("presign"):
            upload_url = self._store.blobs.presign_upload(key, mime_type, ttl)
        return {
            "is_duplicate": False,
            "node_id": node.id,
            "upload_url": upload_url,
            "storage_key": key,
            "expires_in_seconds": ttl,
        }

    def finalize(
        self,
        node_id: str,
        owner_id: str,
        success: bool,
        error: str | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        """Close an upload as ``ready`` (object verified) or ``failed``.

        Raises:
            NotFoundError: Node or its file payload missing.
            ForbiddenError: Node owned by someone else.
            ValidationError: Upload no longer ``uploading``, or supplied
                ``width``/``height``/``duration``/``thumbnail_key`` of the wrong type.
            UploadFailedError: The object is missing from the blob store;
                the upload is marked ``failed`` first.
        """
        supplied = _supplied_media(metadata) if success else MediaMetadata()
        with self._store.transaction() as txn:
            payload = self._require_uploading(txn, node_id, owner_id)

        if not success:
            message = error or "Upload failed"
            self._transition(node_id, UploadStatus.FAILED, {"upload_error": message})
            logger.info("Upload %s marked failed: %s", node_id, message)
            return {
                "node_id": node_id,
                "upload_status": UploadStatus.FAILED.value,
                "error": message,
            }

        with trace_span("verify"):
            info = self._store.blobs.verify_exists(payload.storage_key)
        if not info.exists:
            self._transition(
                node_id, UploadStatus.FAILED, {"upload_error": "File not found in storage"}
            )
            raise UploadFailedError(
                "File not found in storage",
                detail={"node_id": node_id, "storage_key": payload.storage_key},
            )

        media = self._extract(payload.mime_type, payload.storage_key)
        extra = dict(metadata or {})
        values: dict[str, Any] = {
            "uploaded_at": now_iso(),
            "storage_url": self._store.blobs.public_url(
                payload.storage_key, self._config.presign_ttl_seconds
            ),
            "storage_metadata": json.dumps(
                {**payload.storage_metadata, **extra}, sort_keys=True
            ),
            "upload_error": None,
        }
        if info.size is not None:
            values["file_size"] = info.size
        if not payload.checksum:
            with trace_span("checksum"), self._store.blobs.read(payload.storage_key) as fh:
                values["checksum"] = checksum_stream(fh)
        media_values = {**supplied.as_dict(), **media.as_dict()}
        values.update(media_values)

        self._transition(node_id, UploadStatus.READY, values)
        logger.debug("Upload %s ready (%s)", node_id, payload.storage_key)
        return {
            "node_id": node_id,
            "upload_status": UploadStatus.READY.value,
            "storage_url": values["storage_url"],
            **media_values,
        }

    # ------------------------------------------------------------------
    # Single-phase upload
    # ------------------------------------------------------------------

    def upload(
        self,
        owner_id: str,
        file_name: str,
        data: bytes,
        mime_type: str | None = None,
        parent_id: str | None = None,
        title: str | None = None,
    ) -> dict[str, Any]:
        """Store *data* and create a ``ready`` file node.

        Identical content already owned by *owner_id* does not block the
        upload: the new entry is renamed ``name (1).ext``, ``name (2).ext``, ...
        and flagged ``is_duplicate``.
        """
        self._validate_file(file_name, len(data))
        mime = mime_type or guess_mime_type(file_name)
        checksum = checksum_bytes(data)

        with self._store.transaction() as txn:
            if parent_id is not None:
                txn.require_folder(parent_id, owner_id)
            existing = self._find_identical(
                txn,
                owner_id,
                checksum,
                len(data),
                (UploadStatus.UPLOADING, UploadStatus.READY),
            )
            final_name = file_name
            if existing is not None:
                final_name = self._rename_duplicate(txn, owner_id, file_name)
                _check_file_name(final_name)
                logger.info("Duplicate content of %s stored as %r", existing, final_name)

        key = storage_key(owner_id, final_name, prefix=self._config.key_prefix)
        with trace_span("put", size=len(data)):
            self._store.blobs.put(key, data, mime)
        media = self._extract(mime, key)
        node_title = validate_title(title or final_name, max_length=self._max_title_length)
        payload = build_payload(
            PayloadKind.FILE.value,
            {
                "file_name": final_name,
                "file_extension": file_extension(final_name) or None,
                "mime_type": mime,
                "file_size": len(data),
                "checksum": checksum,
                "storage_key": key,
                "storage_url": self._store.blobs.public_url(
                    key, self._config.presign_ttl_seconds
                ),
                "upload_status": UploadStatus.READY,
                "uploaded_at": now_iso(),
                **media.as_dict(),
            },
        )
        node = self._insert_file_node(owner_id, node_title, payload, parent_id=parent_id)
        return {
            "node": node.to_dict(),
            "is_duplicate": existing is not None,
            "file_name": final_name,
        }

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    @property
    def _max_title_length(self) -> int:
        return self._store.settings.tree.max_title_length

    def _validate_file(self, file_name: str, file_size: int) -> None:
        if not file_name or not file_name.strip():
            raise ValidationError("Missing required field: file_name")
        _check_file_name(file_name)
        if file_size <= 0:
            raise ValidationError("File size must be positive")
        limit = self._config.max_file_size
        if file_size > limit:
            mib = limit // (1024 * 1024)
            raise ValidationError(
                f"File size exceeds maximum of {mib}MB",
                detail={"file_size": file_size, "max_file_size": limit},
            )

    def _insert_file_node(
        self,
        owner_id: str,
        title: str,
        payload: FilePayload,
        *,
        parent_id: str | None,
        custom_icon: str | None = None,
        icon_color: str | None = None,
    ) -> ContentNode:
        node_id = new_node_id()
        now = now_iso()

        def write(txn: StoreTransaction, slug: str) -> ContentNode:
            draft = node_draft(
                txn,
                node_id=node_id,
                owner_id=owner_id,
                title=title,
                slug=slug,
                parent_id=parent_id,
                now=now,
                custom_icon=custom_icon,
                icon_color=icon_color,
            )
            return attach_payload(txn, draft, PayloadKind.FILE.value, payload)

        return insert_with_slug_retry(
            self._store,
            title,
            owner_id,
            write,
            attempts=self._store.settings.tree.slug_retry_attempts,
        )

    def _find_identical(
        self,
        txn: StoreTransaction,
        owner_id: str,
        checksum: str,
        file_size: int,
        statuses: Iterable[UploadStatus],
    ) -> str | None:
        row = txn.conn.execute(
            select(content_nodes.c.id)
            .select_from(
                file_payloads.join(content_nodes, file_payloads.c.node_id == content_nodes.c.id)
            )
            .where(
                and_(
                    content_nodes.c.owner_id == owner_id,
                    content_nodes.c.deleted_at.is_(None),
                    file_payloads.c.checksum == checksum,
                    file_payloads.c.file_size == file_size,
                    file_payloads.c.upload_status.in_([s.value for s in statuses]),
                )
            )
            .order_by(content_nodes.c.created_at)
        ).first()
        return row.id if row is not None else None

    def _rename_duplicate(self, txn: StoreTransaction, owner_id: str, file_name: str) -> str:
        taken = {
            r.file_name
            for r in txn.conn.execute(
                select(file_payloads.c.file_name)
                .select_from(
                    file_payloads.join(
                        content_nodes, file_payloads.c.node_id == content_nodes.c.id
                    )
                )
                .where(
                    content_nodes.c.owner_id == owner_id,
                    content_nodes.c.deleted_at.is_(None),
                )
            )
        }
        base, ext = split_file_name(file_name)
        limit = self._config.duplicate_rename_limit
        for n in range(1, limit + 1):
            candidate = f"{base} ({n}){ext}"
            if candidate not in taken:
                return candidate
        raise ValidationError(f"Too many copies of {file_name!r} (limit {limit})")

    def _require_uploading(self, txn: StoreTransaction, node_id: str, owner_id: str) -> FilePayload:
        node = txn.require_node(node_id, owner_id, label="Upload")
        payload = txn.load_payload(node_id, PayloadKind.FILE.value)
        if node.payload_kind != PayloadKind.FILE or not isinstance(payload, FilePayload):
            raise NotFoundError(f"File upload not found: {node_id}")
        if is_finalized(payload.upload_status):
            raise ValidationError(
                f"Upload already finalized (status: {payload.upload_status})",
                detail={"upload_status": str(payload.upload_status)},
            )
        return payload

    def _transition(self, node_id: str, target: UploadStatus, values: dict[str, Any]) -> None:
        """Conditional status write: only a row still ``uploading`` changes."""
        if not is_valid_transition(UploadStatus.UPLOADING, target):
            raise ValueError(f"Not an upload outcome: {target}")
        now = now_iso()
        with self._store.transaction() as txn:
            result = txn.conn.execute(
                update(file_payloads)
                .where(
                    file_payloads.c.node_id == node_id,
                    file_payloads.c.upload_status == UploadStatus.UPLOADING.value,
                )
                .values(upload_status=target.value, **values)
            )
            if result.rowcount == 0:
                current = txn.load_payload(node_id, PayloadKind.FILE.value)
                status = current.upload_status if isinstance(current, FilePayload) else "missing"
                raise ValidationError(f"Upload already finalized (status: {status})")
            txn.update_node(node_id, updated_at=now)

    def _extract(self, mime_type: str, key: str) -> MediaMetadata:
        """Best-effort metadata extraction; failures are logged and ignored."""
        try:
            with trace_span("extract_metadata"):
                return self._store.extractor.extract(mime_type, key)
        except Exception:
            logger.warning("Metadata extraction failed for %s", key, exc_info=True)
            return MediaMetadata()
