"""ContentNode — the tree vertex — and the pure rules attached to it."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel

from gardenctl.domain.errors import ValidationError
from gardenctl.domain.payloads import AnyPayload, PayloadKind, PayloadModel, is_container

MAX_TITLE_LENGTH = 255
PATH_SEPARATOR = "/"


class ContentNode(BaseModel):
    """A persisted node, optionally with its payload loaded.

    ``payload_kind`` mirrors the database discriminant; ``payload`` is only
    populated when the caller asked for it.
    """

    model_config = {"frozen": True}

    id: str
    owner_id: str
    title: str
    slug: str
    parent_id: str | None = None
    display_order: int = 0
    path: str = ""
    payload_kind: PayloadKind = PayloadKind.FOLDER
    category_id: str | None = None
    custom_icon: str | None = None
    icon_color: str | None = None
    is_published: bool = False
    created_at: str | None = None
    updated_at: str | None = None
    deleted_at: str | None = None
    payload: AnyPayload | None = None

    @classmethod
    def from_row(
        cls,
        row: Mapping[str, Any],
        payload: PayloadModel | None = None,
    ) -> ContentNode:
        """Build a node from a ``content_nodes`` row mapping."""
        data = dict(row)
        data["payload"] = payload
        return cls.model_validate(data)

    @property
    def is_deleted(self) -> bool:
        return self.deleted_at is not None

    @property
    def ancestor_ids(self) -> list[str]:
        """Ancestor ids root-first, parsed from the materialized path."""
        return [p for p in self.path.split(PATH_SEPARATOR) if p]

    def to_dict(self, *, include_payload: bool = True) -> dict[str, Any]:
        """JSON-ready representation for ServiceResult payloads."""
        data = self.model_dump(mode="json", exclude={"payload"})
        data["kind"] = str(derive_payload_kind(self))
        if include_payload and self.payload is not None:
            data["payload"] = self.payload.model_dump(mode="json")
        return data


def derive_payload_kind(node: ContentNode) -> PayloadKind:
    """Which payload variant *node* carries; folder when it carries none.

    Reads the attached payload when loaded, otherwise the stored
    discriminant.  Callers use this instead of any caller-supplied tag.
    """
    if node.payload is not None:
        return PayloadKind(node.payload.kind)
    return node.payload_kind


def is_folder(node: ContentNode) -> bool:
    """True when *node* may hold children."""
    return is_container(derive_payload_kind(node))


def validate_title(title: str, *, max_length: int = MAX_TITLE_LENGTH) -> str:
    """Return the stripped title or raise on empty/too-long input."""
    cleaned = title.strip() if title else ""
    if not cleaned:
        raise ValidationError("Title is required")
    if len(cleaned) > max_length:
        raise ValidationError(f"Title must be {max_length} characters or less")
    return cleaned


def copy_title(title: str, *, max_length: int = MAX_TITLE_LENGTH) -> str:
    """Title for a duplicated node, kept within *max_length*."""
    suffix = " (Copy)"
    return title[: max_length - len(suffix)] + suffix


def join_path(parent_path: str, parent_id: str | None) -> str:
    """Materialized path of a child of *parent_id* whose own path is *parent_path*.

    Examples:
        >>> join_path("", None)
        ''
        >>> join_path("", "a")
        'a'
        >>> join_path("a", "b")
        'a/b'
    """
    if parent_id is None:
        return ""
    if not parent_path:
        return parent_id
    return f"{parent_path}{PATH_SEPARATOR}{parent_id}"
