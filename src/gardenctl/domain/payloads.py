"""Payload variants — the typed content a node carries.

A node carries at most one payload.  The payload is modelled as a tagged
variant: every model has a ``kind`` literal discriminator, the node row
records the same kind in ``payload_kind``, and exactly one side-table row
holds the data (none for a plain folder).  Nothing infers the kind by
probing for non-null relations at read time.

Side-table rows store nested structures as JSON text; :meth:`PayloadModel.to_row`
and :meth:`PayloadModel.from_row` convert between the two shapes.
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from enum import StrEnum
from typing import Annotated, Any, ClassVar, Literal

from pydantic import BaseModel, Field, TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from gardenctl.domain.errors import ValidationError
from gardenctl.domain.lifecycle import UploadStatus


class PayloadKind(StrEnum):
    """Every payload variant a node may carry."""

    NOTE = "note"
    FILE = "file"
    HTML = "html"
    CODE = "code"
    FOLDER = "folder"
    EXTERNAL = "external"
    CHAT = "chat"
    VISUALIZATION = "visualization"
    DATA = "data"
    GOAL = "goal"
    WORKFLOW = "workflow"


# Kinds whose nodes may hold children.
CONTAINER_KINDS = frozenset({PayloadKind.FOLDER})


def is_container(kind: str) -> bool:
    """True when nodes of *kind* can be a parent (move/create target)."""
    return kind in CONTAINER_KINDS


# ---------------------------------------------------------------------------
# Base model
# ---------------------------------------------------------------------------


class PayloadModel(BaseModel):
    """Common behaviour for all payload variants."""

    model_config = {"frozen": True, "extra": "forbid"}

    kind: str

    # Fields persisted as JSON text in the side table.
    json_fields: ClassVar[frozenset[str]] = frozenset()

    def to_row(self) -> dict[str, Any]:
        """Column values for the side-table insert (``node_id`` excluded)."""
        data = self.model_dump(mode="json", exclude={"kind"})
        for name in self.json_fields:
            data[name] = json.dumps(data[name], sort_keys=True)
        return data

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> PayloadModel:
        """Rebuild the model from a side-table row."""
        data = {k: v for k, v in row.items() if k != "node_id"}
        for name in cls.json_fields:
            raw = data.get(name)
            if isinstance(raw, str):
                data[name] = json.loads(raw)
        return cls.model_validate(data)

    def copy_for_duplicate(self) -> PayloadModel:
        """Payload for a duplicated node — data copied by value."""
        return self.model_copy(deep=True)


# ---------------------------------------------------------------------------
# Variants
# ---------------------------------------------------------------------------


class NotePayload(PayloadModel):
    """Rich-text note; ``document`` is the editor JSON, opaque here."""

    kind: Literal["note"] = "note"
    document: dict[str, Any] = Field(default_factory=dict)
    markdown: str = ""
    search_text: str = ""
    metadata: dict[str, Any] = Field(default_factory=dict)

    json_fields: ClassVar[frozenset[str]] = frozenset({"document", "metadata"})


class FilePayload(PayloadModel):
    """Uploaded file.  Bytes live in the blob store under ``storage_key``."""

    kind: Literal["file"] = "file"
    file_name: str = Field(min_length=1, max_length=255)
    file_extension: str | None = None
    mime_type: str = "application/octet-stream"
    file_size: int = Field(ge=0)
    checksum: str = ""
    storage_key: str = Field(min_length=1)
    storage_url: str | None = None
    storage_metadata: dict[str, Any] = Field(default_factory=dict)
    upload_status: UploadStatus = UploadStatus.UPLOADING
    upload_error: str | None = None
    uploaded_at: str | None = None
    width: int | None = None
    height: int | None = None
    duration: int | None = None
    thumbnail_key: str | None = None

    json_fields: ClassVar[frozenset[str]] = frozenset({"storage_metadata"})


class HtmlPayload(PayloadModel):
    kind: Literal["html"] = "html"
    html: str
    search_text: str = ""
    is_template: bool = False
    template_metadata: dict[str, Any] = Field(default_factory=dict)

    json_fields: ClassVar[frozenset[str]] = frozenset({"template_metadata"})


class CodePayload(PayloadModel):
    kind: Literal["code"] = "code"
    code: str
    language: str = "text"
    metadata: dict[str, Any] = Field(default_factory=dict)

    json_fields: ClassVar[frozenset[str]] = frozenset({"metadata"})


class FolderPayload(PayloadModel):
    """Folder view settings.  A folder without settings has no payload row."""

    kind: Literal["folder"] = "folder"
    view_mode: str = "list"
    sort_mode: str | None = None
    view_prefs: dict[str, Any] = Field(default_factory=dict)
    include_referenced_content: bool = False

    json_fields: ClassVar[frozenset[str]] = frozenset({"view_prefs"})


class ExternalPayload(PayloadModel):
    """Bookmark to an external resource."""

    kind: Literal["external"] = "external"
    url: str = Field(min_length=1)
    subtype: str = "website"
    preview: dict[str, Any] = Field(default_factory=dict)

    json_fields: ClassVar[frozenset[str]] = frozenset({"preview"})


class ChatPayload(PayloadModel):
    kind: Literal["chat"] = "chat"
    messages: list[dict[str, Any]] = Field(default_factory=list)
    metadata: dict[str, Any] = Field(default_factory=dict)

    json_fields: ClassVar[frozenset[str]] = frozenset({"messages", "metadata"})


class VisualizationPayload(PayloadModel):
    kind: Literal["visualization"] = "visualization"
    engine: str = Field(min_length=1)
    config: dict[str, Any] = Field(default_factory=dict)
    data: dict[str, Any] = Field(default_factory=dict)

    json_fields: ClassVar[frozenset[str]] = frozenset({"config", "data"})


class DataPayload(PayloadModel):
    """Tabular data."""

    kind: Literal["data"] = "data"
    columns: list[str] = Field(default_factory=list)
    rows: list[list[Any]] = Field(default_factory=list)
    metadata: dict[str, Any] = Field(default_factory=dict)

    json_fields: ClassVar[frozenset[str]] = frozenset({"columns", "rows", "metadata"})


class GoalPayload(PayloadModel):
    kind: Literal["goal"] = "goal"
    description: str = ""
    status: str = "active"
    due_date: str | None = None
    progress: int = Field(default=0, ge=0, le=100)


class WorkflowPayload(PayloadModel):
    kind: Literal["workflow"] = "workflow"
    steps: list[dict[str, Any]] = Field(default_factory=list)
    status: str = "draft"
    metadata: dict[str, Any] = Field(default_factory=dict)

    json_fields: ClassVar[frozenset[str]] = frozenset({"steps", "metadata"})


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------

PAYLOAD_MODELS: dict[PayloadKind, type[PayloadModel]] = {
    PayloadKind.NOTE: NotePayload,
    PayloadKind.FILE: FilePayload,
    PayloadKind.HTML: HtmlPayload,
    PayloadKind.CODE: CodePayload,
    PayloadKind.FOLDER: FolderPayload,
    PayloadKind.EXTERNAL: ExternalPayload,
    PayloadKind.CHAT: ChatPayload,
    PayloadKind.VISUALIZATION: VisualizationPayload,
    PayloadKind.DATA: DataPayload,
    PayloadKind.GOAL: GoalPayload,
    PayloadKind.WORKFLOW: WorkflowPayload,
}

AnyPayload = Annotated[
    NotePayload
    | FilePayload
    | HtmlPayload
    | CodePayload
    | FolderPayload
    | ExternalPayload
    | ChatPayload
    | VisualizationPayload
    | DataPayload
    | GoalPayload
    | WorkflowPayload,
    Field(discriminator="kind"),
]

_payload_adapter: TypeAdapter[Any] = TypeAdapter(AnyPayload)


def get_payload_model(kind: str) -> type[PayloadModel]:
    """Look up the model class for *kind*.

    Raises:
        ValidationError: If *kind* is not a known payload kind.
    """
    try:
        return PAYLOAD_MODELS[PayloadKind(kind)]
    except ValueError:
        known = ", ".join(k.value for k in PayloadKind)
        msg = f"Unknown payload kind: {kind!r}. Expected one of: {known}"
        raise ValidationError(msg) from None


def _format_errors(exc: PydanticValidationError) -> str:
    parts = []
    for err in exc.errors():
        loc = ".".join(str(p) for p in err["loc"]) or "payload"
        parts.append(f"{loc}: {err['msg']}")
    return "; ".join(parts)


def build_payload(kind: str, data: Mapping[str, Any] | None) -> PayloadModel:
    """Validate *data* against the model registered for *kind*."""
    model_cls = get_payload_model(kind)
    try:
        return model_cls.model_validate(dict(data or {}))
    except PydanticValidationError as exc:
        msg = f"Invalid {kind} payload: {_format_errors(exc)}"
        raise ValidationError(msg) from None


def resolve_payload(given: PayloadModel | Mapping[str, Any] | None) -> PayloadModel | None:
    """Normalize a caller-supplied payload.

    Accepted shapes:

    - ``None`` or ``{}`` — plain folder, no payload.
    - a :class:`PayloadModel` instance.
    - a tagged mapping ``{"kind": "note", ...}``.
    - a keyed mapping ``{"note": {...}}`` naming exactly one kind.

    Raises:
        ValidationError: Unknown kind, more than one kind, or invalid data.
    """
    if given is None:
        return None
    if isinstance(given, PayloadModel):
        return given
    if not given:
        return None

    if "kind" in given:
        kind = str(given["kind"])
        get_payload_model(kind)
        try:
            return _payload_adapter.validate_python(dict(given))
        except PydanticValidationError as exc:
            raise ValidationError(f"Invalid {kind} payload: {_format_errors(exc)}") from None

    if len(given) > 1:
        kinds = ", ".join(sorted(str(k) for k in given))
        msg = f"A node carries exactly one payload; got {len(given)} kinds: {kinds}"
        raise ValidationError(msg)

    ((kind, data),) = given.items()
    return build_payload(str(kind), data)
