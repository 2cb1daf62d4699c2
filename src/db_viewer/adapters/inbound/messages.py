"""Wire models for the byte transport protocol.

Messages are plain mappings on the wire, discriminated by ``type``. Field
names on the wire are camelCase (``saveId``, ``displayName``); the models
expose snake_case attributes and accept either spelling.

Owner to session:
    config          {displayName, version}
    load            {name, bytes}
    save:result     {ok, message?, saveId?}
    export:result   {ok, message?}

Session to owner:
    ready           {}
    refresh         {}
    save            {bytes, saveId}
    export:save     {name, text}
    log             {message}
    error           {message, source?, line?, column?, stack?}

Unknown or malformed inbound messages are logged and dropped; they never
raise into the receiver.

Usage:
    message = parse_owner_message({"type": "save:result", "ok": True, "saveId": 3})
    if isinstance(message, SaveResultMessage):
        ...
    sink.post(to_wire(SaveMessage(data=image, save_id=4)))
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError

from db_viewer.infrastructure.logging import get_logger
from db_viewer.ports.inbound import LoadError

logger = get_logger(__name__)

UNSUPPORTED_BYTES_MESSAGE = "Database bytes format not supported"


class _Message(BaseModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True)


# -- owner -> session -----------------------------------------------------


class ConfigMessage(_Message):
    type: Literal["config"] = "config"
    display_name: str = Field(default="", alias="displayName")
    version: str = ""


class LoadMessage(_Message):
    """A whole database image. ``data`` is normalized by the receiver."""

    type: Literal["load"] = "load"
    name: str = "Database"
    data: Any = Field(default=None, alias="bytes")


class SaveResultMessage(_Message):
    """Acknowledgment of a save. ``save_id`` may be absent."""

    type: Literal["save:result"] = "save:result"
    ok: bool
    message: str | None = None
    save_id: int | None = Field(default=None, alias="saveId")


class ExportResultMessage(_Message):
    type: Literal["export:result"] = "export:result"
    ok: bool
    message: str | None = None


# -- session -> owner -----------------------------------------------------


class ReadyMessage(_Message):
    type: Literal["ready"] = "ready"


class RefreshMessage(_Message):
    type: Literal["refresh"] = "refresh"


class SaveMessage(_Message):
    type: Literal["save"] = "save"
    data: Any = Field(default=None, alias="bytes")
    save_id: int = Field(alias="saveId")


class ExportSaveMessage(_Message):
    type: Literal["export:save"] = "export:save"
    name: str = "export.txt"
    text: str = ""


class LogMessage(_Message):
    type: Literal["log"] = "log"
    message: str = ""


class ErrorMessage(_Message):
    type: Literal["error"] = "error"
    message: str = ""
    source: str | None = None
    line: int | None = None
    column: int | None = None
    stack: str | None = None


OwnerMessage = Annotated[
    Union[ConfigMessage, LoadMessage, SaveResultMessage, ExportResultMessage],
    Field(discriminator="type"),
]
SessionMessage = Annotated[
    Union[ReadyMessage, RefreshMessage, SaveMessage, ExportSaveMessage, LogMessage, ErrorMessage],
    Field(discriminator="type"),
]

_owner_adapter: TypeAdapter[OwnerMessage] = TypeAdapter(OwnerMessage)
_session_adapter: TypeAdapter[SessionMessage] = TypeAdapter(SessionMessage)


def to_wire(message: BaseModel) -> dict[str, Any]:
    """Dump a message to its wire mapping (camelCase keys, unset optionals dropped)."""
    return message.model_dump(by_alias=True, exclude_none=True)


def _parse(adapter: TypeAdapter[Any], raw: Any, direction: str) -> Any | None:
    if isinstance(raw, BaseModel):
        raw = to_wire(raw)
    try:
        return adapter.validate_python(raw)
    except ValidationError as e:
        message_type = raw.get("type") if isinstance(raw, Mapping) else type(raw).__name__
        logger.warning(
            "message_ignored",
            direction=direction,
            message_type=message_type,
            errors=e.error_count(),
        )
        return None


def parse_owner_message(raw: Any) -> OwnerMessage | None:
    """Validate a message sent by the storage owner, or return None."""
    return _parse(_owner_adapter, raw, "owner_to_session")


def parse_session_message(raw: Any) -> SessionMessage | None:
    """Validate a message sent by a session, or return None."""
    return _parse(_session_adapter, raw, "session_to_owner")


def normalize_bytes(value: Any) -> bytes:
    """Coerce the accepted byte representations to ``bytes``.

    Accepted: ``bytes``, ``bytearray``, ``memoryview``, a list or tuple of
    byte values, or a mapping whose ``data`` entry is such a list (the shape
    a serialized Node ``Buffer`` takes).

    Raises:
        LoadError: For any other shape, or values outside 0..255.
    """
    if isinstance(value, (bytes, bytearray, memoryview)):
        return bytes(value)
    if isinstance(value, Mapping) and isinstance(value.get("data"), (list, tuple)):
        value = value["data"]
    if isinstance(value, (list, tuple)):
        try:
            return bytes(value)
        except (TypeError, ValueError) as e:
            raise LoadError(UNSUPPORTED_BYTES_MESSAGE) from e
    raise LoadError(UNSUPPORTED_BYTES_MESSAGE)


def format_header(data: bytes, length: int = 16) -> str:
    """First ``length`` bytes as space separated hex, for load diagnostics."""
    if not data:
        return "(empty)"
    return " ".join(f"{byte:02x}" for byte in data[:length])
