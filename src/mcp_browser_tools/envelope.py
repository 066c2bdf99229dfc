# mcp_browser_tools/envelope.py
"""
Result envelope returned by every tool call.

An envelope is either a success or an error and carries an ordered tuple of
content items. Envelopes are frozen: once a tool or the dispatcher has built
one, nothing downstream can alter it.
"""

import base64
import enum
import json
from dataclasses import dataclass, field
from typing import Any, Optional, Tuple, Union


class Outcome(str, enum.Enum):
    SUCCESS = "success"
    ERROR = "error"


class ErrorKind(str, enum.Enum):
    UNKNOWN_TOOL = "UnknownTool"
    INVALID_ARGUMENTS = "InvalidArguments"
    SESSION_UNAVAILABLE = "SessionUnavailable"
    SESSION_LAUNCH_FAILED = "SessionLaunchFailed"
    OPERATION_TIMEOUT = "OperationTimeout"
    OPERATION_FAILED = "OperationFailed"
    UNEXPECTED_FAULT = "UnexpectedFault"


@dataclass(frozen=True)
class TextContent:
    text: str


@dataclass(frozen=True)
class BinaryContent:
    """Opaque payload tagged with a mime type (screenshots, PDFs)."""

    data: bytes = field(repr=False)
    mime_type: str
    name: Optional[str] = None

    def to_base64(self) -> str:
        return base64.b64encode(self.data).decode("ascii")


ContentItem = Union[TextContent, BinaryContent]


@dataclass(frozen=True)
class ResultEnvelope:
    outcome: Outcome
    content: Tuple[ContentItem, ...] = ()
    error_kind: Optional[ErrorKind] = None

    @property
    def ok(self) -> bool:
        return self.outcome is Outcome.SUCCESS

    @property
    def is_error(self) -> bool:
        return self.outcome is Outcome.ERROR

    @property
    def texts(self) -> list:
        """Text items in order; convenient for logging and tests."""
        return [item.text for item in self.content if isinstance(item, TextContent)]

    @property
    def message(self) -> str:
        return "\n".join(self.texts)

    def to_dict(self) -> dict:
        items = []
        for item in self.content:
            if isinstance(item, TextContent):
                items.append({"type": "text", "text": item.text})
            else:
                items.append({
                    "type": "binary",
                    "mime_type": item.mime_type,
                    "name": item.name,
                    "data": item.to_base64(),
                })
        payload = {"outcome": self.outcome.value, "content": items}
        if self.error_kind is not None:
            payload["error_kind"] = self.error_kind.value
        return payload


def _coerce_item(value: Any) -> ContentItem:
    if isinstance(value, (TextContent, BinaryContent)):
        return value
    if isinstance(value, str):
        return TextContent(value)
    if isinstance(value, bytes):
        return TextContent(value.decode("utf-8", "replace"))
    try:
        return TextContent(json.dumps(value, ensure_ascii=False, indent=2, default=repr))
    except (TypeError, ValueError):
        return TextContent(str(value))


def success(*items: Any) -> ResultEnvelope:
    """Build a success envelope. Strings become text items, other values are JSON-encoded."""
    return ResultEnvelope(Outcome.SUCCESS, tuple(_coerce_item(i) for i in items))


def failure(kind: ErrorKind, message: str, *extra: Any) -> ResultEnvelope:
    """Build an error envelope whose first content item is the human-readable message."""
    content = (TextContent(message),) + tuple(_coerce_item(i) for i in extra)
    return ResultEnvelope(Outcome.ERROR, content, error_kind=kind)


def wrap_result(value: Any) -> ResultEnvelope:
    """
    Normalize whatever a tool operation returned into a success envelope.

    - ResultEnvelope: passed through untouched
    - None: empty success
    - list/tuple of items: one content item per element
    - anything else: a single content item
    """
    if isinstance(value, ResultEnvelope):
        return value
    if value is None:
        return ResultEnvelope(Outcome.SUCCESS)
    if isinstance(value, (list, tuple)) and not isinstance(value, (str, bytes)):
        return success(*value)
    return success(value)


__all__ = [
    "Outcome",
    "ErrorKind",
    "TextContent",
    "BinaryContent",
    "ContentItem",
    "ResultEnvelope",
    "success",
    "failure",
    "wrap_result",
]
