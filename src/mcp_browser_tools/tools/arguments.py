"""Argument models shared by the tool modules."""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class ToolArgs(BaseModel):
    """Base for every tool's arguments. Unknown keys are ignored."""

    model_config = ConfigDict(extra="ignore")


class TimedArgs(ToolArgs):
    timeout: Optional[int] = Field(
        default=None,
        ge=1,
        le=600_000,
        description="Timeout for this call in milliseconds (defaults to the server's MCP_DEFAULT_TIMEOUT_MS)",
    )


class SelectorArgs(TimedArgs):
    selector: str = Field(description="CSS selector, XPath (//...), or text=<visible text> of the element")


class NoArgs(ToolArgs):
    pass


__all__ = ["ToolArgs", "TimedArgs", "SelectorArgs", "NoArgs"]
