"""
HTTP API testing tools.

All five verbs share one httpx.AsyncClient owned by the "api" session
manager. HTTP error statuses are reported as ordinary results: the caller is
testing the API and needs to see the 404. Transport failures (DNS,
connection refused, TLS) are operation failures.
"""

import json
from typing import Any, Dict, Optional, Union

import httpx
from pydantic import Field

from .arguments import TimedArgs
from ..cleaners import truncate
from ..constants import MAX_API_BODY_CHARS
from ..registry import tool


class ApiArgs(TimedArgs):
    url: str = Field(description="Request URL")
    headers: Optional[Dict[str, str]] = Field(default=None, description="Additional request headers")
    token: Optional[str] = Field(default=None, description="Bearer token for the Authorization header")
    user_agent: Optional[str] = Field(default=None, description="User agent for the HTTP client")


class ApiBodyArgs(ApiArgs):
    value: Optional[Union[str, Dict[str, Any], list]] = Field(
        default=None,
        description="Request body. Objects and JSON strings are sent as JSON, other strings as text",
    )


def _request_kwargs(args: ApiArgs) -> dict:
    headers = dict(args.headers or {})
    if args.token and not any(k.lower() == "authorization" for k in headers):
        headers["Authorization"] = f"Bearer {args.token}"
    kwargs: Dict[str, Any] = {"headers": headers}

    value = getattr(args, "value", None)
    if value is None:
        return kwargs
    if not isinstance(value, str):
        kwargs["json"] = value
        return kwargs
    try:
        kwargs["json"] = json.loads(value)
    except ValueError:
        kwargs["content"] = value.encode("utf-8")
        if not any(k.lower() == "content-type" for k in headers):
            headers["Content-Type"] = "text/plain; charset=utf-8"
    return kwargs


def format_response(response: httpx.Response) -> list:
    """Status line first, then the body (JSON pretty-printed when it parses)."""
    request = response.request
    status = f"{request.method} {request.url}\nStatus: {response.status_code} {response.reason_phrase}"

    body = response.text
    if body:
        try:
            body = json.dumps(response.json(), ensure_ascii=False, indent=2)
        except ValueError:
            pass
    body, _ = truncate(body, MAX_API_BODY_CHARS)
    return [status, f"Response body:\n{body}" if body else "Response body: (empty)"]


async def send(method: str, args: ApiArgs, ctx) -> list:
    try:
        response = await ctx.client.request(
            method, args.url, timeout=ctx.timeout_ms / 1000.0, **_request_kwargs(args)
        )
    except httpx.TransportError as e:
        ctx.diagnostics.add("api", f"{method} {args.url} failed: {type(e).__name__}: {e}", level="error")
        raise
    return format_response(response)


@tool("api_get", ApiArgs, session="api")
async def api_get(args: ApiArgs, ctx):
    """Perform a GET request."""
    return await send("GET", args, ctx)


@tool("api_post", ApiBodyArgs, session="api")
async def api_post(args: ApiBodyArgs, ctx):
    """Perform a POST request with an optional body."""
    return await send("POST", args, ctx)


@tool("api_put", ApiBodyArgs, session="api")
async def api_put(args: ApiBodyArgs, ctx):
    """Perform a PUT request with an optional body."""
    return await send("PUT", args, ctx)


@tool("api_patch", ApiBodyArgs, session="api")
async def api_patch(args: ApiBodyArgs, ctx):
    """Perform a PATCH request with an optional body."""
    return await send("PATCH", args, ctx)


@tool("api_delete", ApiArgs, session="api")
async def api_delete(args: ApiArgs, ctx):
    """Perform a DELETE request."""
    return await send("DELETE", args, ctx)


__all__ = ["api_get", "api_post", "api_put", "api_patch", "api_delete", "format_response"]
