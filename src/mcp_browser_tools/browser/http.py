"""HTTP client session used by the API testing tools."""

from typing import Optional

import httpx

from .settings import ApiSettings
from ..utils.diagnostics import DiagnosticsBuffer

import logging
logger = logging.getLogger(__name__)


class ApiSession:
    """A shared httpx.AsyncClient. Each API tool call reuses its connection pool."""

    kind = "api"

    def __init__(self, client: httpx.AsyncClient, settings: ApiSettings):
        self.client = client
        self.settings = settings

    async def is_alive(self) -> bool:
        return not self.client.is_closed

    async def close(self) -> None:
        await self.client.aclose()


def _response_hook(diagnostics: DiagnosticsBuffer):
    async def on_response(response: httpx.Response) -> None:
        request = response.request
        level = "error" if response.status_code >= 400 else "info"
        diagnostics.add(
            source="api",
            message=f"{request.method} {request.url} -> {response.status_code} {response.reason_phrase}",
            level=level,
        )
    return on_response


def build_client(
    settings: ApiSettings,
    diagnostics: Optional[DiagnosticsBuffer] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> httpx.AsyncClient:
    headers = {}
    if settings.user_agent:
        headers["User-Agent"] = settings.user_agent
    hooks = {"response": [_response_hook(diagnostics)]} if diagnostics is not None else {}
    kwargs = dict(
        headers=headers,
        timeout=httpx.Timeout(max(settings.timeout_ms, 1) / 1000.0),
        verify=settings.verify_ssl,
        follow_redirects=True,
        event_hooks=hooks,
    )
    if transport is not None:
        kwargs["transport"] = transport
    elif settings.proxy:
        kwargs["proxy"] = settings.proxy
    return httpx.AsyncClient(**kwargs)


def make_api_launcher(
    diagnostics: Optional[DiagnosticsBuffer] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
):
    """
    Return the launcher coroutine the API SessionManager calls.

    `transport` lets tests plug in httpx.MockTransport.
    """

    async def launch(settings: ApiSettings) -> ApiSession:
        logger.info(f"Creating HTTP client (proxy={settings.proxy or 'none'}, verify_ssl={settings.verify_ssl})")
        return ApiSession(build_client(settings, diagnostics, transport), settings)

    return launch


__all__ = ["ApiSession", "build_client", "make_api_launcher"]
