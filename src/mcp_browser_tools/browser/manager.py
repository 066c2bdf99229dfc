"""
Lifecycle of the single shared automation session.

One SessionManager exists per session kind ("browser", "api"). It hands out
the live session, relaunches it when it died or when a call asks for
incompatible settings, and discards it on reset.

Locking:
    launch_lock  -- held only while deciding whether to reuse or launch. Two
                    calls racing to acquire observe one launch.
    use_lock     -- held by the dispatcher for acquire + execute of a
                    session-bound tool call, so calls against one session run
                    one at a time.
"""

import asyncio
from typing import Any, Awaitable, Callable, List, Mapping, Optional, Protocol

from .settings import is_compatible, merge_settings
from ..constants import SESSION_CLOSE_TIMEOUT_SECS
from ..errors import SessionLaunchError

import logging
logger = logging.getLogger(__name__)


class Session(Protocol):
    kind: str
    settings: Any

    async def is_alive(self) -> bool: ...

    async def close(self) -> None: ...


Launcher = Callable[[Any], Awaitable[Session]]


def describe_error(exc: BaseException) -> str:
    # Selenium exceptions carry the chromedriver stacktrace in str(); .msg is the message alone.
    msg = getattr(exc, "msg", None)
    if isinstance(msg, str) and msg.strip():
        return msg.strip().splitlines()[0]
    text = str(exc).strip()
    if not text:
        return type(exc).__name__
    return text.splitlines()[0]


class SessionManager:
    def __init__(
        self,
        kind: str,
        defaults: Any,
        launcher: Launcher,
        on_reset: Optional[Callable[[], None]] = None,
    ):
        self.kind = kind
        self.defaults = defaults
        self._launcher = launcher
        self._on_reset: List[Callable[[], None]] = [on_reset] if on_reset else []
        self._session: Optional[Session] = None
        self._launch_lock = asyncio.Lock()
        self.use_lock = asyncio.Lock()
        self.generation = 0
        self.launch_count = 0

    @property
    def current(self) -> Optional[Session]:
        """The installed session, without probing it."""
        return self._session

    def add_reset_hook(self, hook: Callable[[], None]) -> None:
        self._on_reset.append(hook)

    async def is_alive(self, session: Optional[Session]) -> bool:
        if session is None:
            return False
        try:
            return bool(await session.is_alive())
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.debug(f"{self.kind} liveness probe failed: {describe_error(e)}")
            return False

    async def acquire(self, overrides: Optional[Mapping[str, Any]] = None) -> Session:
        """
        Return the live session when it is usable and compatible with
        `overrides`; otherwise discard it and launch a new one.

        Raises SessionLaunchError if the launch fails. In that case no session
        is installed.
        """
        overrides = dict(overrides or {})
        async with self._launch_lock:
            session = self._session
            if session is not None:
                alive = await self.is_alive(session)
                if alive and is_compatible(session.settings, overrides):
                    return session
                reason = "settings changed" if alive else "session is no longer alive"
                logger.info(f"Relaunching {self.kind} session ({reason})")
                self._session = None
                await self._close_quietly(session)
                self._fire_reset_hooks()

            settings = merge_settings(self.defaults, overrides)
            try:
                session = await self._launcher(settings)
            except asyncio.CancelledError:
                raise
            except SessionLaunchError:
                raise
            except Exception as e:
                logger.warning(f"{self.kind} session launch failed: {describe_error(e)}")
                raise SessionLaunchError(self.kind, describe_error(e)) from e

            self._session = session
            self.generation += 1
            self.launch_count += 1
            logger.info(f"Launched {self.kind} session (generation {self.generation})")
            return session

    async def reset(self) -> bool:
        """
        Discard the current session. The underlying resource is closed on a
        best-effort basis; close errors are logged and swallowed.

        Returns True if a session was installed. Reset hooks fire only then.
        """
        async with self._launch_lock:
            session = self._session
            self._session = None
            if session is not None:
                await self._close_quietly(session)
                self._fire_reset_hooks()
        if session is not None:
            logger.info(f"{self.kind} session reset")
        return session is not None

    async def shutdown(self) -> None:
        await self.reset()

    async def _close_quietly(self, session: Session) -> None:
        try:
            await asyncio.wait_for(session.close(), timeout=SESSION_CLOSE_TIMEOUT_SECS)
        except asyncio.TimeoutError:
            logger.warning(f"Closing {self.kind} session did not finish within {SESSION_CLOSE_TIMEOUT_SECS}s; abandoned")
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.warning(f"Ignoring error while closing {self.kind} session: {describe_error(e)}")

    def _fire_reset_hooks(self) -> None:
        for hook in self._on_reset:
            try:
                hook()
            except Exception as e:
                logger.warning(f"{self.kind} reset hook failed: {describe_error(e)}")


__all__ = ["Session", "Launcher", "SessionManager", "describe_error"]
