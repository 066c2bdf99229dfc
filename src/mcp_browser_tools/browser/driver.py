"""WebDriver creation, liveness and teardown for the browser session."""

import asyncio
import dataclasses
import time
from typing import Callable, Optional

import psutil
from selenium import webdriver
from selenium.common.exceptions import (
    NoSuchWindowException,
    WebDriverException,
)

from .settings import BrowserSettings
from ..utils.diagnostics import DiagnosticsBuffer, collect_diagnostics

import logging
logger = logging.getLogger(__name__)


# Chrome log levels -> console message types reported by console_logs
_LEVELS = {
    "SEVERE": "error",
    "WARNING": "warning",
    "INFO": "info",
    "DEBUG": "debug",
    "FINE": "debug",
}


def build_chrome_options(settings: BrowserSettings) -> webdriver.ChromeOptions:
    opts = webdriver.ChromeOptions()
    if settings.headless:
        opts.add_argument("--headless=new")
    opts.add_argument(f"--window-size={int(settings.width)},{int(settings.height)}")
    opts.add_argument("--no-sandbox")
    opts.add_argument("--disable-dev-shm-usage")
    opts.add_argument("--no-first-run")
    opts.add_argument("--no-default-browser-check")
    # get() returns at DOMContentLoaded; navigate waits for the full load itself
    opts.page_load_strategy = "eager"
    if settings.user_agent:
        opts.add_argument(f"--user-agent={settings.user_agent}")
    if settings.proxy:
        opts.add_argument(f"--proxy-server={settings.proxy}")
    if settings.chrome_path:
        opts.binary_location = settings.chrome_path
    # Console output is pulled from the "browser" log after each tool call
    opts.set_capability("goog:loggingPrefs", {"browser": "ALL"})
    return opts


def create_webdriver(settings: BrowserSettings) -> webdriver.Chrome:
    """
    Launch Chrome and return a configured driver.

    If any post-launch configuration step fails the browser is quit before the
    error propagates, so no half-initialized driver survives.
    """
    driver = webdriver.Chrome(options=build_chrome_options(settings))
    try:
        timeout_s = max(settings.timeout_ms, 1) / 1000.0
        driver.set_page_load_timeout(timeout_s)
        driver.set_script_timeout(timeout_s)
        if not settings.headless:
            driver.set_window_size(settings.width, settings.height)
    except Exception:
        quit_driver(driver)
        raise
    return driver


def _kill_driver_processes(driver) -> None:
    """Kill chromedriver and every browser process it spawned."""
    service = getattr(driver, "service", None)
    proc = getattr(service, "process", None)
    pid = getattr(proc, "pid", None)
    if not pid:
        return
    try:
        root = psutil.Process(pid)
        victims = root.children(recursive=True) + [root]
    except psutil.Error:
        return
    for p in victims:
        try:
            p.kill()
        except psutil.Error:
            pass
    psutil.wait_procs(victims, timeout=3)


def quit_driver(driver) -> None:
    try:
        driver.quit()
    except Exception as e:
        logger.warning(f"driver.quit() failed ({type(e).__name__}); killing chromedriver process tree")
        _kill_driver_processes(driver)


class BrowserSession:
    """A live Chrome window driven through Selenium."""

    kind = "browser"

    def __init__(
        self,
        driver: webdriver.Chrome,
        settings: BrowserSettings,
        diagnostics: Optional[DiagnosticsBuffer] = None,
    ):
        self.driver = driver
        self.settings = settings
        self.diagnostics = diagnostics
        self.created_at = time.time()
        self._pending: Optional[asyncio.Future] = None

    @property
    def busy(self) -> bool:
        """A driver command is still running in a worker thread."""
        return self._pending is not None and not self._pending.done()

    async def settle(self) -> None:
        """
        Wait for a driver command left running by a timed-out call.

        A cancelled await does not stop the worker thread, and chromedriver
        handles one command per session at a time, so the next command must
        not start before the abandoned one is done.
        """
        pending = self._pending
        if pending is None or pending.done():
            return
        logger.debug("Waiting for an abandoned driver command to finish")
        try:
            await asyncio.shield(pending)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.debug(f"abandoned driver command failed: {type(e).__name__}")

    async def run(self, fn: Callable, *args, **kwargs):
        """Run a blocking driver call in a worker thread, one at a time."""
        await self.settle()
        task = asyncio.ensure_future(asyncio.to_thread(fn, *args, **kwargs))
        self._pending = task
        # shield: cancelling the caller leaves the command tracked in _pending
        return await asyncio.shield(task)

    async def is_alive(self) -> bool:
        # A probe would queue behind the running command; run() settles it instead
        if self.busy:
            return True
        return await asyncio.to_thread(self._probe)

    def _probe(self) -> bool:
        if not getattr(self.driver, "session_id", None):
            return False
        try:
            self.driver.current_window_handle
            return True
        except NoSuchWindowException:
            # Active tab was closed; fall back to any remaining window
            try:
                handles = self.driver.window_handles
                if not handles:
                    return False
                self.driver.switch_to.window(handles[-1])
                return True
            except WebDriverException:
                return False
        except WebDriverException:
            return False

    async def close(self) -> None:
        await asyncio.to_thread(quit_driver, self.driver)

    def collect_console(self) -> int:
        """
        Move pending entries from Chrome's browser log into the diagnostics
        buffer. Returns the number of entries recorded. Drivers without log
        support record nothing.
        """
        if self.diagnostics is None:
            return 0
        try:
            entries = self.driver.get_log("browser") or []
        except Exception as e:
            logger.debug(f"browser log unavailable: {type(e).__name__}")
            return 0
        count = 0
        for raw in entries:
            level = _LEVELS.get(str(raw.get("level", "INFO")).upper(), "info")
            ts = raw.get("timestamp")
            self.diagnostics.add(
                source=str(raw.get("source") or "console-api"),
                message=str(raw.get("message", "")),
                level=level,
                timestamp=(ts / 1000.0) if isinstance(ts, (int, float)) else None,
            )
            count += 1
        return count


def make_browser_launcher(diagnostics: Optional[DiagnosticsBuffer] = None):
    """Return the launcher coroutine the browser SessionManager calls."""

    async def launch(settings: BrowserSettings) -> BrowserSession:
        logger.info(
            f"Launching Chrome (headless={settings.headless}, "
            f"{settings.width}x{settings.height}, proxy={settings.proxy or 'none'})"
        )
        try:
            driver = await asyncio.to_thread(create_webdriver, settings)
        except WebDriverException as e:
            logger.warning("Chrome launch failed\n" + collect_diagnostics(dataclasses.asdict(settings), e))
            raise
        return BrowserSession(driver, settings, diagnostics)

    return launch


__all__ = [
    "BrowserSession",
    "build_chrome_options",
    "create_webdriver",
    "quit_driver",
    "make_browser_launcher",
]
