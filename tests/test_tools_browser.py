# tests/test_tools_browser.py
"""
Browser tools driven through the Dispatcher against a FakeSession whose
driver is a MagicMock. Element lookups are patched where a tool waits on
WebDriverWait.
"""

import asyncio
import base64
from unittest.mock import MagicMock

import pytest

import mcp_browser_tools.tools.extraction as extraction
import mcp_browser_tools.tools.interaction as interaction
import mcp_browser_tools.tools.screenshots as screenshots
from mcp_browser_tools.dispatcher import Dispatcher
from mcp_browser_tools.envelope import BinaryContent, ErrorKind
from mcp_browser_tools.tools import build_registry

from _utils import FakeLauncher, make_context

## We DO NOT want to use pytest-asyncio.
## Instead, use event_loop.run_until_complete()!


@pytest.fixture(scope="function")
def event_loop():
    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)
    yield loop
    loop.close()


@pytest.fixture
def harness(event_loop, tmp_path):
    ctx, launcher = make_context(screenshot_dir=str(tmp_path))
    dispatcher = Dispatcher(build_registry(), ctx)

    def call(name, arguments=None):
        return event_loop.run_until_complete(dispatcher.call(name, arguments or {}))

    # open the browser so tests can reach the driver
    assert call("navigate", {"url": "https://example.com"}).ok
    return call, launcher.last.driver, ctx, launcher


@pytest.fixture
def element(monkeypatch):
    el = MagicMock(name="element")
    found = []

    def fake_find(driver, selector, **kwargs):
        found.append(selector)
        return el

    monkeypatch.setattr(interaction, "find_element", fake_find)
    monkeypatch.setattr(extraction, "find_element", fake_find)
    monkeypatch.setattr(screenshots, "find_element", fake_find)
    el.found = found
    return el


def test_navigate_resizes_only_when_asked(harness):
    call, driver, _, _ = harness
    driver.set_window_size.assert_not_called()

    env = call("navigate", {"url": "https://example.org", "width": 800, "height": 600})
    assert env.ok
    driver.set_window_size.assert_called_once_with(800, 600)


def test_navigate_rejects_tiny_viewport(harness):
    call, _, _, launcher = harness
    env = call("navigate", {"url": "https://example.org", "width": 10})
    assert env.error_kind is ErrorKind.INVALID_ARGUMENTS
    assert launcher.count == 1


def test_headless_change_relaunches(harness):
    call, _, _, launcher = harness
    env = call("navigate", {"url": "https://example.org", "headless": False})
    assert env.ok
    assert launcher.count == 2
    assert launcher.last.settings.headless is False


def test_history_and_resize(harness):
    call, driver, _, _ = harness
    assert call("go_back").texts == ["Navigated back in browser history"]
    assert call("go_forward").texts == ["Navigated forward in browser history"]
    assert call("resize", {"width": 1024, "height": 768}).texts == ["Browser window resized to 1024x768"]
    driver.back.assert_called_once()
    driver.forward.assert_called_once()
    driver.set_window_size.assert_called_with(1024, 768)


def test_short_navigate_timeout_does_not_leak_into_later_calls(harness):
    call, driver, _, launcher = harness
    default_secs = launcher.last.settings.timeout_ms / 1000.0
    driver.set_page_load_timeout.reset_mock()

    assert call("navigate", {"url": "https://example.org", "timeout": 100}).ok
    assert [c.args for c in driver.set_page_load_timeout.call_args_list] == [(0.1,), (default_secs,)]

    def back():
        # history navigation runs under the session's own page-load timeout
        assert driver.set_page_load_timeout.call_args.args == (default_secs,)

    driver.back.side_effect = back
    assert call("go_back").ok


def test_evaluate_restores_script_timeout(harness):
    call, driver, _, launcher = harness
    driver.execute_async_script.return_value = {"ok": True, "value": 1}
    assert call("evaluate", {"script": "1", "timeout": 250}).ok
    assert [c.args for c in driver.set_script_timeout.call_args_list][-2:] == [
        (0.25,),
        (launcher.last.settings.timeout_ms / 1000.0,),
    ]


class AgentEchoLauncher(FakeLauncher):
    """Sessions whose page reports the user agent they were launched with."""

    async def __call__(self, settings):
        session = await super().__call__(settings)
        session.driver.script_result = settings.user_agent
        return session


def test_custom_user_agent_relaunches_with_agent(event_loop):
    ctx, launcher = make_context(browser_launcher=AgentEchoLauncher())
    dispatcher = Dispatcher(build_registry(), ctx)

    async def scenario():
        await dispatcher.call("navigate", {"url": "https://example.com"})
        return await dispatcher.call("custom_user_agent", {"user_agent": "TestBot/1.0"})

    env = event_loop.run_until_complete(scenario())
    assert env.ok, env.message
    assert env.texts == ["User agent set to: TestBot/1.0"]
    assert launcher.count == 2
    assert launcher.last.settings.user_agent == "TestBot/1.0"


def test_custom_user_agent_mismatch_fails(event_loop):
    ctx, launcher = make_context(user_agent="A")
    dispatcher = Dispatcher(build_registry(), ctx)

    async def scenario():
        await dispatcher.call("navigate", {"url": "https://example.com"})
        launcher.last.driver.script_result = "B"
        return await dispatcher.call("custom_user_agent", {"user_agent": "A"})

    env = event_loop.run_until_complete(scenario())
    assert env.error_kind is ErrorKind.OPERATION_FAILED
    assert "Expected: A" in env.message
    assert launcher.count == 1


def test_click_and_fill(harness, element):
    call, driver, _, _ = harness
    assert call("click", {"selector": "#submit"}).texts == ["Clicked element: #submit"]
    element.click.assert_called_once()

    env = call("fill", {"selector": "input[name=q]", "value": "selenium"})
    assert env.texts == ["Filled input[name=q] with: selenium"]
    element.clear.assert_called_once()
    element.send_keys.assert_called_with("selenium")


def test_iframe_click_switches_back(harness, element, monkeypatch):
    call, driver, _, _ = harness
    switched = []

    class FakeWait:
        def __init__(self, drv, timeout):
            pass

        def until(self, condition):
            switched.append("in")
            return True

    monkeypatch.setattr("mcp_browser_tools.actions.elements.WebDriverWait", FakeWait)
    env = call("iframe_click", {"selector": "button", "iframe_selector": "#frame"})
    assert env.ok, env.message
    assert switched == ["in"]
    driver.switch_to.default_content.assert_called()


def test_missing_element_is_operation_failure(harness, monkeypatch):
    call, _, _, _ = harness
    from selenium.common.exceptions import TimeoutException

    def missing(*a, **k):
        raise TimeoutException("no such element: #nope")

    monkeypatch.setattr(interaction, "find_element", missing)
    env = call("hover", {"selector": "#nope"})
    assert env.error_kind is ErrorKind.OPERATION_TIMEOUT
    assert "#nope" in env.message


def test_press_key_uses_parsed_combo(harness, monkeypatch):
    call, driver, _, _ = harness
    pressed = []
    monkeypatch.setattr(interaction, "_press_key", lambda d, key, selector, timeout: pressed.append((key, selector)))
    assert call("press_key", {"key": "Control+A"}).texts == ["Pressed key: Control+A"]
    assert pressed == [("Control+A", None)]


def test_upload_file_requires_existing_file(harness, element, tmp_path):
    call, _, _, _ = harness
    env = call("upload_file", {"selector": "input[type=file]", "file_path": str(tmp_path / "missing.txt")})
    assert env.error_kind is ErrorKind.OPERATION_FAILED
    element.send_keys.assert_not_called()

    doc = tmp_path / "doc.txt"
    doc.write_text("hi")
    env = call("upload_file", {"selector": "input[type=file]", "file_path": str(doc)})
    assert env.ok
    element.send_keys.assert_called_once_with(str(doc))


def test_get_visible_text_truncates(harness):
    call, driver, _, _ = harness
    driver.script_result = "x" * 50
    env = call("get_visible_text", {"max_length": 10})
    assert env.texts[0].startswith("Visible text content:\nxxxxxxxxxx")
    assert "truncated" in env.texts[0]


def test_get_visible_html_strips_scripts(harness):
    call, driver, _, _ = harness
    driver.page_source = "<html><body><script>track()</script><p>Hello</p></body></html>"
    env = call("get_visible_html")
    assert env.ok
    assert "<p>Hello</p>" in env.texts[0]
    assert "track()" not in env.texts[0]


def test_evaluate_returns_json(harness):
    call, driver, _, _ = harness
    driver.execute_async_script.return_value = {"ok": True, "value": {"title": "Example"}}
    env = call("evaluate", {"script": "({title: document.title})"})
    assert env.ok
    assert '"title": "Example"' in env.texts[0]
    driver.set_script_timeout.assert_called()


def test_evaluate_script_error(harness):
    call, driver, _, _ = harness
    driver.execute_async_script.return_value = {"ok": False, "error": "foo is not defined"}
    env = call("evaluate", {"script": "foo()"})
    assert env.error_kind is ErrorKind.OPERATION_FAILED
    assert "foo is not defined" in env.message


def test_screenshot_returns_png(harness):
    call, driver, _, _ = harness
    driver.get_screenshot_as_png.return_value = b"\x89PNGdata"
    env = call("screenshot", {"name": "home"})
    assert env.ok
    assert env.texts == ["Screenshot 'home' taken"]
    image = env.content[1]
    assert isinstance(image, BinaryContent)
    assert image.mime_type == "image/png"
    assert image.data == b"\x89PNGdata"


def test_screenshot_can_be_saved(harness, tmp_path):
    call, driver, _, _ = harness
    driver.get_screenshot_as_png.return_value = b"\x89PNGdata"
    env = call("screenshot", {"name": "saved", "save_png": True, "store_base64": False})
    assert env.ok
    assert len(env.content) == 1
    files = list(tmp_path.glob("saved-*.png"))
    assert len(files) == 1
    assert files[0].read_bytes() == b"\x89PNGdata"


def test_element_screenshot(harness, element):
    call, _, _, _ = harness
    element.screenshot_as_png = b"\x89PNGelement"
    env = call("screenshot", {"selector": "#logo"})
    assert env.content[1].data == b"\x89PNGelement"
    assert element.found == ["#logo"]


def test_save_as_pdf_writes_file(harness, tmp_path):
    call, driver, _, _ = harness
    driver.print_page.return_value = base64.b64encode(b"%PDF-1.4").decode()
    env = call("save_as_pdf", {"name": "report"})
    assert env.ok
    target = tmp_path / "report.pdf"
    assert env.texts == [f"Saved page as PDF: {target}"]
    assert target.read_bytes() == b"%PDF-1.4"


def test_close_without_browser(event_loop):
    ctx, launcher = make_context()
    dispatcher = Dispatcher(build_registry(), ctx)
    env = event_loop.run_until_complete(dispatcher.call("close", {}))
    assert env.texts == ["No browser was open"]
    assert launcher.count == 0


def test_close_clears_diagnostics(harness):
    call, _, ctx, _ = harness
    ctx.diagnostics.add("console-api", "stale")
    assert call("close").texts == ["Browser closed"]
    assert len(ctx.diagnostics) == 0


def test_close_without_browser_keeps_api_records(event_loop):
    ctx, _ = make_context()
    dispatcher = Dispatcher(build_registry(), ctx)
    ctx.diagnostics.add("api", "GET https://api.example.com -> 200", level="INFO")

    env = event_loop.run_until_complete(dispatcher.call("close", {}))

    assert env.texts == ["No browser was open"]
    assert [e.source for e in ctx.diagnostics.snapshot()] == ["api"]
