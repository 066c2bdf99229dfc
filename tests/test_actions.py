# tests/test_actions.py
import pytest
from selenium.webdriver.common.by import By
from selenium.webdriver.common.keys import Keys

from mcp_browser_tools.actions.elements import element_wait_secs, resolve_locator
from mcp_browser_tools.actions.keyboard import parse_combo, parse_key, press_key
from mcp_browser_tools.browser.driver import build_chrome_options
from mcp_browser_tools.browser.settings import BrowserSettings

from _utils import make_driver


@pytest.mark.parametrize(
    "selector, expected",
    [
        ("#submit", (By.CSS_SELECTOR, "#submit")),
        ("css=div > a", (By.CSS_SELECTOR, "div > a")),
        ("//button[@type='submit']", (By.XPATH, "//button[@type='submit']")),
        ("(//a)[2]", (By.XPATH, "(//a)[2]")),
        ("xpath=//h1", (By.XPATH, "//h1")),
        ("id=main", (By.ID, "main")),
        ("text=Sign in", (By.XPATH, "//*[normalize-space(text())='Sign in']")),
    ],
)
def test_resolve_locator(selector, expected):
    assert resolve_locator(selector) == expected


def test_text_locator_with_both_quote_kinds():
    by, xpath = resolve_locator('text=It\'s a "fine" day')
    assert by == By.XPATH
    assert xpath.startswith("//*[normalize-space(text())=concat(")


def test_empty_selector_is_rejected():
    with pytest.raises(ValueError):
        resolve_locator("   ")


def test_element_wait_is_shorter_than_call_timeout():
    assert element_wait_secs(1000) == pytest.approx(0.9)
    assert element_wait_secs(600_000) == 60.0
    assert element_wait_secs(0) == 10.0


def test_parse_key_names():
    assert parse_key("Enter") == Keys.ENTER
    assert parse_key("ARROW_DOWN") == Keys.ARROW_DOWN
    assert parse_key("ArrowDown") == Keys.ARROW_DOWN
    assert parse_key("F5") == Keys.F5
    assert parse_key("a") == "a"
    with pytest.raises(ValueError):
        parse_key("Hyper")


def test_parse_combo():
    assert parse_combo("Control+Shift+A") == [Keys.CONTROL, Keys.SHIFT, "A"]
    assert parse_combo("+") == ["+"]


def test_parse_combo_rejects_regular_key_before_the_last():
    with pytest.raises(ValueError, match="not a modifier"):
        parse_combo("a+b")
    with pytest.raises(ValueError, match="not a modifier"):
        parse_combo("Control+Enter+A")
    assert parse_combo("Alt+Enter") == [Keys.ALT, Keys.ENTER]


def test_press_key_wraps_modifiers(monkeypatch):
    calls = []

    class FakeChain:
        def __init__(self, driver):
            pass

        def __getattr__(self, name):
            def record(*args):
                calls.append((name, args))
                return self
            return record

    monkeypatch.setattr("mcp_browser_tools.actions.keyboard.ActionChains", FakeChain)
    press_key(make_driver(), "Control+a")
    assert calls == [
        ("key_down", (Keys.CONTROL,)),
        ("send_keys", ("a",)),
        ("key_up", (Keys.CONTROL,)),
        ("perform", ()),
    ]


def test_chrome_options_follow_settings():
    opts = build_chrome_options(
        BrowserSettings(headless=True, width=800, height=600, user_agent="Bot/1", proxy="http://p:1")
    )
    args = opts.arguments
    assert "--headless=new" in args
    assert "--window-size=800,600" in args
    assert "--user-agent=Bot/1" in args
    assert "--proxy-server=http://p:1" in args
    assert opts.to_capabilities()["goog:loggingPrefs"] == {"browser": "ALL"}


def test_headed_options_skip_headless_flag():
    assert "--headless=new" not in build_chrome_options(BrowserSettings(headless=False)).arguments
