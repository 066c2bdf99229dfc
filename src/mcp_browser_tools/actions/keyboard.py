"""Keyboard input: key-name parsing and key presses."""

from typing import List, Optional

from selenium.webdriver.common.action_chains import ActionChains
from selenium.webdriver.common.keys import Keys

from .elements import find_element

# Accepts both DOM key names ("ArrowDown") and Selenium-style names ("ARROW_DOWN")
_KEY_ALIASES = {
    "enter": Keys.ENTER,
    "return": Keys.RETURN,
    "tab": Keys.TAB,
    "escape": Keys.ESCAPE,
    "esc": Keys.ESCAPE,
    "backspace": Keys.BACKSPACE,
    "delete": Keys.DELETE,
    "space": Keys.SPACE,
    " ": Keys.SPACE,
    "arrowup": Keys.ARROW_UP,
    "arrowdown": Keys.ARROW_DOWN,
    "arrowleft": Keys.ARROW_LEFT,
    "arrowright": Keys.ARROW_RIGHT,
    "home": Keys.HOME,
    "end": Keys.END,
    "pageup": Keys.PAGE_UP,
    "pagedown": Keys.PAGE_DOWN,
    "insert": Keys.INSERT,
    "shift": Keys.SHIFT,
    "control": Keys.CONTROL,
    "ctrl": Keys.CONTROL,
    "alt": Keys.ALT,
    "meta": Keys.META,
    "command": Keys.COMMAND,
    **{f"f{i}": getattr(Keys, f"F{i}") for i in range(1, 13)},
}

_MODIFIERS = {Keys.SHIFT, Keys.CONTROL, Keys.ALT, Keys.META, Keys.COMMAND}


def parse_key(name: str) -> str:
    """Map one key name to the character Selenium sends. Single characters pass through."""
    if len(name) == 1:
        return name
    normalized = name.replace("_", "").replace("-", "").lower()
    try:
        return _KEY_ALIASES[normalized]
    except KeyError:
        raise ValueError(f"Unknown key: {name!r}") from None


def parse_combo(key: str) -> List[str]:
    """
    Split "Control+Shift+A" into modifiers followed by the main key.

    Only the last part may be a regular key; "a+b" raises ValueError.
    """
    if key == "+":
        return ["+"]
    parts = [p for p in key.split("+") if p]
    if not parts:
        raise ValueError("key must not be empty")
    keys = [parse_key(p) for p in parts]
    for name, k in zip(parts[:-1], keys[:-1]):
        if k not in _MODIFIERS:
            raise ValueError(f"{name!r} is not a modifier; only the last key of a combination may be a regular key")
    return keys


def press_key(driver, key: str, selector: Optional[str] = None, timeout: float = 10.0) -> None:
    keys = parse_combo(key)
    actions = ActionChains(driver)
    if selector:
        element = find_element(driver, selector, timeout=timeout)
        actions.click(element)
    modifiers = keys[:-1]
    for m in modifiers:
        actions.key_down(m)
    actions.send_keys(keys[-1])
    for m in reversed(modifiers):
        actions.key_up(m)
    actions.perform()


__all__ = ["parse_key", "parse_combo", "press_key"]
