"""Element finding helpers. All functions are blocking; tools call them through session.run()."""

import contextlib
from typing import Optional, Tuple

from selenium.webdriver.common.by import By
from selenium.webdriver.remote.webdriver import WebDriver
from selenium.webdriver.remote.webelement import WebElement
from selenium.webdriver.support import expected_conditions as EC
from selenium.webdriver.support.ui import WebDriverWait

DEFAULT_ELEMENT_WAIT_SECS = 10.0


def resolve_locator(selector: str) -> Tuple[str, str]:
    """
    Turn an agent-supplied selector into a Selenium locator.

    "xpath=//a", "//a" and "(//a)[1]" are XPath; "text=Sign in" matches an
    element by its exact visible text; "id=main" is an id; anything else is CSS.
    """
    s = (selector or "").strip()
    if not s:
        raise ValueError("selector must not be empty")
    if s.startswith("xpath="):
        return By.XPATH, s[len("xpath="):]
    if s.startswith("//") or s.startswith("(//"):
        return By.XPATH, s
    if s.startswith("text="):
        text = s[len("text="):].strip().strip('"\'')
        return By.XPATH, f"//*[normalize-space(text())={_xpath_literal(text)}]"
    if s.startswith("id="):
        return By.ID, s[len("id="):]
    if s.startswith("css="):
        return By.CSS_SELECTOR, s[len("css="):]
    return By.CSS_SELECTOR, s


def _xpath_literal(value: str) -> str:
    if "'" not in value:
        return f"'{value}'"
    if '"' not in value:
        return f'"{value}"'
    parts = value.split("'")
    return "concat(" + ", \"'\", ".join(f"'{p}'" for p in parts) + ")"


def find_element(
    driver: WebDriver,
    selector: str,
    timeout: float = DEFAULT_ELEMENT_WAIT_SECS,
    visible_only: bool = False,
    clickable: bool = False,
) -> WebElement:
    """
    Wait for and return the element matching `selector`.

    Raises selenium TimeoutException when nothing matches within `timeout`.
    """
    locator = resolve_locator(selector)
    wait = WebDriverWait(driver, timeout)
    if clickable:
        return wait.until(EC.element_to_be_clickable(locator))
    if visible_only:
        return wait.until(EC.visibility_of_element_located(locator))
    return wait.until(EC.presence_of_element_located(locator))


@contextlib.contextmanager
def inside_iframe(driver: WebDriver, iframe_selector: Optional[str], timeout: float = DEFAULT_ELEMENT_WAIT_SECS):
    """
    Switch into `iframe_selector` for the duration of the block and always
    restore the top-level document afterwards.
    """
    if not iframe_selector:
        yield driver
        return
    WebDriverWait(driver, timeout).until(
        EC.frame_to_be_available_and_switch_to_it(resolve_locator(iframe_selector))
    )
    try:
        yield driver
    finally:
        with contextlib.suppress(Exception):
            driver.switch_to.default_content()


def element_wait_secs(timeout_ms: int) -> float:
    """Element waits use the call timeout, capped so the call itself times out first."""
    if not timeout_ms:
        return DEFAULT_ELEMENT_WAIT_SECS
    return max(0.1, min(timeout_ms / 1000.0 * 0.9, 60.0))


__all__ = [
    "resolve_locator",
    "find_element",
    "inside_iframe",
    "element_wait_secs",
]
