"""Page content tools: visible text, cleaned HTML and script evaluation."""

import json
from typing import Optional

from pydantic import Field

from .arguments import TimedArgs
from ..actions.elements import element_wait_secs, find_element
from ..cleaners import clean_html, truncate
from ..constants import MAX_SCRIPT_RESULT_CHARS, MAX_TEXT_CHARS
from ..errors import ToolOperationError
from ..registry import tool

# Text nodes of rendered elements only, one per line
_VISIBLE_TEXT_JS = r"""
const root = arguments[0] || document.body;
if (!root) { return ''; }
const walker = document.createTreeWalker(root, NodeFilter.SHOW_TEXT, {
  acceptNode(node) {
    const el = node.parentElement;
    if (!el) return NodeFilter.FILTER_REJECT;
    const tag = el.tagName;
    if (tag === 'SCRIPT' || tag === 'STYLE' || tag === 'NOSCRIPT') return NodeFilter.FILTER_REJECT;
    const style = window.getComputedStyle(el);
    if (style.display === 'none' || style.visibility === 'hidden' || style.opacity === '0') {
      return NodeFilter.FILTER_REJECT;
    }
    return node.textContent.trim() ? NodeFilter.FILTER_ACCEPT : NodeFilter.FILTER_REJECT;
  }
});
const parts = [];
let node;
while ((node = walker.nextNode())) { parts.push(node.textContent.trim()); }
return parts.join('\n');
"""

_EVALUATE_JS = r"""
const done = arguments[arguments.length - 1];
const describe = (err) => String((err && err.message) || err);
try {
  Promise.resolve(eval(arguments[0])).then(
    (value) => done({ok: true, value: value === undefined ? null : value}),
    (err) => done({ok: false, error: describe(err)})
  );
} catch (err) {
  done({ok: false, error: describe(err)});
}
"""


class VisibleTextArgs(TimedArgs):
    selector: Optional[str] = Field(default=None, description="Limit extraction to this element")
    max_length: int = Field(default=MAX_TEXT_CHARS, ge=1, description="Truncate the text after this many characters")


class VisibleHtmlArgs(TimedArgs):
    selector: Optional[str] = Field(default=None, description="Return only this element's outer HTML")
    clean: bool = Field(default=False, description="Remove scripts, styles, comments, meta, ads and hidden elements")
    remove_scripts: bool = Field(default=True, description="Remove <script> tags")
    remove_styles: bool = Field(default=False, description="Remove <style> tags, stylesheet links and inline styles")
    remove_comments: bool = Field(default=False, description="Remove HTML comments")
    remove_meta: bool = Field(default=False, description="Remove <meta> tags")
    minify: bool = Field(default=False, description="Collapse whitespace")
    max_length: int = Field(default=MAX_TEXT_CHARS, ge=1, description="Truncate the HTML after this many characters")


class EvaluateArgs(TimedArgs):
    script: str = Field(min_length=1, description="JavaScript expression to evaluate; promises are awaited")


def _visible_text(driver, selector: Optional[str], timeout: float) -> str:
    root = find_element(driver, selector, timeout=timeout) if selector else None
    return driver.execute_script(_VISIBLE_TEXT_JS, root) or ""


def _page_html(driver, selector: Optional[str], timeout: float) -> str:
    if selector:
        return find_element(driver, selector, timeout=timeout).get_attribute("outerHTML") or ""
    return driver.page_source or ""


def _evaluate(driver, script: str, timeout_secs: float, restore_secs: float):
    driver.set_script_timeout(timeout_secs)
    try:
        return driver.execute_async_script(_EVALUATE_JS, script)
    finally:
        driver.set_script_timeout(restore_secs)


@tool("get_visible_text", VisibleTextArgs, session="browser")
async def get_visible_text(args: VisibleTextArgs, ctx):
    """Get the visible text content of the current page."""
    text = await ctx.session.run(_visible_text, ctx.driver, args.selector, element_wait_secs(ctx.timeout_ms))
    text, _ = truncate(text, args.max_length)
    return f"Visible text content:\n{text}"


@tool("get_visible_html", VisibleHtmlArgs, session="browser")
async def get_visible_html(args: VisibleHtmlArgs, ctx):
    """
    Get the HTML of the current page, optionally limited to one element and cleaned.

    By default scripts are removed; `clean` additionally strips styles,
    comments, meta tags, ads, trackers and hidden elements.
    """
    raw = await ctx.session.run(_page_html, ctx.driver, args.selector, element_wait_secs(ctx.timeout_ms))
    html, _counts = clean_html(
        raw,
        remove_scripts=args.remove_scripts,
        remove_styles=args.remove_styles,
        remove_comments=args.remove_comments,
        remove_meta=args.remove_meta,
        clean=args.clean,
        minify=args.minify,
    )
    html, _ = truncate(html, args.max_length)
    return f"HTML content:\n{html}"


@tool("evaluate", EvaluateArgs, session="browser")
async def evaluate(args: EvaluateArgs, ctx):
    """Execute JavaScript in the page and return the JSON-serialized result."""
    outcome = await ctx.session.run(
        _evaluate, ctx.driver, args.script, ctx.timeout_ms / 1000.0, ctx.session_timeout_ms / 1000.0
    )
    if not isinstance(outcome, dict) or "ok" not in outcome:
        raise ToolOperationError("script evaluation returned no result")
    if not outcome["ok"]:
        raise ToolOperationError(f"script error: {outcome.get('error')}")

    rendered = json.dumps(outcome.get("value"), ensure_ascii=False, indent=2, default=str)
    rendered, _ = truncate(rendered, MAX_SCRIPT_RESULT_CHARS)
    return f"Executed JavaScript:\n{args.script}\n\nResult:\n{rendered}"


__all__ = ["get_visible_text", "get_visible_html", "evaluate"]
