"""Screenshot and PDF capture tools."""

import base64
import datetime
from pathlib import Path
from typing import Optional

from pydantic import Field
from selenium.webdriver.common.print_page_options import PrintOptions

from .arguments import TimedArgs
from ..actions.elements import element_wait_secs, find_element
from ..envelope import BinaryContent
from ..registry import tool

import logging
logger = logging.getLogger(__name__)


class ScreenshotArgs(TimedArgs):
    name: str = Field(default="screenshot", min_length=1, description="Name for the screenshot")
    selector: Optional[str] = Field(default=None, description="Capture only this element")
    full_page: bool = Field(default=False, description="Capture the whole scrollable page instead of the viewport")
    store_base64: bool = Field(default=True, description="Return the image in the result")
    save_png: bool = Field(default=False, description="Save the image as a PNG file")
    downloads_dir: Optional[str] = Field(default=None, description="Directory for the PNG (defaults to MCP_SCREENSHOT_DIR)")


class PdfArgs(TimedArgs):
    name: str = Field(default="page", min_length=1, description="PDF file name; .pdf is appended when missing")
    output_dir: Optional[str] = Field(default=None, description="Directory for the PDF (defaults to MCP_SCREENSHOT_DIR)")
    landscape: bool = Field(default=False, description="Landscape orientation")
    print_background: bool = Field(default=True, description="Include background graphics")


def _capture_png(driver, selector: Optional[str], full_page: bool, timeout: float) -> bytes:
    if selector:
        return find_element(driver, selector, timeout=timeout, visible_only=True).screenshot_as_png
    if full_page and hasattr(driver, "execute_cdp_cmd"):
        shot = driver.execute_cdp_cmd(
            "Page.captureScreenshot", {"format": "png", "captureBeyondViewport": True}
        )
        return base64.b64decode(shot["data"])
    return driver.get_screenshot_as_png()


def _print_pdf(driver, landscape: bool, background: bool) -> bytes:
    options = PrintOptions()
    options.orientation = "landscape" if landscape else "portrait"
    options.background = background
    return base64.b64decode(driver.print_page(options))


def _target_dir(requested: Optional[str], ctx) -> Path:
    directory = Path(requested or ctx.config.get("screenshot_dir") or Path.home() / "Downloads").expanduser()
    directory.mkdir(parents=True, exist_ok=True)
    return directory


@tool("screenshot", ScreenshotArgs, session="browser")
async def screenshot(args: ScreenshotArgs, ctx):
    """Take a screenshot of the current page or of a specific element."""
    png = await ctx.session.run(
        _capture_png, ctx.driver, args.selector, args.full_page, element_wait_secs(ctx.timeout_ms)
    )

    items = []
    if args.save_png:
        stamp = datetime.datetime.now().strftime("%Y%m%d-%H%M%S")
        path = _target_dir(args.downloads_dir, ctx) / f"{args.name}-{stamp}.png"
        path.write_bytes(png)
        logger.info(f"Screenshot saved to {path}")
        items.append(f"Screenshot '{args.name}' saved to: {path}")
    else:
        items.append(f"Screenshot '{args.name}' taken")
    if args.store_base64:
        items.append(BinaryContent(png, "image/png", name=f"{args.name}.png"))
    return items


@tool("save_as_pdf", PdfArgs, session="browser")
async def save_as_pdf(args: PdfArgs, ctx):
    """Save the current page as a PDF file."""
    pdf = await ctx.session.run(_print_pdf, ctx.driver, args.landscape, args.print_background)
    filename = args.name if args.name.lower().endswith(".pdf") else f"{args.name}.pdf"
    path = _target_dir(args.output_dir, ctx) / filename
    path.write_bytes(pdf)
    return f"Saved page as PDF: {path}"


__all__ = ["screenshot", "save_as_pdf"]
