# mcp_browser_tools/cleaners.py

import re
from typing import Dict, Tuple

import bs4
from bs4 import Comment, NavigableString

NOISE_ID_CLASS_PAT = re.compile(
    r"(gtm|gtag|analytics|\bads?\b|adslot|sponsor|cookie[-_ ]?banner|chat[-_ ]?widget)",
    re.I
)

HIDDEN_CLASS_PAT = re.compile(r"(sr-only|visually-hidden|offscreen)", re.I)

WHITESPACE_SENSITIVE = {"pre", "code", "textarea"}


def _remove_comments(soup, pruned_counts: Dict[str, int]) -> None:
    for c in soup.find_all(string=lambda t: isinstance(t, Comment)):
        c.extract()
        pruned_counts["comments"] += 1


def _remove_tags(soup, names, key: str, pruned_counts: Dict[str, int]) -> None:
    for tag in soup.find_all(names):
        tag.decompose()
        pruned_counts[key] += 1


def _remove_stylesheet_links(soup, pruned_counts: Dict[str, int]) -> None:
    for link in soup.find_all("link"):
        rel = link.get("rel")
        rels = [s.lower() for s in rel] if isinstance(rel, (list, tuple)) else ([str(rel).lower()] if rel else [])
        if "stylesheet" in rels:
            link.decompose()
            pruned_counts["styles"] += 1


def _strip_inline_styles(soup, pruned_counts: Dict[str, int]) -> None:
    for el in soup.find_all(style=True):
        del el.attrs["style"]
        pruned_counts["styles"] += 1


def _remove_noise_containers(soup, pruned_counts: Dict[str, int]) -> None:
    """
    Remove ads, trackers and hidden elements.

    Args:
        soup: BeautifulSoup object to modify in-place
        pruned_counts: Dictionary to update with removal counts
    """
    for el in soup.find_all(True):
        # descendants of an already removed ancestor
        if el.decomposed:
            continue

        idv = el.get("id") or ""
        classes = el.get("class") or []
        classv = " ".join(classes) if isinstance(classes, (list, tuple)) else str(classes)

        aria_hidden = str(el.get("aria-hidden", "")).strip().lower() == "true"
        style_val = el.get("style")
        style_hidden = False
        if isinstance(style_val, str):
            sv = style_val.lower()
            if re.search(r"display\s*:\s*none\b", sv) or re.search(r"visibility\s*:\s*hidden\b", sv):
                style_hidden = True

        hidden = el.has_attr("hidden") or aria_hidden or style_hidden or bool(HIDDEN_CLASS_PAT.search(classv))
        noise = bool(NOISE_ID_CLASS_PAT.search(idv) or NOISE_ID_CLASS_PAT.search(classv))

        if noise or hidden:
            pruned_counts["noise" if noise else "hidden"] += 1
            el.decompose()

    for inp in soup.find_all("input"):
        if str(inp.get("type", "")).lower() == "hidden":
            inp.decompose()
            pruned_counts["hidden"] += 1

    for tag in soup.find_all(["noscript", "template", "svg", "canvas"]):
        tag.decompose()
        pruned_counts["noise"] += 1


def _minify(soup) -> str:
    for t in soup.find_all(string=True):
        if isinstance(t, Comment):
            continue
        parent_name = (getattr(t.parent, "name", "") or "").lower()
        if parent_name in WHITESPACE_SENSITIVE:
            continue
        new_text = re.sub(r"\s+", " ", str(t))
        if new_text != str(t):
            t.replace_with(NavigableString(new_text))
    html_out = str(soup)
    html_out = re.sub(r">\s+<", "><", html_out)
    return html_out.strip()


def clean_html(
    html: str,
    remove_scripts: bool = True,
    remove_styles: bool = False,
    remove_comments: bool = False,
    remove_meta: bool = False,
    clean: bool = False,
    minify: bool = False,
) -> Tuple[str, Dict[str, int]]:
    """
    Strip the parts of a page an agent rarely needs.

    Args:
        html: Raw HTML string.
        remove_scripts: Drop <script> tags.
        remove_styles: Drop <style>, stylesheet <link>s and inline style attributes.
        remove_comments: Drop HTML comments.
        remove_meta: Drop <meta> tags.
        clean: Everything above plus ads, trackers, hidden elements and
            non-content tags (noscript, template, svg, canvas).
        minify: Collapse whitespace outside <pre>, <code> and <textarea>.

    Returns:
        (html, pruned_counts)
    """
    pruned_counts = {"scripts": 0, "styles": 0, "comments": 0, "meta": 0, "noise": 0, "hidden": 0}
    soup = bs4.BeautifulSoup(html or "", "html.parser")

    if remove_comments or clean:
        _remove_comments(soup, pruned_counts)
    if remove_scripts or clean:
        _remove_tags(soup, "script", "scripts", pruned_counts)
    if remove_styles or clean:
        _remove_tags(soup, "style", "styles", pruned_counts)
        _remove_stylesheet_links(soup, pruned_counts)
    if remove_meta or clean:
        _remove_tags(soup, "meta", "meta", pruned_counts)
    if clean:
        # Runs before inline styles go: hidden-element detection reads them
        _remove_noise_containers(soup, pruned_counts)
    if remove_styles or clean:
        _strip_inline_styles(soup, pruned_counts)

    if minify:
        return _minify(soup), pruned_counts
    return str(soup), pruned_counts


def truncate(text: str, max_length: int) -> Tuple[str, bool]:
    if max_length and len(text) > max_length:
        return text[:max_length] + "\n<!-- Output truncated due to size limits -->", True
    return text, False


__all__ = ["clean_html", "truncate"]
