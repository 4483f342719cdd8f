from __future__ import annotations

import json
import re
from typing import Any, Optional, Sequence

from bs4 import BeautifulSoup, Tag

BRIDGE_ELEMENT_IDS = ("bloxx-editor-bridge", "bloxx-editor-styles")
BRIDGE_ATTRIBUTES = ("data-bloxx-selected", "data-bloxx-hovered", "data-bloxx-section-highlight")
JSON_LD_TYPE = "application/ld+json"

_BRIDGE_MARKER_RE = re.compile(
    "|".join(re.escape(marker) for marker in (*BRIDGE_ELEMENT_IDS, *BRIDGE_ATTRIBUTES))
)
_HERO_HINT_RE = re.compile(r"hero", re.IGNORECASE)


def has_document_root(html: str) -> bool:
    lowered = html.lower()
    return "<html" in lowered or "<!doctype" in lowered


def strip_editor_bridge(html: str) -> str:
    """Remove editor-only script, styles and selection attributes. Clean input comes back untouched."""
    if not _BRIDGE_MARKER_RE.search(html):
        return html
    soup = BeautifulSoup(html, "html.parser")
    for element_id in BRIDGE_ELEMENT_IDS:
        for node in soup.find_all(id=element_id):
            node.decompose()
    for attr in BRIDGE_ATTRIBUTES:
        for node in soup.find_all(attrs={attr: True}):
            del node[attr]
    return str(soup)


def _ensure_head(soup: BeautifulSoup) -> Tag:
    head = soup.find("head")
    if isinstance(head, Tag):
        return head
    head = soup.new_tag("head")
    html_tag = soup.find("html")
    if isinstance(html_tag, Tag):
        html_tag.insert(0, head)
    else:
        soup.insert(0, head)
    return head


def replace_json_ld(html: str, schemas: Sequence[dict[str, Any]]) -> str:
    """Drop every existing JSON-LD block and append ``schemas`` to <head>, one block each."""
    soup = BeautifulSoup(html, "html.parser")
    for script in soup.find_all("script", attrs={"type": JSON_LD_TYPE}):
        script.decompose()
    head = _ensure_head(soup)
    for schema in schemas:
        script = soup.new_tag("script", attrs={"type": JSON_LD_TYPE})
        script.string = json.dumps(schema, ensure_ascii=False).replace("</", "<\\/")
        head.append(script)
    return str(soup)


def count_json_ld_blocks(html: str) -> int:
    soup = BeautifulSoup(html, "html.parser")
    return len(soup.find_all("script", attrs={"type": JSON_LD_TYPE}))


def _is_hero_container(tag: Tag) -> bool:
    classes = " ".join(tag.get("class") or [])
    return bool(_HERO_HINT_RE.search(classes) or _HERO_HINT_RE.search(str(tag.get("id") or "")))


def _hero_image(soup: BeautifulSoup) -> Optional[Tag]:
    for img in soup.find_all("img"):
        if any(_is_hero_container(parent) for parent in img.parents if isinstance(parent, Tag)):
            return img
    first = soup.find("img")
    return first if isinstance(first, Tag) else None


def apply_lazy_loading(html: str) -> str:
    """Lazy-load every image except the hero, which loads eagerly."""
    soup = BeautifulSoup(html, "html.parser")
    hero = _hero_image(soup)
    for img in soup.find_all("img"):
        if img is hero:
            if img.get("loading") == "lazy":
                del img["loading"]
            continue
        img["loading"] = "lazy"
    return str(soup)


def apply_page_meta(html: str, *, title: Optional[str] = None, description: Optional[str] = None) -> str:
    if not title and not description:
        return html
    soup = BeautifulSoup(html, "html.parser")
    head = _ensure_head(soup)
    if title:
        title_tag = head.find("title")
        if not isinstance(title_tag, Tag):
            title_tag = soup.new_tag("title")
            head.insert(0, title_tag)
        title_tag.string = title
    if description:
        meta = head.find("meta", attrs={"name": "description"})
        if not isinstance(meta, Tag):
            meta = soup.new_tag("meta", attrs={"name": "description"})
            head.append(meta)
        meta["content"] = description
    return str(soup)
