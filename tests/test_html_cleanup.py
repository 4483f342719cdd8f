from __future__ import annotations

from bs4 import BeautifulSoup

from pagebuilder.services.html_cleanup import (
    apply_lazy_loading,
    apply_page_meta,
    count_json_ld_blocks,
    has_document_root,
    replace_json_ld,
    strip_editor_bridge,
)

EDITED = (
    "<!DOCTYPE html><html><head><title>Casa</title>"
    '<style id="bloxx-editor-styles">[data-bloxx-selected]{outline:2px solid}</style></head>'
    '<body><section data-bloxx-selected="true" data-bloxx-hovered="true">Hi</section>'
    '<script id="bloxx-editor-bridge">window.parent.postMessage("ready")</script></body></html>'
)


def test_strip_editor_bridge_removes_script_styles_and_attributes():
    cleaned = strip_editor_bridge(EDITED)

    assert "bloxx" not in cleaned
    assert "<section>Hi</section>" in cleaned
    assert "<title>Casa</title>" in cleaned


def test_strip_editor_bridge_is_idempotent():
    once = strip_editor_bridge(EDITED)

    assert strip_editor_bridge(once) == once


def test_strip_editor_bridge_leaves_clean_html_untouched():
    clean = "<html><body><section class='py-5'>Hi</section></body></html>"

    assert strip_editor_bridge(clean) == clean


def test_replace_json_ld_swaps_existing_blocks():
    html = (
        '<html><head><script type="application/ld+json">{"@type": "Old"}</script></head>'
        "<body></body></html>"
    )

    replaced = replace_json_ld(html, [{"@type": "Restaurant"}, {"@type": "BreadcrumbList"}])
    again = replace_json_ld(replaced, [{"@type": "Restaurant"}, {"@type": "BreadcrumbList"}])

    assert count_json_ld_blocks(replaced) == 2
    assert count_json_ld_blocks(again) == 2
    assert '"Old"' not in again


def test_replace_json_ld_creates_head_when_missing():
    replaced = replace_json_ld("<html><body><p>x</p></body></html>", [{"@type": "WebPage"}])

    soup = BeautifulSoup(replaced, "html.parser")
    assert soup.head is not None
    assert soup.head.find("script", attrs={"type": "application/ld+json"}) is not None


def test_lazy_loading_exempts_hero_image():
    html = (
        '<html><body><section class="hero py-5"><img src="hero.jpg" loading="lazy"></section>'
        '<section><img src="a.jpg"><img src="b.jpg"></section></body></html>'
    )

    soup = BeautifulSoup(apply_lazy_loading(html), "html.parser")
    images = {img["src"]: img.get("loading") for img in soup.find_all("img")}

    assert images == {"hero.jpg": None, "a.jpg": "lazy", "b.jpg": "lazy"}


def test_lazy_loading_treats_first_image_as_hero_without_hint():
    soup = BeautifulSoup(
        apply_lazy_loading('<body><img src="first.jpg"><img src="second.jpg"></body>'),
        "html.parser",
    )

    assert [img.get("loading") for img in soup.find_all("img")] == [None, "lazy"]


def test_apply_page_meta_updates_title_and_description():
    html = "<html><head><title>Old</title></head><body></body></html>"

    soup = BeautifulSoup(apply_page_meta(html, title="New", description="Fresh tacos daily"), "html.parser")

    assert soup.title is not None and soup.title.string == "New"
    meta = soup.find("meta", attrs={"name": "description"})
    assert meta is not None and meta["content"] == "Fresh tacos daily"


def test_has_document_root():
    assert has_document_root("<!DOCTYPE html><html></html>")
    assert has_document_root("<HTML><body></body></HTML>")
    assert not has_document_root("<section>x</section>")
