from __future__ import annotations

import asyncio
import json
from typing import Any, Optional

import pytest

from pagebuilder.services.artifact_store import InMemoryArtifactStore, VersionConflictError, artifact_key
from pagebuilder.services.collab import REMOTE_SAVE_TYPE, RoomRegistry
from pagebuilder.services.page_saves import PageSaver
from pagebuilder.services.save_enhancer import EnhancementResult


class RecordingEnhancer:
    def __init__(self, *, enhanced: bool = False) -> None:
        self.enhanced = enhanced
        self.calls: list[dict[str, Any]] = []

    async def enhance(self, html: str, *, page: str, site_url: Optional[str] = None) -> EnhancementResult:
        self.calls.append({"html": html, "page": page, "site_url": site_url})
        if not self.enhanced:
            return EnhancementResult(html=html, enhanced=False)
        return EnhancementResult(
            html=html.replace("</head>", '<script type="application/ld+json">{}</script></head>'),
            enhanced=True,
            schema_type="Restaurant",
            changes=["Added JSON-LD"],
        )


class FakeSocket:
    def __init__(self) -> None:
        self.sent: list[dict[str, Any]] = []

    async def send_text(self, data: str) -> None:
        self.sent.append(json.loads(data))


def _saver(store=None, enhancer=None, rooms=None, site_url_base=None):
    return PageSaver(
        store=InMemoryArtifactStore() if store is None else store,
        enhancer=RecordingEnhancer() if enhancer is None else enhancer,  # type: ignore[arg-type]
        rooms=RoomRegistry() if rooms is None else rooms,
        site_url_base=site_url_base,
    )


def test_stale_version_tag_is_rejected_before_enhancement_and_store_is_unchanged():
    store = InMemoryArtifactStore()
    enhancer = RecordingEnhancer(enhanced=True)
    key = artifact_key("casa", "index")
    server_tag = asyncio.run(store.put(key, "<html>v2</html>"))

    with pytest.raises(VersionConflictError) as excinfo:
        asyncio.run(
            _saver(store, enhancer).save(site="casa", page="index", html="<html>mine</html>", expected_version_tag='"v1"')
        )

    assert excinfo.value.server_version_tag == server_tag
    assert excinfo.value.status_code == 409
    assert enhancer.calls == []
    stored = asyncio.run(store.get(key))
    assert stored is not None and stored.body == "<html>v2</html>"


def test_matching_version_tag_writes_enhanced_html():
    store = InMemoryArtifactStore()
    enhancer = RecordingEnhancer(enhanced=True)
    key = artifact_key("casa", "index")
    current = asyncio.run(store.put(key, "<html><head></head>v1</html>"))

    result = asyncio.run(
        _saver(store, enhancer, site_url_base="https://sites.example/").save(
            site="casa",
            page="index",
            html="<html><head></head>v2</html>",
            expected_version_tag=current,
        )
    )

    assert result.enhanced is True
    assert result.schema_type == "Restaurant"
    assert result.version_tag != current
    assert enhancer.calls[0]["site_url"] == "https://sites.example/casa"
    stored = asyncio.run(store.get(key))
    assert stored is not None
    assert stored.body == result.html
    assert stored.version_tag == result.version_tag


def test_first_save_needs_no_version_tag():
    store = InMemoryArtifactStore()

    result = asyncio.run(_saver(store).save(site="casa", page="about", html="<html>about</html>"))

    assert result.enhanced is False
    assert asyncio.run(store.head(artifact_key("casa", "about"))) == result.version_tag


def test_save_notifies_live_editors_of_the_page():
    rooms = RoomRegistry()
    editor, other_page = FakeSocket(), FakeSocket()

    async def run():
        await rooms.room_for("casa", "index").attach(editor, "Alice")
        await rooms.room_for("casa", "about").attach(other_page, "Bob")
        editor.sent.clear()
        other_page.sent.clear()
        return await _saver(rooms=rooms).save(site="casa", page="index", html="<html>x</html>")

    result = asyncio.run(run())

    assert editor.sent == [
        {"type": REMOTE_SAVE_TYPE, "site": "casa", "page": "index", "versionTag": result.version_tag}
    ]
    assert other_page.sent == []


def test_broadcast_failure_does_not_fail_the_save():
    class ExplodingRooms(RoomRegistry):
        async def broadcast(self, site: str, page: str, raw: str) -> int:
            raise RuntimeError("room exploded")

    store = InMemoryArtifactStore()

    result = asyncio.run(_saver(store, rooms=ExplodingRooms()).save(site="casa", page="index", html="<html>x</html>"))

    assert asyncio.run(store.head(artifact_key("casa", "index"))) == result.version_tag
