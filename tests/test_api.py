from __future__ import annotations

import asyncio
import json
from dataclasses import dataclass, field
from typing import Any

import httpx
import pytest
from fastapi.testclient import TestClient

from pagebuilder import deps
from pagebuilder.llm.client import LLMGenerationParams, ToolSpec
from pagebuilder.main import app
from pagebuilder.services.artifact_store import InMemoryArtifactStore, artifact_key
from pagebuilder.services.collab import REMOTE_SAVE_TYPE, RoomRegistry
from pagebuilder.services.component_index import ComponentIndex
from pagebuilder.services.page_audit import PageAuditor
from pagebuilder.services.page_saves import PageSaver
from pagebuilder.services.page_synthesis import PageSynthesizer
from pagebuilder.services.page_templates import TemplateDefinition
from pagebuilder.services.quality_gate import QualityGateConfig, QualityVerdict
from pagebuilder.services.save_enhancer import SaveEnhancer
from pagebuilder.services.schema_update import SchemaUpdater
from pagebuilder.services.section_resolver import SectionFragment

AUTH = {"Authorization": "Bearer internal_token"}


class FakeComponents:
    async def fetch_index(self) -> ComponentIndex:
        return ComponentIndex()


class FakeResolver:
    async def resolve(self, plans, template, brand_context, *, previous=None):
        return [
            SectionFragment(index=p.index, slot=p.slot, html=f"<section>{p.slot}</section>", strategy=p.strategy)
            for p in plans
        ]


class FixedScorer:
    def __init__(self, score: int) -> None:
        self.value = score

    async def score(self, html: str, template: TemplateDefinition) -> QualityVerdict:
        return QualityVerdict(score=self.value, issues=("Missing aria labels",), suggestions=("Add aria-label",))


class ExtractingLLM:
    async def call_tool(self, prompt: str, params: LLMGenerationParams, *, tool: ToolSpec) -> dict[str, Any]:
        return {"businessType": "restaurant", "businessName": "Casa Verde", "description": "Tacos"}


@dataclass
class ApiHarness:
    client: TestClient
    store: InMemoryArtifactStore
    rooms: RoomRegistry
    scorer: FixedScorer
    audit_requests: list[httpx.Request] = field(default_factory=list)
    audit_reply: httpx.Response = field(default_factory=lambda: httpx.Response(200, json={"score": 91}))


@pytest.fixture
def api():
    store = InMemoryArtifactStore()
    rooms = RoomRegistry()
    scorer = FixedScorer(92)
    harness: ApiHarness

    def audit_handler(request: httpx.Request) -> httpx.Response:
        harness.audit_requests.append(request)
        return harness.audit_reply

    app.dependency_overrides.clear()
    app.dependency_overrides[deps.get_artifact_store] = lambda: store
    app.dependency_overrides[deps.get_room_registry] = lambda: rooms
    app.dependency_overrides[deps.get_page_synthesizer] = lambda: PageSynthesizer(
        components=FakeComponents(),  # type: ignore[arg-type]
        resolver=FakeResolver(),  # type: ignore[arg-type]
        scorer=scorer,
        store=store,
        gate=QualityGateConfig(threshold=80, max_attempts=3),
    )
    app.dependency_overrides[deps.get_page_saver] = lambda: PageSaver(
        store=store,
        enhancer=SaveEnhancer(ExtractingLLM(), enabled=False),  # type: ignore[arg-type]
        rooms=rooms,
    )
    app.dependency_overrides[deps.get_schema_updater] = lambda: SchemaUpdater(ExtractingLLM())  # type: ignore[arg-type]
    app.dependency_overrides[deps.get_page_auditor] = lambda: PageAuditor(
        store,
        service_url="https://audit.example.test/auditv2",
        public_base_url="https://editor.example.test",
        transport=httpx.MockTransport(audit_handler),
    )
    try:
        with TestClient(app) as client:
            harness = ApiHarness(client=client, store=store, rooms=rooms, scorer=scorer)
            yield harness
    finally:
        app.dependency_overrides.clear()


def test_health(api: ApiHarness):
    resp = api.client.get("/health")

    assert resp.status_code == 200
    assert resp.json() == {"ok": True}


def test_catalog_endpoints(api: ApiHarness):
    templates = api.client.get("/api/templates").json()
    industries = api.client.get("/api/industries").json()

    homepage = next(t for t in templates["templates"] if t["key"] == "Homepage")
    assert homepage["slug"] == "index"
    assert homepage["sections"][0] == "Navbar"
    restaurant = next(i for i in industries["industries"] if i["key"] == "restaurant")
    assert restaurant["defaults"]["priceRange"] == "$$"


def test_create_page_then_list_and_reject_duplicate(api: ApiHarness):
    body = {"site": "casa", "pageName": "About", "industry": "restaurant"}

    created = api.client.post("/api/pages", json=body)
    duplicate = api.client.post("/api/pages", json=body)
    listing = api.client.get("/api/pages", params={"site": "casa"})

    assert created.status_code == 200
    assert created.json()["slug"] == "about"
    assert created.json()["score"] == 92
    assert duplicate.status_code == 409
    assert duplicate.json()["error"] == "page_exists"
    pages = listing.json()["pages"]
    assert [page["key"] for page in pages] == ["casa/drafts/about.html"]
    assert pages[0]["versionTag"] == created.json()["versionTag"]


def test_create_page_reports_quality_exhaustion(api: ApiHarness):
    api.scorer.value = 40

    resp = api.client.post("/api/pages", json={"site": "casa", "pageName": "Contact"})

    assert resp.status_code == 422
    assert resp.json() == {
        "ok": False,
        "error": "quality_exhausted",
        "detail": "Failed to reach score 80 after 3 attempts (last: 40)",
        "score": 40,
        "issues": ["Missing aria labels"],
        "suggestions": ["Add aria-label"],
        "attempts": 3,
    }
    assert asyncio.run(api.store.head(artifact_key("casa", "contact"))) is None


def test_invalid_payloads_are_400(api: ApiHarness):
    blank = api.client.post("/api/pages", json={"site": "  ", "pageName": "About"})
    unknown_industry = api.client.post("/api/pages", json={"site": "casa", "pageName": "About", "industry": "nope"})

    assert blank.status_code == 400
    assert blank.json()["error"] == "invalid_request"
    assert unknown_industry.status_code == 400
    assert "Unknown industry" in unknown_industry.json()["detail"]


def test_create_site_returns_created_and_failed(api: ApiHarness):
    asyncio.run(api.store.put(artifact_key("casa-verde", "about"), "<html>taken</html>"))

    resp = api.client.post("/api/sites", json={"businessName": "Casa Verde", "pages": ["Homepage", "About"]})

    body = resp.json()
    assert resp.status_code == 200
    assert body["ok"] is True
    assert body["site"] == "casa-verde"
    assert [page["pageName"] for page in body["created"]] == ["Homepage"]
    assert body["failed"][0]["pageName"] == "About"


def test_create_site_rejects_unsluggable_business_name(api: ApiHarness):
    resp = api.client.post("/api/sites", json={"businessName": "!!!", "pages": ["Homepage"]})

    assert resp.status_code == 400
    assert resp.json() == {"ok": False, "error": "invalid_request", "detail": "Invalid business name"}
    assert asyncio.run(api.store.list("")) == []


def test_save_conflict_returns_server_tag(api: ApiHarness):
    server_tag = asyncio.run(api.store.put(artifact_key("casa", "index"), "<html>v2</html>"))

    resp = api.client.post(
        "/api/save",
        json={"site": "casa", "page": "index", "html": "<html>mine</html>", "expectedVersionTag": '"v1"'},
    )

    assert resp.status_code == 409
    assert resp.json()["error"] == "conflict"
    assert resp.json()["serverVersionTag"] == server_tag
    stored = asyncio.run(api.store.get(artifact_key("casa", "index")))
    assert stored is not None and stored.body == "<html>v2</html>"


def test_save_returns_new_version_tag(api: ApiHarness):
    resp = api.client.post("/api/save", json={"site": "casa", "page": "index", "html": "<html>v1</html>"})

    body = resp.json()
    assert resp.status_code == 200
    assert body["ok"] is True
    assert body["enhanced"] is False
    assert "html" not in body
    assert body["versionTag"] == asyncio.run(api.store.head(artifact_key("casa", "index")))


def test_schema_update(api: ApiHarness):
    resp = api.client.post(
        "/api/schema-update",
        json={"sectionHtml": "<section><h1>Casa Verde</h1></section>", "businessContext": {"phone": "555-0100"}},
    )

    body = resp.json()
    assert resp.status_code == 200
    assert body["schemaType"] == "Restaurant"
    assert body["schemas"][0]["telephone"] == "555-0100"
    assert body["extractedData"]["businessName"] == "Casa Verde"


def test_audit_relays_report_and_removes_temp_copy(api: ApiHarness):
    resp = api.client.post("/api/audit", json={"site": "casa", "page": "index", "html": "<html>audit</html>"})

    assert resp.status_code == 200
    assert resp.json() == {"ok": True, "score": 91}
    assert len(api.audit_requests) == 1
    assert asyncio.run(api.store.list("casa/_audit-temp/")) == []


def test_audit_failure_still_removes_temp_copy(api: ApiHarness):
    api.audit_reply = httpx.Response(502, text="bad gateway")

    resp = api.client.post("/api/audit", json={"site": "casa", "page": "index", "html": "<html>audit</html>"})

    body = resp.json()
    assert resp.status_code == 502
    assert body["error"] == "audit_failed"
    assert body["tempUrl"].startswith("https://editor.example.test/api/audit-temp?site=casa&id=")
    assert asyncio.run(api.store.list("casa/_audit-temp/")) == []


def test_audit_temp_serves_stored_copy(api: ApiHarness):
    asyncio.run(api.store.put("casa/_audit-temp/1700-abc123.html", "<html>temp</html>"))

    found = api.client.get("/api/audit-temp", params={"site": "casa", "id": "1700-abc123"})
    missing = api.client.get("/api/audit-temp", params={"site": "casa", "id": "1700-zzz"})
    invalid = api.client.get("/api/audit-temp", params={"site": "casa", "id": "../secret"})

    assert found.status_code == 200
    assert found.text == "<html>temp</html>"
    assert found.headers["cache-control"] == "no-store"
    assert missing.status_code == 404
    assert invalid.status_code == 400


def test_broadcast_requires_internal_token(api: ApiHarness):
    params = {"site": "casa", "page": "index"}

    missing = api.client.post("/api/collab/broadcast", params=params, content="{}")
    wrong = api.client.post(
        "/api/collab/broadcast", params=params, content="{}", headers={"Authorization": "Bearer nope"}
    )
    ok = api.client.post("/api/collab/broadcast", params=params, content="{}", headers=AUTH)

    assert missing.status_code == 401
    assert missing.json()["error"] == "unauthorized"
    assert wrong.status_code == 403
    assert ok.json() == {"ok": True, "delivered": 0}


def test_broadcast_rejects_non_utf8_body(api: ApiHarness):
    resp = api.client.post(
        "/api/collab/broadcast",
        params={"site": "casa", "page": "index"},
        content=b"\xff\xfe{}",
        headers=AUTH,
    )

    assert resp.status_code == 400
    assert resp.json()["error"] == "invalid_request"


def test_collab_socket_relays_and_receives_remote_save(api: ApiHarness):
    client = api.client
    with client.websocket_connect("/api/collab?site=casa&page=index&user=Alice") as alice:
        snapshot = {"type": "users", "users": [{"name": "Alice", "color": "#6366f1"}]}
        assert alice.receive_json() == snapshot
        assert alice.receive_json() == snapshot

        with client.websocket_connect("/api/collab?site=casa&page=index&user=Bob") as bob:
            assert [u["name"] for u in alice.receive_json()["users"]] == ["Alice", "Bob"]
            for _ in range(2):
                assert [u["name"] for u in bob.receive_json()["users"]] == ["Alice", "Bob"]

            alice.send_text(json.dumps({"type": "selection", "sectionId": "hero"}))
            relayed = bob.receive_json()
            assert relayed == {"type": "selection", "sectionId": "hero", "user": "Alice", "color": "#6366f1"}

            saved = client.post("/api/save", json={"site": "casa", "page": "index", "html": "<html>v1</html>"})
            version_tag = saved.json()["versionTag"]
            for socket in (alice, bob):
                assert socket.receive_json() == {
                    "type": REMOTE_SAVE_TYPE,
                    "site": "casa",
                    "page": "index",
                    "versionTag": version_tag,
                }

            delivered = client.post(
                "/api/collab/broadcast",
                params={"site": "casa", "page": "index"},
                content=json.dumps({"type": "bloxx:reload"}),
                headers=AUTH,
            )
            assert delivered.json()["delivered"] == 2
            assert alice.receive_json() == {"type": "bloxx:reload"}
            assert bob.receive_json() == {"type": "bloxx:reload"}

        assert [u["name"] for u in alice.receive_json()["users"]] == ["Alice"]
