from __future__ import annotations

import asyncio
from urllib.parse import parse_qs, urlparse

import httpx
import pytest

from pagebuilder.config import settings
from pagebuilder.services.artifact_store import InMemoryArtifactStore
from pagebuilder.services.page_audit import (
    AuditServiceError,
    AuditTempCopy,
    InvalidAuditTempIdError,
    PageAuditor,
    audit_temp_key,
    audit_temp_url,
    new_temp_id,
)


def _auditor(handler, store=None) -> tuple[PageAuditor, InMemoryArtifactStore]:
    store = InMemoryArtifactStore() if store is None else store
    auditor = PageAuditor(
        store,
        service_url="https://audit.example.test/auditv2",
        public_base_url="https://editor.example.test/",
        transport=httpx.MockTransport(handler),
    )
    return auditor, store


def test_new_temp_id_shape():
    temp_id = new_temp_id(now_ms=1700000000000)

    prefix, suffix = temp_id.split("-")
    assert prefix == "1700000000000"
    assert len(suffix) == 6


def test_audit_temp_key_rejects_unsafe_ids():
    assert audit_temp_key("casa", "1700-abc123") == "casa/_audit-temp/1700-abc123.html"
    for bad in ("../secrets", "1700-ABC", "abc", "1700-abc/../x"):
        with pytest.raises(InvalidAuditTempIdError):
            audit_temp_key("casa", bad)


def test_audit_temp_url_is_public_and_encoded():
    url = audit_temp_url("casa verde", "1-a", base_url="https://editor.example.test/")

    assert url == "https://editor.example.test/api/audit-temp?site=casa+verde&id=1-a"


def test_run_audit_passes_public_temp_url_and_relays_report():
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"score": 87, "categories": {"seo": 90}})

    auditor, store = _auditor(handler)

    async def run():
        temp = await auditor.publish_temp_copy("casa", "<html>audit me</html>")
        stored = await auditor.read_temp_copy("casa", temp.temp_id)
        report = await auditor.run_audit(temp)
        await auditor.cleanup(temp)
        after = await store.get(temp.key)
        return temp, stored, report, after

    temp, stored, report, after = asyncio.run(run())

    assert stored == "<html>audit me</html>"
    assert report == {"score": 87, "categories": {"seo": 90}}
    assert after is None
    target = parse_qs(urlparse(str(seen[0].url)).query)["url"][0]
    assert target == temp.public_url
    assert target.startswith("https://editor.example.test/api/audit-temp?site=casa&id=")


def test_run_audit_wraps_non_object_reports():
    auditor, _ = _auditor(lambda request: httpx.Response(200, json=[1, 2, 3]))

    async def run():
        return await auditor.run_audit(await auditor.publish_temp_copy("casa", "<html></html>"))

    assert asyncio.run(run()) == {"report": [1, 2, 3]}


def test_run_audit_rejects_non_json_reply():
    auditor, _ = _auditor(lambda request: httpx.Response(200, text="<html>gateway</html>"))

    async def run():
        return await auditor.run_audit(await auditor.publish_temp_copy("casa", "<html></html>"))

    with pytest.raises(AuditServiceError, match="invalid JSON") as excinfo:
        asyncio.run(run())
    assert excinfo.value.status_code == 502


def test_run_audit_maps_error_status_and_network_failures():
    failing, _ = _auditor(lambda request: httpx.Response(500, text="boom"))

    def unreachable(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("refused", request=request)

    offline, _ = _auditor(unreachable)

    async def run(auditor: PageAuditor):
        return await auditor.run_audit(await auditor.publish_temp_copy("casa", "<html></html>"))

    with pytest.raises(AuditServiceError, match=r"\(500\): boom"):
        asyncio.run(run(failing))
    with pytest.raises(AuditServiceError, match="Network error"):
        asyncio.run(run(offline))


def test_publish_requires_configured_service(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setattr(settings, "AUDIT_SERVICE_URL", None)
    auditor = PageAuditor(InMemoryArtifactStore(), public_base_url="https://editor.example.test")

    with pytest.raises(AuditServiceError) as excinfo:
        asyncio.run(auditor.publish_temp_copy("casa", "<html></html>"))
    assert excinfo.value.status_code == 503


def test_cleanup_failure_is_not_raised():
    class BrokenDeleteStore(InMemoryArtifactStore):
        async def delete(self, key: str) -> None:
            raise RuntimeError("bucket gone")

    auditor, _ = _auditor(lambda request: httpx.Response(200, json={}), store=BrokenDeleteStore())

    async def run():
        temp = await auditor.publish_temp_copy("casa", "<html></html>")
        await auditor.cleanup(temp)

    asyncio.run(run())


def test_run_audit_without_service_url_is_unavailable(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setattr(settings, "AUDIT_SERVICE_URL", None)
    requests: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return httpx.Response(200, json={})

    auditor = PageAuditor(
        InMemoryArtifactStore(),
        public_base_url="https://editor.example.test",
        transport=httpx.MockTransport(handler),
    )
    temp = AuditTempCopy(site="casa", temp_id="1700-abc123", key="casa/_audit-temp/1700-abc123.html", public_url="x")

    with pytest.raises(AuditServiceError) as excinfo:
        asyncio.run(auditor.run_audit(temp))
    assert excinfo.value.status_code == 503
    assert requests == []
