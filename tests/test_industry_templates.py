from __future__ import annotations

import asyncio

import httpx
import pytest

from pagebuilder.config import settings
from pagebuilder.services.industry_templates import IndustryTemplateClient, IndustryTemplateError
from pagebuilder.services.page_templates import get_industry


def test_covers_only_listed_pages_of_industries_with_a_template_site():
    client = IndustryTemplateClient(base_url="https://editor.example.test/templates")
    restaurant = get_industry("restaurant")
    gym = get_industry("gym")

    assert client.covers(restaurant, "menu")
    assert not client.covers(restaurant, "pricing")
    assert not client.covers(gym, "index")
    assert not client.covers(None, "index")


def test_unconfigured_client_covers_nothing(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setattr(settings, "INDUSTRY_TEMPLATE_BASE_URL", None)
    client = IndustryTemplateClient()

    assert not client.configured
    assert not client.covers(get_industry("yoga"), "index")


def test_fetch_page_swaps_every_default_name():
    profile = get_industry("lawfirm")
    assert profile is not None

    def handler(request: httpx.Request) -> httpx.Response:
        assert str(request.url) == "https://editor.example.test/templates/lawfirm/about.html"
        return httpx.Response(200, text="<h1>Sterling &amp; Co</h1><p>Sterling & Associates, Sterling & Associates</p>")

    client = IndustryTemplateClient(
        base_url="https://editor.example.test/templates/",
        transport=httpx.MockTransport(handler),
    )

    html = asyncio.run(client.fetch_page(profile, "about", business_name="Okafor Legal"))

    assert html == "<h1>Sterling &amp; Co</h1><p>Okafor Legal, Okafor Legal</p>"


def test_fetch_page_maps_network_failures():
    profile = get_industry("yoga")
    assert profile is not None

    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("refused", request=request)

    client = IndustryTemplateClient(base_url="https://editor.example.test/templates", transport=httpx.MockTransport(handler))

    with pytest.raises(IndustryTemplateError, match="Network error") as excinfo:
        asyncio.run(client.fetch_page(profile, "index", business_name="Flow"))
    assert excinfo.value.status_code == 502
