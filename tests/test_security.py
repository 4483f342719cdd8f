import pytest
from fastapi import HTTPException

from pagebuilder.config import settings
from pagebuilder.security import require_internal_api_token


def test_missing_or_non_bearer_header_is_unauthorized():
    for header in (None, "", "Basic abc", "internal_token"):
        with pytest.raises(HTTPException) as excinfo:
            require_internal_api_token(header)
        assert excinfo.value.status_code == 401


def test_wrong_token_is_forbidden():
    with pytest.raises(HTTPException) as excinfo:
        require_internal_api_token("Bearer nope")
    assert excinfo.value.status_code == 403


def test_unconfigured_token_is_unavailable(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setattr(settings, "INTERNAL_API_TOKEN", None)

    with pytest.raises(HTTPException) as excinfo:
        require_internal_api_token("Bearer internal_token")
    assert excinfo.value.status_code == 503


def test_matching_token_passes():
    assert require_internal_api_token("Bearer internal_token") is None
