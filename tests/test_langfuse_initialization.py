import pytest

from pagebuilder.observability import langfuse as langfuse_module


@pytest.fixture(autouse=True)
def reset_langfuse_state() -> None:
    langfuse_module._langfuse_client = None
    langfuse_module._langfuse_initialized = False
    yield
    langfuse_module._langfuse_client = None
    langfuse_module._langfuse_initialized = False


def _configure_enabled_langfuse(monkeypatch: pytest.MonkeyPatch, *, auth_check: bool = True) -> None:
    monkeypatch.setattr(langfuse_module.settings, "LANGFUSE_ENABLED", True)
    monkeypatch.setattr(langfuse_module.settings, "LANGFUSE_REQUIRED", False)
    monkeypatch.setattr(langfuse_module.settings, "LANGFUSE_PUBLIC_KEY", "pk-test")
    monkeypatch.setattr(langfuse_module.settings, "LANGFUSE_SECRET_KEY", "sk-test")
    monkeypatch.setattr(langfuse_module.settings, "LANGFUSE_BASE_URL", "https://example.langfuse.test")
    monkeypatch.setattr(langfuse_module.settings, "LANGFUSE_HOST", "https://cloud.langfuse.com")
    monkeypatch.setattr(langfuse_module.settings, "LANGFUSE_ENVIRONMENT", "test")
    monkeypatch.setattr(langfuse_module.settings, "LANGFUSE_RELEASE", "test-release")
    monkeypatch.setattr(langfuse_module.settings, "LANGFUSE_SAMPLE_RATE", 1.0)
    monkeypatch.setattr(langfuse_module.settings, "LANGFUSE_DEBUG", False)
    monkeypatch.setattr(langfuse_module.settings, "LANGFUSE_TIMEOUT_SECONDS", 20)
    monkeypatch.setattr(langfuse_module.settings, "LANGFUSE_AUTH_CHECK", auth_check)


def test_initialize_langfuse_raises_when_required_but_disabled(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(langfuse_module.settings, "LANGFUSE_ENABLED", False)
    monkeypatch.setattr(langfuse_module.settings, "LANGFUSE_REQUIRED", True)

    with pytest.raises(langfuse_module.LangfuseConfigError, match="LANGFUSE_REQUIRED is true"):
        langfuse_module.initialize_langfuse()


def test_disabled_langfuse_yields_no_span(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(langfuse_module.settings, "LANGFUSE_ENABLED", False)
    monkeypatch.setattr(langfuse_module.settings, "LANGFUSE_REQUIRED", False)

    with langfuse_module.start_langfuse_span(name="pagebuilder.synthesis_attempt") as span:
        assert span is None
    assert langfuse_module.get_langfuse_client() is None


def test_initialize_langfuse_rejects_missing_secret(monkeypatch: pytest.MonkeyPatch) -> None:
    _configure_enabled_langfuse(monkeypatch)
    monkeypatch.setattr(langfuse_module.settings, "LANGFUSE_SECRET_KEY", None)

    with pytest.raises(langfuse_module.LangfuseConfigError, match="LANGFUSE_SECRET_KEY"):
        langfuse_module.initialize_langfuse()


def test_initialize_langfuse_raises_when_auth_check_returns_false(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    _configure_enabled_langfuse(monkeypatch, auth_check=True)

    class FakeLangfuse:
        def __init__(self, **_kwargs):
            pass

        def auth_check(self) -> bool:
            return False

    monkeypatch.setattr(langfuse_module, "Langfuse", FakeLangfuse)

    with pytest.raises(langfuse_module.LangfuseConfigError, match="auth check returned false"):
        langfuse_module.initialize_langfuse()
    assert langfuse_module._langfuse_initialized is False
    assert langfuse_module._langfuse_client is None


def test_initialize_langfuse_performs_auth_check_when_enabled(monkeypatch: pytest.MonkeyPatch) -> None:
    _configure_enabled_langfuse(monkeypatch, auth_check=True)
    captured: dict = {}

    class FakeLangfuse:
        def __init__(self, **kwargs):
            captured.update(kwargs)

        def auth_check(self) -> bool:
            captured["auth_checked"] = True
            return True

    monkeypatch.setattr(langfuse_module, "Langfuse", FakeLangfuse)

    langfuse_module.initialize_langfuse()
    assert captured["auth_checked"] is True
    assert captured["base_url"] == "https://example.langfuse.test"
    assert captured["environment"] == "test"
    assert langfuse_module._langfuse_initialized is True
    assert isinstance(langfuse_module._langfuse_client, FakeLangfuse)


def test_trace_context_is_scoped(monkeypatch: pytest.MonkeyPatch) -> None:
    _configure_enabled_langfuse(monkeypatch, auth_check=False)
    updates: list[dict] = []

    class FakeSpan:
        def update(self, **kwargs):
            pass

    class FakeSpanContext:
        def __enter__(self):
            return FakeSpan()

        def __exit__(self, *exc):
            return False

    class FakeLangfuse:
        def __init__(self, **_kwargs):
            pass

        def start_as_current_span(self, **_kwargs):
            return FakeSpanContext()

        def update_current_trace(self, **kwargs):
            updates.append(kwargs)

    monkeypatch.setattr(langfuse_module, "Langfuse", FakeLangfuse)
    trace = langfuse_module.LangfuseTraceContext(
        name="pagebuilder.synthesize",
        session_id="casa",
        metadata={"site": "casa"},
        tags=["synthesis"],
    )

    with langfuse_module.bind_langfuse_trace_context(trace):
        with langfuse_module.start_langfuse_span(name="attempt", metadata={"page": "index"}):
            pass
    with langfuse_module.start_langfuse_span(name="outside"):
        pass

    assert updates == [
        {
            "name": "pagebuilder.synthesize",
            "session_id": "casa",
            "metadata": {"site": "casa", "page": "index"},
            "tags": ["synthesis"],
        }
    ]
