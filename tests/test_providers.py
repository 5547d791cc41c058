"""Unit tests for provider resolution and dispatch."""

from types import SimpleNamespace
from typing import Any

import pytest

from tweettr.errors import MissingCredentialError, TransportError, UnsupportedProviderError
from tweettr.providers import (
    DEFAULT_FACTORIES,
    PROVIDERS,
    TEMPERATURE,
    AnthropicCompletion,
    GoogleCompletion,
    OpenAICompletion,
    ProviderDispatcher,
    parse_model_ref,
)


class _Keys:
    def __init__(self, **keys: str) -> None:
        self._keys = keys

    def get_credential(self, provider: str) -> str | None:
        return self._keys.get(provider)


class _FakeClient:
    def __init__(self, reply: str = "ok", error: Exception | None = None) -> None:
        self.reply = reply
        self.error = error
        self.calls: list[tuple[str, str, str, float]] = []

    def complete(self, model: str, system: str, user: str, temperature: float) -> str:
        self.calls.append((model, system, user, temperature))
        if self.error is not None:
            raise self.error
        return self.reply


class _FakeResponse:
    def __init__(self, status_code: int, payload: dict[str, Any]) -> None:
        self.status_code = status_code
        self._payload = payload
        self.text = str(payload)

    def json(self) -> dict[str, Any]:
        return self._payload


class _FakeSession:
    def __init__(self, response: _FakeResponse) -> None:
        self.response = response
        self.posts: list[dict[str, Any]] = []

    def post(self, url: str, **kwargs: Any) -> _FakeResponse:
        self.posts.append({"url": url, **kwargs})
        return self.response


class TestDispatch:
    def test_calls_client_with_fixed_temperature(self) -> None:
        client = _FakeClient(reply="raw text")
        keys_seen: list[str] = []

        def factory(api_key: str) -> _FakeClient:
            keys_seen.append(api_key)
            return client

        dispatcher = ProviderDispatcher(_Keys(openai="sk-1"), {"openai": factory})
        assert dispatcher.dispatch("openai", "gpt-4o", "sys", "usr") == "raw text"
        assert client.calls == [("gpt-4o", "sys", "usr", TEMPERATURE)]
        assert TEMPERATURE == 0.8
        assert keys_seen == ["sk-1"]

    def test_unknown_provider(self) -> None:
        dispatcher = ProviderDispatcher(_Keys(mistral="k"), {"openai": lambda k: _FakeClient()})
        with pytest.raises(UnsupportedProviderError):
            dispatcher.dispatch("mistral", "m", "s", "u")

    def test_missing_credential(self) -> None:
        dispatcher = ProviderDispatcher(_Keys(), {"openai": lambda k: _FakeClient()})
        with pytest.raises(MissingCredentialError) as info:
            dispatcher.dispatch("openai", "gpt-4o", "s", "u")
        assert info.value.provider == "openai"

    def test_client_failure_wrapped_once(self) -> None:
        boom = RuntimeError("connection reset")
        client = _FakeClient(error=boom)
        dispatcher = ProviderDispatcher(_Keys(openai="k"), {"openai": lambda k: client})
        with pytest.raises(TransportError, match="connection reset") as info:
            dispatcher.dispatch("openai", "gpt-4o", "s", "u")
        assert info.value.__cause__ is boom
        assert len(client.calls) == 1

    def test_transport_error_passes_through(self) -> None:
        err = TransportError("HTTP 500")
        dispatcher = ProviderDispatcher(
            _Keys(google="k"), {"google": lambda k: _FakeClient(error=err)}
        )
        with pytest.raises(TransportError) as info:
            dispatcher.dispatch("google", "gemini-1.5-pro", "s", "u")
        assert info.value is err

    def test_client_reused_per_provider_and_key(self) -> None:
        built: list[str] = []

        def factory(api_key: str) -> _FakeClient:
            built.append(api_key)
            return _FakeClient()

        keys = _Keys(anthropic="k1")
        dispatcher = ProviderDispatcher(keys, {"anthropic": factory})
        dispatcher.dispatch("anthropic", "claude", "s", "u")
        dispatcher.dispatch("anthropic", "claude", "s", "u")
        assert built == ["k1"]

        keys._keys["anthropic"] = "k2"
        dispatcher.dispatch("anthropic", "claude", "s", "u")
        assert built == ["k1", "k2"]

    def test_default_registry_is_closed_set(self) -> None:
        assert set(DEFAULT_FACTORIES) == set(PROVIDERS) == {"openai", "anthropic", "google"}


class TestOpenAICompletion:
    def _client(self, content: str | None) -> tuple[OpenAICompletion, list[dict[str, Any]]]:
        calls: list[dict[str, Any]] = []

        def create(**kwargs: Any) -> SimpleNamespace:
            calls.append(kwargs)
            message = SimpleNamespace(content=content)
            return SimpleNamespace(choices=[SimpleNamespace(message=message)])

        client = OpenAICompletion("sk-test")
        client._client = SimpleNamespace(  # type: ignore[assignment]
            chat=SimpleNamespace(completions=SimpleNamespace(create=create))
        )
        return client, calls

    def test_request_shape_and_reply(self) -> None:
        client, calls = self._client('{"variants": []}')
        assert client.complete("gpt-4o", "sys", "usr", 0.8) == '{"variants": []}'
        (call,) = calls
        assert call["model"] == "gpt-4o"
        assert call["messages"] == [
            {"role": "system", "content": "sys"},
            {"role": "user", "content": "usr"},
        ]
        assert call["temperature"] == 0.8

    def test_empty_content_becomes_empty_string(self) -> None:
        client, _ = self._client(None)
        assert client.complete("gpt-4o", "sys", "usr", 0.8) == ""


class TestRestClients:
    def test_anthropic_request_and_reply(self) -> None:
        client = AnthropicCompletion("ak")
        session = _FakeSession(
            _FakeResponse(200, {"content": [{"type": "text", "text": '{"variants": []}'}]})
        )
        client._session = session  # type: ignore[assignment]
        assert client.complete("claude", "sys", "usr", 0.8) == '{"variants": []}'
        (post,) = session.posts
        assert post["json"]["system"] == "sys"
        assert post["json"]["messages"] == [{"role": "user", "content": "usr"}]
        assert post["headers"]["x-api-key"] == "ak"

    def test_google_request_and_reply(self) -> None:
        client = GoogleCompletion("gk")
        session = _FakeSession(
            _FakeResponse(
                200, {"candidates": [{"content": {"parts": [{"text": "a"}, {"text": "b"}]}}]}
            )
        )
        client._session = session  # type: ignore[assignment]
        assert client.complete("gemini-1.5-pro", "sys", "usr", 0.8) == "ab"
        (post,) = session.posts
        assert post["url"].endswith("/models/gemini-1.5-pro:generateContent")
        assert post["params"] == {"key": "gk"}
        assert post["json"]["generationConfig"] == {"temperature": 0.8}

    def test_http_error_raises_transport_error(self) -> None:
        client = AnthropicCompletion("ak")
        client._session = _FakeSession(_FakeResponse(401, {"error": "bad key"}))  # type: ignore[assignment]
        with pytest.raises(TransportError, match="401"):
            client.complete("claude", "s", "u", 0.8)


class TestParseModelRef:
    def test_split(self) -> None:
        assert parse_model_ref("OpenAI:gpt-4o") == ("openai", "gpt-4o")

    def test_model_may_contain_colons(self) -> None:
        assert parse_model_ref("google:tuned:v1") == ("google", "tuned:v1")

    @pytest.mark.parametrize("ref", ["gpt-4o", ":gpt-4o", "openai:"])
    def test_rejects_malformed(self, ref: str) -> None:
        with pytest.raises(ValueError):
            parse_model_ref(ref)
