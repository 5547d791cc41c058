"""End-to-end tests for compose → dispatch → parse → persist."""

import pytest

from tweettr.errors import MalformedResponseError, MissingCredentialError
from tweettr.generator import TweetGenerator
from tweettr.history import HistoryStore
from tweettr.kvstore import MemoryKeyValueStore
from tweettr.models import GenerationOptions
from tweettr.providers import ProviderDispatcher
from tweettr.samples import SampleLibrary

_TWO_VARIANTS = '{"variants":[{"tweet":"A"},{"tweet":"B"}]}'


class _Keys:
    def get_credential(self, provider: str) -> str | None:
        return "test-key"


class _StubClient:
    def __init__(self, reply: str) -> None:
        self.reply = reply
        self.calls: list[tuple[str, str, str, float]] = []

    def complete(self, model: str, system: str, user: str, temperature: float) -> str:
        self.calls.append((model, system, user, temperature))
        return self.reply


def _setup(reply: str = _TWO_VARIANTS) -> tuple[TweetGenerator, _StubClient, MemoryKeyValueStore]:
    kv = MemoryKeyValueStore()
    client = _StubClient(reply)
    generator = TweetGenerator(
        dispatcher=ProviderDispatcher(_Keys(), {"openai": lambda key: client}),
        samples=SampleLibrary(kv),
        history=HistoryStore(kv),
        store=kv,
    )
    return generator, client, kv


_OPTIONS = GenerationOptions(tone="direct", char_target=200, variants_requested=2)


class TestGenerate:
    def test_scenario_one_weighted_sample(self) -> None:
        generator, client, kv = _setup()
        sample = SampleLibrary(kv).add("Win fast", weight=2.0)

        item = generator.generate("openai", "gpt-4o", "You write tweets.", _OPTIONS)

        assert [v.tweet for v in item.variants] == ["A", "B"]
        assert item.attached_sample_ids == [sample.id]
        assert item.favorite is False
        assert HistoryStore(kv).list() == [item]

        ((model, system, user, temperature),) = client.calls
        assert model == "gpt-4o"
        assert "1. (Weight: 2) Win fast" in system
        assert user.endswith("Generate 2 viral tweet variants.")
        assert item.system_prompt == system
        assert item.base_prompt == "You write tweets."

    def test_remembers_last_model(self) -> None:
        generator, _, _ = _setup()
        assert generator.last_model() is None
        generator.generate("openai", "gpt-5-mini", "p", _OPTIONS)
        assert generator.last_model() == "openai:gpt-5-mini"

    def test_attached_ids_are_a_snapshot(self) -> None:
        generator, _, kv = _setup()
        library = SampleLibrary(kv)
        sample = library.add("Win fast")
        item = generator.generate("openai", "gpt-4o", "p", _OPTIONS)

        library.remove(sample.id)
        library.add("Something else")
        assert HistoryStore(kv).get(item.id).attached_sample_ids == [sample.id]  # type: ignore[union-attr]

    def test_malformed_reply_not_persisted(self) -> None:
        generator, _, kv = _setup(reply="Sorry, I can't help with that.")
        with pytest.raises(MalformedResponseError) as info:
            generator.generate("openai", "gpt-4o", "p", _OPTIONS)
        assert info.value.raw_text == "Sorry, I can't help with that."
        assert HistoryStore(kv).list() == []

    def test_missing_credential_surfaces(self) -> None:
        kv = MemoryKeyValueStore()

        class _NoKeys:
            def get_credential(self, provider: str) -> str | None:
                return None

        generator = TweetGenerator(
            dispatcher=ProviderDispatcher(_NoKeys()),
            samples=SampleLibrary(kv),
            history=HistoryStore(kv),
            store=kv,
        )
        with pytest.raises(MissingCredentialError):
            generator.generate("openai", "gpt-4o", "p", _OPTIONS)

    def test_empty_base_prompt_rejected(self) -> None:
        generator, client, _ = _setup()
        with pytest.raises(ValueError):
            generator.generate("openai", "gpt-4o", "   ", _OPTIONS)
        assert client.calls == []

    def test_unexpected_count_accepted(self) -> None:
        generator, _, _ = _setup(reply='{"variants":[{"tweet":"only one"}]}')
        item = generator.generate("openai", "gpt-4o", "p", _OPTIONS)
        assert len(item.variants) == 1


class TestReplay:
    def test_reuses_settings_and_surviving_samples(self) -> None:
        generator, client, kv = _setup()
        library = SampleLibrary(kv)
        kept = library.add("Keep this", weight=1.5)
        gone = library.add("Delete this")
        first = generator.generate("openai", "gpt-4o", "Base prompt.", _OPTIONS)

        library.remove(gone.id)
        library.add("Added later")
        second = generator.replay(first.id)

        assert second.id != first.id
        assert second.options == first.options
        assert second.base_prompt == "Base prompt."
        assert second.attached_sample_ids == [kept.id]
        assert "Added later" not in client.calls[-1][1]
        assert [h.id for h in HistoryStore(kv).list()] == [second.id, first.id]

    def test_unknown_item(self) -> None:
        generator, _, _ = _setup()
        with pytest.raises(ValueError):
            generator.replay("missing")
