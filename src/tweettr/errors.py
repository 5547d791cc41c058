"""Exceptions surfaced to callers of the generation pipeline and stores."""

from __future__ import annotations


class TweettrError(Exception):
    """Base class; ``str(exc)`` is always a human-readable message."""


class MissingCredentialError(TweettrError):
    def __init__(self, provider: str) -> None:
        super().__init__(
            f"No API key found for {provider}. Please add your API key first."
        )
        self.provider = provider


class UnsupportedProviderError(TweettrError):
    def __init__(self, provider: str) -> None:
        super().__init__(f"Unsupported provider: {provider}")
        self.provider = provider


class TransportError(TweettrError):
    """The completion call failed; the provider's exception is chained."""


class MalformedResponseError(TweettrError):
    """No usable payload could be recovered from the model's reply.

    ``stage`` is one of ``extract``, ``decode`` or ``validate`` so callers can
    tell a missing payload apart from a payload with the wrong shape.
    """

    def __init__(self, message: str, *, raw_text: str, stage: str) -> None:
        super().__init__(message)
        self.raw_text = raw_text
        self.stage = stage


class InvalidImportFormatError(TweettrError):
    """An import document could not be parsed into history items."""
