import pytest

from smart_spotlight.common.models import ProviderConfig, SseTransport, StdioTransport
from smart_spotlight.core.errors import ValidationError
from smart_spotlight.core.registry import (
    KIND_SSE,
    ProviderFormDraft,
    parse_args,
    parse_env,
    parse_headers,
)


def test_args_split_on_whitespace_runs():
    assert parse_args("a b  c") == ["a", "b", "c"]


def test_blank_args_yield_nothing():
    assert parse_args("") == []
    assert parse_args("   ") == []


def test_env_lines():
    assert parse_env("A=1\nB=two=2\n\nC") == {"A": "1", "B": "two=2"}


def test_env_trims_and_last_key_wins():
    assert parse_env(" A = 1 \nA=2\n=nokey") == {"A": "2"}


def test_headers_are_kept_as_lines():
    assert parse_headers("Authorization: Bearer x\n\n  X-Id: 1  ") == ["Authorization: Bearer x", "X-Id: 1"]


def test_stdio_draft_to_config():
    draft = ProviderFormDraft(name=" files ", command="npx", args_text="-y server /tmp", env_text="DEBUG=1")
    config = draft.to_config()
    assert config.name == "files"
    assert config.transport == StdioTransport(command="npx", args=["-y", "server", "/tmp"], env={"DEBUG": "1"})
    assert config.enabled


def test_sse_draft_to_config():
    draft = ProviderFormDraft(name="remote", kind=KIND_SSE, url="http://x/sse", headers_text="A: 1", enabled=False)
    config = draft.to_config()
    assert config.transport == SseTransport(url="http://x/sse", headers=["A: 1"])
    assert not config.enabled


@pytest.mark.parametrize(
    "draft,message",
    [
        (ProviderFormDraft(name="", command="npx"), "Name is required"),
        (ProviderFormDraft(name="x"), "Command is required"),
        (ProviderFormDraft(name="x", kind=KIND_SSE), "URL is required"),
    ],
)
def test_invalid_drafts(draft, message):
    assert not draft.can_save
    with pytest.raises(ValidationError, match=message):
        draft.to_transport()


def test_draft_from_existing_provider():
    provider = ProviderConfig(
        name="files",
        transport=StdioTransport(command="npx", args=["-y", "server"], env={"A": "1", "B": "2"}),
        enabled=False,
    )
    draft = ProviderFormDraft.from_provider(provider)
    assert draft.args_text == "-y server"
    assert draft.env_text == "A=1\nB=2"
    assert not draft.enabled
    assert draft.to_config().transport == provider.transport
