import pytest

from smart_spotlight.core.session import (
    ConfirmationRequest,
    InvalidTransition,
    PromptSession,
    SessionState,
)


def _awaiting(token="t1"):
    session = PromptSession()
    session.begin("delete file", "r1")
    session.await_confirmation(ConfirmationRequest(token, "delete", {"path": "/tmp/x"}))
    return session


def test_begin_clears_previous_outcome():
    session = PromptSession()
    session.begin("q", "r1")
    session.fail("boom")
    session.begin("q2", "r2")
    assert session.state is SessionState.SUBMITTING
    assert session.error_message is None
    assert session.request_id == "r2"
    assert session.is_loading


def test_complete_stores_result():
    session = PromptSession()
    session.begin("weather", "r1")
    session.complete("Sunny, 20°C")
    assert session.state is SessionState.COMPLETED
    assert session.result == "Sunny, 20°C"
    assert not session.is_loading


def test_complete_requires_submitting():
    with pytest.raises(InvalidTransition):
        PromptSession().complete("x")


def test_confirmation_only_from_submitting():
    session = PromptSession()
    with pytest.raises(InvalidTransition):
        session.await_confirmation(ConfirmationRequest("t1", "delete"))


def test_pending_confirmation_only_while_awaiting():
    session = _awaiting()
    assert session.pending_confirmation.token == "t1"
    session.take_confirmation(True)
    assert session.pending_confirmation is None
    assert session.state is SessionState.SUBMITTING


def test_decline_returns_to_idle():
    session = _awaiting()
    request = session.take_confirmation(False)
    assert request.token == "t1"
    assert session.state is SessionState.IDLE
    assert not session.is_loading


def test_take_confirmation_is_single_use():
    session = _awaiting()
    session.take_confirmation(True)
    with pytest.raises(InvalidTransition):
        session.take_confirmation(True)


def test_begin_orphans_pending_confirmation():
    session = _awaiting()
    session.begin("another", "r2")
    assert session.pending_confirmation is None
    assert session.state is SessionState.SUBMITTING


def test_reset_only_from_terminal_states():
    session = PromptSession()
    with pytest.raises(InvalidTransition):
        session.reset()
    session.begin("q", "r1")
    session.complete("done")
    session.reset()
    assert session.state is SessionState.IDLE
    assert session.result is None


def test_owns_matches_current_request_only():
    session = PromptSession()
    session.begin("q", "r1")
    assert session.owns("r1")
    assert not session.owns("r0")
    assert session.owns(None)
    session.complete("x")
    assert not session.owns(None)


def test_describe_renders_markdown():
    text = ConfirmationRequest("t1", "delete_file", {"path": "/tmp/x"}).describe()
    assert text.startswith("### Confirm operation")
    assert "`delete_file`" in text
    assert '"path": "/tmp/x"' in text
    assert text.rstrip().endswith("Proceed?")


def test_describe_without_arguments_has_no_code_block():
    text = ConfirmationRequest("t1", "delete").describe()
    assert "```" not in text
