import pytest

from smart_spotlight.common.models import ProviderConfig, StdioTransport
from smart_spotlight.core.errors import TransportError, ValidationError
from smart_spotlight.core.registry import MODE_CREATE, MODE_EDIT, ProviderFormDraft, ProviderSettings


def seed(backend, name="x", enabled=True, active=False):
    backend.providers[name] = ProviderConfig(
        name=name,
        transport=StdioTransport(command="run-" + name),
        enabled=enabled,
        active=active,
    )


def test_load_lists_providers(backend, provider_settings):
    seed(backend, "b")
    seed(backend, "a")
    provider_settings.load()
    assert [p.name for p in provider_settings.providers] == ["a", "b"]
    assert not provider_settings.is_loading


def test_load_failure_keeps_empty_list(backend, provider_settings):
    backend.fail_list = TransportError("down")
    provider_settings.load()
    assert provider_settings.providers == []
    assert not provider_settings.is_loading


def test_save_creates_then_sets_enabled(backend, provider_settings, scheduler):
    provider_settings.load()
    provider_settings.begin_create()
    provider_settings.draft = ProviderFormDraft(name="files", command="npx", args_text="-y srv", enabled=False)

    assert provider_settings.save()

    names = [call[0] for call in backend.calls if call[0] != "list_providers"]
    assert names == ["create_stdio_provider", "set_provider_enabled"]
    assert provider_settings.status.success
    assert provider_settings.mode == MODE_CREATE
    assert [p.name for p in provider_settings.providers] == ["files"]
    assert not provider_settings.providers[0].enabled

    scheduler.advance(1500)
    assert provider_settings.mode is None
    assert not provider_settings.status.success


def test_duplicate_name_keeps_form_open(backend, provider_settings):
    seed(backend, "x")
    provider_settings.load()
    before = list(provider_settings.providers)
    provider_settings.begin_create()
    provider_settings.draft = ProviderFormDraft(name="x", command="other")

    provider_settings.save()

    assert provider_settings.form_open
    assert provider_settings.status.error.startswith("Failed to save server: ")
    assert "x" in provider_settings.status.error
    assert provider_settings.providers == before
    assert backend.count("set_provider_enabled") == 0


def test_invalid_draft_is_not_sent(backend, provider_settings):
    provider_settings.begin_create()
    provider_settings.draft = ProviderFormDraft(name="", command="npx")
    assert not provider_settings.save()
    assert provider_settings.status.error == "Name is required"
    assert backend.count("create_stdio_provider") == 0


def test_edit_updates_existing(backend, provider_settings):
    seed(backend, "x")
    provider_settings.load()
    provider_settings.begin_edit(provider_settings.providers[0])
    assert provider_settings.mode == MODE_EDIT
    provider_settings.draft.args_text = "--verbose"
    assert provider_settings.save()
    assert backend.providers["x"].transport.args == ["--verbose"]


def test_update_refuses_transport_change(backend, registry):
    seed(backend, "x")
    registry.list()
    draft = ProviderFormDraft(name="x", kind="sse", url="http://x")
    with pytest.raises(ValidationError):
        registry.update(draft.to_config())
    assert backend.count("update_sse_provider") == 0


def test_enable_activates_provider(backend, provider_settings):
    seed(backend, "x", enabled=True, active=False)
    provider_settings.load()
    provider_settings.select("x")

    assert provider_settings.toggle_active("x")

    assert backend.count("enable_provider") == 1
    assert provider_settings.registry.get("x").active
    assert provider_settings.selected.active


def test_toggle_active_stops_running_provider(backend, provider_settings):
    seed(backend, "x", active=True)
    provider_settings.load()
    provider_settings.toggle_active("x")
    assert backend.count("disable_provider") == 1
    assert not provider_settings.registry.get("x").active


def test_enable_differs_from_set_enabled(backend, registry):
    seed(backend, "x", enabled=True, active=False)
    registry.set_enabled("x", True)
    assert not registry.get("x").active
    registry.enable("x")
    assert registry.get("x").active


def test_toggle_enabled(backend, provider_settings):
    seed(backend, "x", enabled=True)
    provider_settings.load()
    provider_settings.toggle_enabled("x")
    assert backend.calls[-2] == ("set_provider_enabled", "x", False)
    assert not provider_settings.registry.get("x").enabled


def test_toggle_unknown_provider_reports_error(provider_settings):
    provider_settings.load()
    assert not provider_settings.toggle_enabled("ghost")
    assert provider_settings.status.error == (
        "Failed to toggle server enabled state: provider with name ghost does not exist"
    )


def test_delete_clears_selection(backend, provider_settings):
    seed(backend, "x")
    seed(backend, "y")
    provider_settings.load()
    provider_settings.select("x")

    assert provider_settings.delete("x")

    assert provider_settings.selected is None
    assert [p.name for p in provider_settings.providers] == ["y"]


def test_delete_missing_reports_error(backend, provider_settings):
    provider_settings.load()
    provider_settings.delete("ghost")
    assert provider_settings.status.error.startswith("Failed to delete server: ")
    assert "ghost" in provider_settings.status.error


def test_new_action_cancels_pending_status_clear(backend, provider_settings, scheduler):
    seed(backend, "x")
    provider_settings.load()
    provider_settings.toggle_enabled("x")
    scheduler.advance(1000)
    provider_settings.toggle_enabled("x")
    scheduler.advance(600)
    assert provider_settings.status.success
    scheduler.advance(900)
    assert not provider_settings.status.success


def test_changes_are_announced(provider_settings):
    seen = []
    provider_settings.on_change = lambda: seen.append(provider_settings.mode)
    provider_settings.begin_create()
    provider_settings.cancel_form()
    assert seen == [MODE_CREATE, None]


def test_action_runs_in_background_and_blocks_others(backend, registry, scheduler, deferred_runner):
    seed(backend, "x")
    seed(backend, "y")
    registry.list()
    settings = ProviderSettings(registry, scheduler, runner=deferred_runner)

    assert settings.toggle_enabled("x")

    assert settings.status.loading
    assert backend.count("set_provider_enabled") == 0
    assert not settings.delete("y")
    assert not settings.toggle_active("x")
    assert len(deferred_runner.tasks) == 1

    deferred_runner.finish()

    assert not settings.status.loading
    assert settings.status.success
    assert not registry.get("x").enabled
    assert settings.delete("y")


def test_load_reports_loading_until_listed(backend, registry, scheduler, deferred_runner):
    seed(backend, "x")
    settings = ProviderSettings(registry, scheduler, runner=deferred_runner)
    settings.load()
    assert settings.is_loading
    assert settings.providers == []

    deferred_runner.finish()

    assert not settings.is_loading
    assert [p.name for p in settings.providers] == ["x"]


def test_failed_save_reports_error_after_task(backend, registry, scheduler, deferred_runner):
    seed(backend, "x")
    registry.list()
    settings = ProviderSettings(registry, scheduler, runner=deferred_runner)
    settings.begin_create()
    settings.draft = ProviderFormDraft(name="x", command="other")

    assert settings.save()
    assert settings.status.loading

    deferred_runner.finish()

    assert not settings.status.loading
    assert settings.status.error.startswith("Failed to save server: ")
    assert settings.form_open


def test_retry_after_partial_create_updates(backend, provider_settings, scheduler):
    provider_settings.load()
    provider_settings.begin_create()
    provider_settings.draft = ProviderFormDraft(name="files", command="npx", enabled=False)
    backend.fail_set_enabled = TransportError("backend unreachable")

    provider_settings.save()

    assert "files" in backend.providers
    assert provider_settings.status.error == "Failed to save server: backend unreachable"
    assert provider_settings.mode == MODE_EDIT

    backend.fail_set_enabled = None
    provider_settings.save()

    assert backend.count("create_stdio_provider") == 1
    assert backend.count("update_stdio_provider") == 1
    assert provider_settings.status.success
    assert not backend.providers["files"].enabled
