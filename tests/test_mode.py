"""Tests for the enable/disable wiring in :mod:`panepoint.mode`."""

from __future__ import annotations

import logging
from pathlib import Path

import pytest

from panepoint.errors import ModeStateError, UnknownFrameError
from panepoint.events import (
    CommandCompleted,
    EventBus,
    MemoryDisabled,
    MemoryEnabled,
    ViewportsChanged,
)
from panepoint.mode import PositionMemoryMode
from panepoint.settings import Settings, SettingsStore
from panepoint.utils.logging import get_log_path

from tests.helpers import StubHost


class TestLifecycle:
    """Subscription management when toggling the mode."""

    def test_enable_subscribes_both_hooks(self, stub_host: StubHost, bus: EventBus) -> None:
        mode = PositionMemoryMode(stub_host, bus)

        mode.enable()

        assert mode.enabled is True
        assert bus.handler_count(CommandCompleted) == 1
        assert bus.handler_count(ViewportsChanged) == 1

    def test_disable_unsubscribes_and_clears_state(self, stub_host: StubHost, bus: EventBus) -> None:
        mode = PositionMemoryMode(stub_host, bus)
        mode.enable()
        stub_host.show("frame", "w", "D", offset=4)
        bus.publish(ViewportsChanged(frame="frame"))
        bus.publish(CommandCompleted(frame="frame"))
        context = mode.context("frame")

        mode.disable()

        assert bus.handler_count(CommandCompleted) == 0
        assert bus.handler_count(ViewportsChanged) == 0
        assert context.previous == {}
        assert len(context.store) == 0
        with pytest.raises(UnknownFrameError):
            mode.context("frame")

    def test_disabled_mode_ignores_events(self, stub_host: StubHost, bus: EventBus) -> None:
        mode = PositionMemoryMode(stub_host, bus)
        mode.enable()
        mode.disable()
        stub_host.show("frame", "w", "D", offset=4)

        bus.publish(CommandCompleted(frame="frame"))

        assert list(mode.iter_contexts()) == []

    def test_reenabling_starts_from_empty_memory(self, stub_host: StubHost, bus: EventBus) -> None:
        mode = PositionMemoryMode(stub_host, bus)
        mode.enable()
        stub_host.show("frame", "w", "D1", offset=4)
        bus.publish(ViewportsChanged(frame="frame"))
        bus.publish(CommandCompleted(frame="frame"))

        mode.toggle()
        assert mode.toggle() is True
        stub_host.show("frame", "w", "D2")
        bus.publish(ViewportsChanged(frame="frame"))
        stub_host.show("frame", "w", "D1")
        bus.publish(ViewportsChanged(frame="frame"))

        assert stub_host.set_calls == []

    def test_lifecycle_events_are_published(self, stub_host: StubHost, bus: EventBus) -> None:
        seen: list[object] = []
        bus.subscribe(MemoryEnabled, seen.append)
        bus.subscribe(MemoryDisabled, seen.append)
        mode = PositionMemoryMode(stub_host, bus)

        mode.enable()
        stub_host.show("a", "w1", "D")
        stub_host.show("b", "w2", "D")
        bus.publish(ViewportsChanged(frame="a"))
        bus.publish(ViewportsChanged(frame="b"))
        mode.disable()

        assert seen == [MemoryEnabled(), MemoryDisabled(frames=2)]

    def test_strict_calls_reject_redundant_transitions(self, stub_host: StubHost, bus: EventBus) -> None:
        mode = PositionMemoryMode(stub_host, bus)

        with pytest.raises(ModeStateError):
            mode.disable(strict=True)
        mode.enable()
        mode.enable()
        with pytest.raises(ModeStateError):
            mode.enable(strict=True)
        assert bus.handler_count(CommandCompleted) == 1

    def test_from_settings_honours_enabled_flag(self, stub_host: StubHost, tmp_path: Path) -> None:
        log_dir = str(tmp_path)
        enabled = PositionMemoryMode.from_settings(stub_host, EventBus(), Settings(log_dir=log_dir))
        disabled = PositionMemoryMode.from_settings(
            stub_host, EventBus(), Settings(enabled=False, log_dir=log_dir)
        )

        assert enabled.enabled is True
        assert disabled.enabled is False

    def test_from_settings_applies_logging_switches(
        self, stub_host: StubHost, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("PANEPOINT_DEBUG_LOGGING", "1")
        monkeypatch.setenv("PANEPOINT_LOG_DIR", str(tmp_path / "logs"))
        settings = SettingsStore(tmp_path / "settings.json").load()

        PositionMemoryMode.from_settings(stub_host, EventBus(), settings)

        assert logging.getLogger("panepoint").getEffectiveLevel() == logging.DEBUG
        assert get_log_path() == tmp_path / "logs" / "panepoint.log"

    def test_from_settings_can_leave_logging_alone(self, stub_host: StubHost, tmp_path: Path) -> None:
        settings = Settings(debug_logging=True, log_dir=str(tmp_path))

        PositionMemoryMode.from_settings(stub_host, EventBus(), settings, apply_logging=False)

        assert logging.getLogger("panepoint").level == logging.NOTSET
        assert not (tmp_path / "panepoint.log").exists()


class TestFrames:
    """Each display context owns independent memory."""

    def test_frames_do_not_share_positions(self, stub_host: StubHost, bus: EventBus) -> None:
        mode = PositionMemoryMode(stub_host, bus)
        mode.enable()
        stub_host.show("one", "w1", "D", offset=3)
        stub_host.show("two", "w2", "D", offset=30)
        bus.publish(CommandCompleted(frame="one"))
        bus.publish(CommandCompleted(frame="two"))

        assert mode.context("one").store.as_dict() == {"w1": {"D": 3}}
        assert mode.context("two").store.as_dict() == {"w2": {"D": 30}}

    def test_unknown_frame_raises(self, stub_host: StubHost, bus: EventBus) -> None:
        mode = PositionMemoryMode(stub_host, bus)

        with pytest.raises(UnknownFrameError) as excinfo:
            mode.context("nowhere")

        assert "nowhere" in str(excinfo.value)
        assert excinfo.value.to_dict()["error"] == "unknown_frame"

    def test_forget_frame_drops_context(self, stub_host: StubHost, bus: EventBus) -> None:
        mode = PositionMemoryMode(stub_host, bus)
        mode.enable()
        stub_host.show("one", "w", "D")
        bus.publish(ViewportsChanged(frame="one"))

        assert mode.forget_frame("one") is True
        assert mode.forget_frame("one") is False

    def test_frames_without_viewports_release_their_memory(
        self, stub_host: StubHost, bus: EventBus
    ) -> None:
        mode = PositionMemoryMode(stub_host, bus)
        mode.enable()
        stub_host.show("one", "w1", "D", offset=3)
        stub_host.show("two", "w2", "D", offset=30)
        bus.publish(CommandCompleted(frame="one"))
        bus.publish(CommandCompleted(frame="two"))

        stub_host.remove("one", "w1")
        bus.publish(ViewportsChanged(frame="one", reason="close"))

        assert [context.frame for context in mode.iter_contexts()] == ["two"]
        with pytest.raises(UnknownFrameError):
            mode.context("one")

    def test_commands_in_empty_frames_leave_no_context(
        self, stub_host: StubHost, bus: EventBus
    ) -> None:
        mode = PositionMemoryMode(stub_host, bus)
        mode.enable()

        bus.publish(CommandCompleted(frame="gone"))

        assert list(mode.iter_contexts()) == []

    def test_settings_flow_into_contexts(self, stub_host: StubHost, bus: EventBus) -> None:
        settings = Settings(prune_dead_viewports=False, publish_restore_events=False)
        mode = PositionMemoryMode(stub_host, bus, settings=settings)

        context = mode.ensure_context("one")

        assert context.prune_dead_viewports is False
        assert context.publish_restore_events is False
        assert context.bus is bus


def test_hook_failures_never_reach_the_publisher(
    stub_host: StubHost, bus: EventBus, caplog: pytest.LogCaptureFixture
) -> None:
    class _FailingRecorder:
        def record(self, context):
            raise RuntimeError("boom")

    mode = PositionMemoryMode(stub_host, bus, recorder=_FailingRecorder())  # type: ignore[arg-type]
    mode.enable()

    with caplog.at_level(logging.ERROR, logger="panepoint.mode"):
        bus.publish(CommandCompleted(frame="frame"))

    assert "Recording positions failed" in caplog.text
