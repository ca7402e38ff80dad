"""Tests for the debounced filter pushes."""

from typing import List

import pytest

from core.filter_applier import DEBOUNCE_INTERVAL_MS, FilterSettingsApplier
from core.host_bridge import HostBridgeError
from core.settings import FilterSettings
from tests.qt_helpers import process_events_for, wait_until


class FakeBridge:
    def __init__(self) -> None:
        self.applied: List[FilterSettings] = []
        self.resets = 0
        self.fail_apply = False
        self.fail_reset = False

    def apply_filter(self, settings: FilterSettings) -> None:
        if self.fail_apply:
            raise HostBridgeError("display busy")
        self.applied.append(settings)

    def reset_filter(self) -> None:
        self.resets += 1
        if self.fail_reset:
            raise HostBridgeError("display gone")


@pytest.fixture
def bridge():
    return FakeBridge()


def test_burst_collapses_into_single_push_with_last_value(qapp, bridge):
    applier = FilterSettingsApplier(bridge)

    applier.submit(FilterSettings(strength=10))
    applier.submit(FilterSettings(strength=20))
    applier.submit(FilterSettings(strength=40))

    assert bridge.applied == []
    assert wait_until(qapp, lambda: bridge.applied)
    process_events_for(qapp, (DEBOUNCE_INTERVAL_MS * 2) / 1000)

    assert bridge.applied == [FilterSettings(strength=40)]
    assert applier.pending is None


def test_each_submit_restarts_the_quiet_window(qapp, bridge):
    applier = FilterSettingsApplier(bridge, interval_ms=200)

    applier.submit(FilterSettings(strength=10))
    process_events_for(qapp, 0.12)
    applier.submit(FilterSettings(strength=15))
    process_events_for(qapp, 0.12)

    assert bridge.applied == []
    assert wait_until(qapp, lambda: bridge.applied)
    assert bridge.applied == [FilterSettings(strength=15)]


def test_flush_pushes_immediately(qapp, bridge):
    applier = FilterSettingsApplier(bridge)
    applier.submit(FilterSettings(color_temp=3400))

    applier.flush()
    applier.flush()

    assert bridge.applied == [FilterSettings(color_temp=3400)]


def test_bridge_failure_is_logged_not_raised(qapp, bridge):
    bridge.fail_apply = True
    applier = FilterSettingsApplier(bridge)
    applier.submit(FilterSettings())

    applier.flush()

    assert bridge.applied == []
    assert applier.pending is None


def test_reapply_resubmits_last_settings(qapp, bridge):
    applier = FilterSettingsApplier(bridge)
    applier.submit(FilterSettings(strength=55))
    applier.flush()

    applier.reapply()
    applier.flush()

    assert bridge.applied == [FilterSettings(strength=55), FilterSettings(strength=55)]


def test_shutdown_drops_pending_and_resets_once(qapp, bridge):
    applier = FilterSettingsApplier(bridge)
    applier.submit(FilterSettings(strength=70))

    applier.shutdown()
    applier.shutdown()
    applier.submit(FilterSettings(strength=80))
    process_events_for(qapp, (DEBOUNCE_INTERVAL_MS * 2) / 1000)

    assert applier.is_shut_down
    assert bridge.applied == []
    assert bridge.resets == 1


def test_shutdown_survives_reset_failure(qapp, bridge):
    bridge.fail_reset = True
    applier = FilterSettingsApplier(bridge)

    applier.shutdown()

    assert bridge.resets == 1
    assert applier.is_shut_down
