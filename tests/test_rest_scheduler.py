"""Tests for the pure rest-cycle state machine."""

import pytest

from core.rest_scheduler import RestCycle, RestPhase, RestScheduler, advance, pause_or_resume
from core.settings import RestSettings

T = 1_700_000_000.0


@pytest.mark.parametrize("interval", [15, 16, 30, 45, 60, 90, 119, 120])
def test_enabling_schedules_next_rest_one_interval_ahead(interval):
    scheduler = RestScheduler(RestSettings(enabled=False, interval_minutes=interval))

    scheduler.set_enabled(True, T)

    assert scheduler.cycle.phase is RestPhase.WAITING
    assert scheduler.next_rest_at == T + interval * 60


def test_disabling_clears_next_rest():
    scheduler = RestScheduler(RestSettings(), now=T)
    assert scheduler.next_rest_at == T + 30 * 60

    scheduler.set_enabled(False, T + 5)

    assert scheduler.cycle == RestCycle.idle()
    assert scheduler.next_rest_at is None
    assert scheduler.tick(T + 10_000) == RestCycle.idle()


def test_interval_change_rearms_only_while_waiting():
    scheduler = RestScheduler(RestSettings(), now=T)

    scheduler.set_interval(45, T + 100)
    assert scheduler.next_rest_at == T + 100 + 45 * 60

    scheduler.cycle = RestCycle.resting(T + 200)
    scheduler.set_interval(60, T + 150)
    assert scheduler.cycle == RestCycle.resting(T + 200)


def test_interval_is_clamped_to_bounds():
    scheduler = RestScheduler(RestSettings(), now=T)

    scheduler.set_interval(5, T)
    assert scheduler.settings.interval_minutes == 15
    assert scheduler.next_rest_at == T + 15 * 60

    scheduler.set_interval(500, T)
    assert scheduler.settings.interval_minutes == 120


def test_tick_starts_break_when_due():
    settings = RestSettings(interval_minutes=15, duration_minutes=2)
    scheduler = RestScheduler(settings, now=T)
    due = T + 15 * 60

    assert scheduler.tick(due - 0.1).phase is RestPhase.WAITING
    cycle = scheduler.tick(due)

    assert cycle == RestCycle.resting(due + 2 * 60)
    assert cycle.overlay_visible


def test_missed_ticks_start_break_from_actual_time():
    scheduler = RestScheduler(RestSettings(interval_minutes=15, duration_minutes=1), now=T)
    late = T + 15 * 60 + 500

    cycle = scheduler.tick(late)

    assert cycle == RestCycle.resting(late + 60)


def test_break_end_rearms_or_goes_idle():
    settings = RestSettings(interval_minutes=20, duration_minutes=1)
    end = T + 60

    assert advance(RestCycle.resting(end), settings, end) == RestCycle.waiting(end + 20 * 60)
    disabled = RestSettings(enabled=False, duration_minutes=1)
    assert advance(RestCycle.resting(end), disabled, end) == RestCycle.idle()


def test_disabling_during_break_applies_when_break_ends():
    scheduler = RestScheduler(RestSettings(duration_minutes=1), now=T)
    scheduler.cycle = RestCycle.resting(T + 60)

    scheduler.set_enabled(False, T + 10)
    assert scheduler.cycle == RestCycle.resting(T + 60)

    assert scheduler.tick(T + 60) == RestCycle.idle()


def test_duration_change_restarts_running_break_from_now():
    scheduler = RestScheduler(RestSettings(duration_minutes=5), now=T)
    scheduler.cycle = RestCycle.resting(T + 300)

    scheduler.set_duration(3, T + 100)

    assert scheduler.cycle == RestCycle.resting(T + 100 + 180)


def test_duration_change_resets_paused_break_to_full_length():
    scheduler = RestScheduler(RestSettings(duration_minutes=5), now=T)
    scheduler.cycle = RestCycle.paused(42)

    scheduler.set_duration(4, T + 100)

    assert scheduler.cycle == RestCycle.paused(240)


def test_duration_change_while_waiting_keeps_schedule():
    scheduler = RestScheduler(RestSettings(), now=T)
    before = scheduler.cycle

    scheduler.set_duration(10, T + 100)

    assert scheduler.cycle == before
    assert scheduler.settings.duration_minutes == 10


def test_paused_break_never_ends_on_its_own():
    cycle = RestCycle.paused(30)
    assert advance(cycle, RestSettings(), T + 1_000_000) == cycle


def test_pause_truncates_to_whole_seconds_and_resume_restores():
    paused = pause_or_resume(RestCycle.resting(T + 59.7), T)
    assert paused == RestCycle.paused(59)

    resumed = pause_or_resume(paused, T + 10)
    assert resumed == RestCycle.resting(T + 69)


def test_pause_after_deadline_clamps_to_zero():
    assert pause_or_resume(RestCycle.resting(T), T + 5) == RestCycle.paused(0)


def test_pause_ignored_outside_break():
    waiting = RestCycle.waiting(T + 100)
    assert pause_or_resume(waiting, T) is waiting
