"""Tests for NotificationEngine: thresholds, cooldowns and charge transitions."""

from __future__ import annotations

from chargewatch.notifications import (
    FULL_BATTERY_COOLDOWN,
    HIGH_BATTERY_COOLDOWN,
    LOW_BATTERY_COOLDOWN,
    NotificationEngine,
    NotificationKind,
    urgency_label,
)
from chargewatch.readings import NO_BATTERY_READING, BatteryReading, RawState
from chargewatch.settings import Thresholds

from conftest import T0

DEFAULTS = Thresholds(low=20, high=80)


def charging(level):
    return BatteryReading(level, True, raw_state=RawState.CHARGING)


def unplugged(level):
    return BatteryReading(level, False, raw_state=RawState.DISCHARGING)


def kinds(events):
    return [e.kind for e in events]


def test_no_battery_emits_nothing_and_keeps_state():
    engine = NotificationEngine()
    assert engine.decide(NO_BATTERY_READING, DEFAULTS, T0) == []
    assert engine.is_charging is False
    assert all(c.last_fired_at == 0.0 for c in engine.cooldowns.values())


def test_low_battery_urgency_progression():
    engine = NotificationEngine()
    titles = []
    now = T0
    for level in (25, 20, 15, 8):
        titles.extend(e.title for e in engine.decide(unplugged(level), DEFAULTS, now))
        now += LOW_BATTERY_COOLDOWN

    # 25 is above the low threshold
    assert titles == ["Battery LOW", "Battery VERY LOW", "Battery CRITICAL"]


def test_low_battery_event_content():
    engine = NotificationEngine()
    (event,) = engine.decide(unplugged(12), DEFAULTS, T0)
    assert event.kind is NotificationKind.LOW
    assert event.body == "Battery is at 12%. Please plug in your charger immediately!"
    assert event.urgency == "critical"


def test_low_battery_cooldown():
    engine = NotificationEngine()
    assert len(engine.decide(unplugged(10), DEFAULTS, T0)) == 1
    for offset in (5, 60, LOW_BATTERY_COOLDOWN - 1):
        assert engine.decide(unplugged(9), DEFAULTS, T0 + offset) == []
    assert len(engine.decide(unplugged(9), DEFAULTS, T0 + LOW_BATTERY_COOLDOWN)) == 1


def test_low_battery_not_sent_while_charging():
    engine = NotificationEngine()
    assert engine.decide(charging(5), DEFAULTS, T0) == []


def test_charging_start_resets_low_cooldown():
    engine = NotificationEngine()
    assert len(engine.decide(unplugged(10), DEFAULTS, T0)) == 1

    # plug in just before the low cooldown would expire
    plug_in = T0 + LOW_BATTERY_COOLDOWN - 5
    engine.decide(charging(10), DEFAULTS, plug_in)
    assert engine.cooldowns[NotificationKind.LOW].last_fired_at == plug_in

    # unplug again at the moment the old cooldown ran out: still suppressed
    assert engine.decide(unplugged(10), DEFAULTS, T0 + LOW_BATTERY_COOLDOWN) == []
    assert len(engine.decide(unplugged(10), DEFAULTS, plug_in + LOW_BATTERY_COOLDOWN)) == 1


def test_charge_transition_suppresses_first_low_alert():
    engine = NotificationEngine()
    engine.decide(unplugged(50), DEFAULTS, T0)
    engine.decide(charging(15), DEFAULTS, T0 + 5)
    assert engine.decide(unplugged(15), DEFAULTS, T0 + 10) == []


def test_full_battery_fires_once_per_cooldown():
    engine = NotificationEngine()
    fired_at = []
    # 20 minutes at 100%, one tick every 5 seconds
    for step in range(0, 20 * 60, 5):
        for event in engine.decide(charging(100), DEFAULTS, T0 + step):
            assert event.kind is NotificationKind.FULL
            fired_at.append(step)
    assert fired_at == [0, FULL_BATTERY_COOLDOWN]


def test_full_battery_event_content():
    engine = NotificationEngine()
    (event,) = engine.decide(charging(100), DEFAULTS, T0)
    assert event.title == "Battery Full"
    assert "Unplug your charger" in event.body


def test_high_battery_while_charging():
    engine = NotificationEngine()
    (event,) = engine.decide(charging(85), DEFAULTS, T0)
    assert event.kind is NotificationKind.HIGH
    assert event.title == "Battery Almost Full"
    assert event.body == "Battery is at 85%. You can unplug your charger."

    assert engine.decide(charging(90), DEFAULTS, T0 + HIGH_BATTERY_COOLDOWN - 1) == []
    assert kinds(engine.decide(charging(90), DEFAULTS, T0 + HIGH_BATTERY_COOLDOWN)) == [
        NotificationKind.HIGH
    ]


def test_high_battery_not_sent_when_unplugged():
    engine = NotificationEngine()
    assert engine.decide(unplugged(90), DEFAULTS, T0) == []


def test_full_suppresses_high_on_same_tick():
    engine = NotificationEngine()
    assert kinds(engine.decide(charging(100), DEFAULTS, T0)) == [NotificationKind.FULL]
    # high cooldown untouched by a full tick
    assert engine.cooldowns[NotificationKind.HIGH].last_fired_at == 0.0
    # full on cooldown, still no high while at 100
    assert engine.decide(charging(100), DEFAULTS, T0 + HIGH_BATTERY_COOLDOWN) == []


def test_cooldowns_are_independent():
    engine = NotificationEngine()
    assert kinds(engine.decide(charging(85), DEFAULTS, T0)) == [NotificationKind.HIGH]
    assert kinds(engine.decide(charging(100), DEFAULTS, T0 + 5)) == [NotificationKind.FULL]


def test_inverted_thresholds_are_accepted():
    engine = NotificationEngine()
    odd = Thresholds(low=90, high=30)
    assert kinds(engine.decide(unplugged(50), odd, T0)) == [NotificationKind.LOW]
    assert kinds(engine.decide(charging(50), odd, T0 + 5)) == [NotificationKind.HIGH]


def test_custom_cooldowns():
    engine = NotificationEngine(low_cooldown=30)
    assert len(engine.decide(unplugged(5), DEFAULTS, T0)) == 1
    assert len(engine.decide(unplugged(5), DEFAULTS, T0 + 30)) == 1


def test_urgency_label():
    assert urgency_label(10) == "CRITICAL"
    assert urgency_label(11) == "VERY LOW"
    assert urgency_label(15) == "VERY LOW"
    assert urgency_label(16) == "LOW"
