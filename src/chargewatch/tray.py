#!/usr/bin/env python3
"""
Battery tray indicator.
Polls the battery every 5 seconds, shows level and charge-session timing
in the tray menu and raises desktop notifications at the configured
thresholds. Also writes a shared state file for chargewatch-status.
"""

import argparse
import logging
import sys

import gi
gi.require_version("Gtk", "3.0")
gi.require_version("AyatanaAppIndicator3", "0.1")
from gi.repository import Gtk, AyatanaAppIndicator3, GLib

from .lifecycle import Lifecycle
from .readings import BatteryReading, describe_reading, format_minutes
from .scheduler import POLL_INTERVAL, BatteryPoller
from .session import SessionSnapshot
from .settings import SettingsStore, Thresholds
from .sinks import DesktopNotifier, StateFileSink
from .sources import SOURCE_NAMES, detect_source

_LOGGER = logging.getLogger(__name__)

LOW_THRESHOLD_CHOICES = (10, 15, 20, 25, 30)
HIGH_THRESHOLD_CHOICES = (70, 75, 80, 85, 90, 95)


class GLibTimer:
    """Timer backend for RecurringTask on the GLib main loop."""

    def add(self, seconds, callback):
        return GLib.timeout_add(int(seconds * 1000), callback)

    def remove(self, handle):
        GLib.source_remove(handle)


def get_battery_icon(reading: BatteryReading) -> str:
    """Get appropriate battery icon name."""
    if reading.no_battery:
        return "battery-missing"

    percent = reading.level
    if percent >= 80:
        level = "full"
    elif percent >= 50:
        level = "good"
    elif percent >= 20:
        level = "low"
    else:
        level = "empty"

    if reading.is_charging:
        return f"battery-{level}-charging"
    return f"battery-{level}"


class BatteryIndicator:
    """System tray indicator showing battery status."""

    def __init__(self, settings: SettingsStore, on_quit):
        self.settings = settings
        self.on_quit = on_quit
        self.analytics = None

        self.indicator = AyatanaAppIndicator3.Indicator.new(
            "chargewatch", "battery-missing", AyatanaAppIndicator3.IndicatorCategory.HARDWARE
        )
        self.indicator.set_status(AyatanaAppIndicator3.IndicatorStatus.ACTIVE)
        self.indicator.set_title("Battery: --%")
        self._build_menu()

    def _info_item(self, label):
        item = Gtk.MenuItem(label=label)
        item.set_sensitive(False)
        self.menu.append(item)
        return item

    def _build_menu(self):
        """Build the indicator menu."""
        self.menu = Gtk.Menu()

        self.percent_item = self._info_item("Battery: --%")
        self.status_item = self._info_item("Status: --")

        self.menu.append(Gtk.SeparatorMenuItem())

        self.time_at_100_item = self._info_item("Time at 100%: 0m")
        self.charge_time_item = self._info_item("Charging for: 0m")
        self.overcharge_item = self._info_item("Overcharge this cycle: 0m")

        self.menu.append(Gtk.SeparatorMenuItem())

        health_item = Gtk.MenuItem(label="Battery Health...")
        health_item.connect("activate", self._on_health_clicked)
        self.menu.append(health_item)

        thresholds = self.settings.get()
        self.menu.append(self._threshold_menu("Low battery alert", LOW_THRESHOLD_CHOICES, thresholds.low, "low"))
        self.menu.append(self._threshold_menu("Unplug reminder", HIGH_THRESHOLD_CHOICES, thresholds.high, "high"))

        self.menu.append(Gtk.SeparatorMenuItem())

        quit_item = Gtk.MenuItem(label="Quit")
        quit_item.connect("activate", self.quit)
        self.menu.append(quit_item)

        self.menu.show_all()
        self.indicator.set_menu(self.menu)

    def _threshold_menu(self, label, choices, current, field):
        submenu = Gtk.Menu()
        group = None
        for value in sorted(set(choices) | {current}):
            item = Gtk.RadioMenuItem.new_with_label_from_widget(group, f"{value}%")
            group = item
            item.set_active(value == current)
            item.connect("toggled", self._on_threshold_toggled, field, value)
            submenu.append(item)

        parent = Gtk.MenuItem(label=label)
        parent.set_submenu(submenu)
        return parent

    def _on_threshold_toggled(self, widget, field, value):
        if not widget.get_active():
            return
        current = self.settings.get()
        if field == "low":
            updated = Thresholds(low=value, high=current.high)
        else:
            updated = Thresholds(low=current.low, high=value)
        try:
            self.settings.set(updated)
        except OSError as e:
            _LOGGER.error("Could not save settings: %s", e)

    def _on_health_clicked(self, widget):
        if self.analytics is None:
            return
        report = self.analytics()
        capacity = "-"
        if report.design_capacity:
            capacity = (
                f"{report.current_capacity} / {report.design_capacity} {report.capacity_unit}"
            )
        lines = [
            f"Health: {report.health}",
            f"Cycle count: {report.cycle_count}",
            f"Capacity: {capacity}",
            f"Voltage: {report.voltage:.2f} V" if report.voltage else "Voltage: -",
            f"Time at 100%: {format_minutes(report.time_at_100_minutes)}",
            f"Charging for: {format_minutes(report.total_charge_minutes)}",
            f"Overcharge this cycle: {format_minutes(report.total_overcharge_minutes)}",
            f"Last full charge: {report.last_full_charge}",
        ]
        dialog = Gtk.MessageDialog(
            message_type=Gtk.MessageType.INFO,
            buttons=Gtk.ButtonsType.OK,
            text="Battery Health",
        )
        dialog.format_secondary_text("\n".join(lines))
        dialog.run()
        dialog.destroy()

    def show(self, reading: BatteryReading, snapshot: SessionSnapshot = None) -> None:
        """Update the indicator with the latest reading."""
        icon = get_battery_icon(reading)
        status = describe_reading(reading)

        if reading.no_battery:
            self.indicator.set_icon_full(icon, "No battery")
            self.indicator.set_label("AC", "")
            self.indicator.set_title("No Battery Detected")
            self.percent_item.set_label("No Battery Detected")
        else:
            charging = " (Charging)" if reading.is_charging else ""
            self.indicator.set_icon_full(icon, f"Battery {reading.level}%")
            self.indicator.set_label(f"{reading.level}%", "")
            self.indicator.set_title(f"Battery {reading.level}%")
            self.percent_item.set_label(f"Battery: {reading.level}%{charging}")
        self.status_item.set_label(status)

        if snapshot is not None:
            self.time_at_100_item.set_label(f"Time at 100%: {format_minutes(snapshot.time_at_100_minutes)}")
            self.charge_time_item.set_label(f"Charging for: {format_minutes(snapshot.total_charge_minutes)}")
            self.overcharge_item.set_label(
                f"Overcharge this cycle: {format_minutes(snapshot.total_overcharge_minutes)}"
            )

    def close(self) -> None:
        self.indicator.set_status(AyatanaAppIndicator3.IndicatorStatus.PASSIVE)

    def quit(self, widget):
        """Clean up and quit."""
        self.on_quit()


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Battery tray indicator with charge notifications")
    parser.add_argument("--source", choices=SOURCE_NAMES, help="battery backend (default: auto-detect)")
    parser.add_argument("--interval", type=float, default=POLL_INTERVAL, help="seconds between polls")
    parser.add_argument("-v", "--verbose", action="store_true", help="debug logging")
    return parser.parse_args(argv)


def main(argv=None):
    """Entry point for the tray indicator."""
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        source = detect_source(args.source)
    except Exception as e:
        _LOGGER.error("Cannot open battery source %s: %s", args.source, e)
        sys.exit(1)

    lifecycle = Lifecycle(quit_callback=Gtk.main_quit)
    if not lifecycle.acquire():
        sys.exit(1)

    settings = SettingsStore()
    indicator = BatteryIndicator(settings, on_quit=lifecycle.shutdown)
    poller = BatteryPoller(
        source,
        settings,
        display_sinks=[indicator, StateFileSink()],
        notifier=DesktopNotifier(),
        timer=GLibTimer(),
        interval=args.interval,
    )
    indicator.analytics = poller.analytics

    lifecycle.register(poller.teardown)
    lifecycle.install_signal_handlers()

    poller.start()
    Gtk.main()


if __name__ == "__main__":
    main()
