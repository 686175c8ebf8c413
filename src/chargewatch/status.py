"""
Battery status helper for conky and other scripts.
Prints the state published by the tray daemon, or a one-shot reading when
the daemon is not running.
"""

import argparse
import logging

from .readings import format_minutes, query_source, reading_from_result
from .sinks import read_shared_state
from .sources import SOURCE_NAMES, detect_source


def format_status(state: dict) -> list:
    """Conky lines for a shared state payload."""
    if state.get("noBattery"):
        return ["> AC"]

    charging = " CHG" if state.get("isCharging") else ""
    lines = [f"> {state.get('level', 0)}%{charging}"]

    at_100 = state.get("timeAt100", 0)
    overcharge = state.get("totalOverchargeTime", 0)
    if at_100:
        lines.append(f"${{color4}}  at 100% for {format_minutes(at_100)}")
    if overcharge:
        lines.append(f"${{color4}}  overcharge {format_minutes(overcharge)}")
    return lines


def main(argv=None):
    """Entry point for battery status output."""
    parser = argparse.ArgumentParser(description="Print battery status for conky")
    parser.add_argument("--source", choices=SOURCE_NAMES, help="battery backend when the tray is not running")
    args = parser.parse_args(argv)
    logging.basicConfig(level=logging.ERROR)

    state = read_shared_state()
    if state is None:
        try:
            source = detect_source(args.source)
        except Exception:
            print("> ERR")
            return
        result = query_source(source)
        if not result.ok:
            print("> N/A")
            return
        state = reading_from_result(result).as_dict()

    for line in format_status(state):
        print(line)


if __name__ == "__main__":
    main()
