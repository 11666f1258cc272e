from __future__ import annotations

import json
import logging
from typing import Any

import pytest

from pyroomba.exceptions import RoombaDecodeError
from pyroomba.models.state import BinState
from pyroomba.state import StateSynchronizer
from pyroomba.state.synchronizer import bin_status, decode_state_message, mission_command


def _report(**reported: Any) -> bytes:
    return json.dumps({"state": {"reported": reported}}).encode("utf-8")


def _values(updates: list[Any]) -> dict[str, Any]:
    return dict(updates)


@pytest.mark.parametrize(
    ("cycle", "phase", "expected"),
    [
        ("none", "charge", "stop"),
        ("none", "stop", "stop"),
        ("clean", "run", "clean"),
        ("clean", "stop", "pause"),
        ("clean", "stuck", "pause"),
        ("clean", "pause", "pause"),
        ("clean", "hmUsrDock", "dock"),
        ("dock", "dock", "dock"),
        ("spot", "run", "spot"),
        ("clean", None, "clean"),
    ],
)
def test_mission_command_mapping(cycle: str, phase: str | None, expected: str) -> None:
    assert mission_command(cycle, phase) == expected


@pytest.mark.parametrize(
    ("present", "full", "expected"),
    [
        (True, False, "ok"),
        (True, True, "full"),
        (False, False, "removed"),
        (False, True, "removed"),
    ],
)
def test_bin_status(present: bool, full: bool, expected: str) -> None:
    assert bin_status(BinState(present=present, full=full)) == expected


def test_decode_rejects_non_json() -> None:
    with pytest.raises(RoombaDecodeError):
        decode_state_message(b"{not json")


def test_mission_report_updates_cycle_phase_command_and_error() -> None:
    sync = StateSynchronizer()
    updates = _values(sync.merge(_report(cleanMissionStatus={"cycle": "clean", "phase": "stop", "error": 17})))

    assert updates == {"cycle": "clean", "phase": "stop", "command": "pause", "error": "17"}
    assert sync.is_paused is True


def test_mission_report_without_error_reports_zero() -> None:
    sync = StateSynchronizer()
    updates = _values(sync.merge(_report(cleanMissionStatus={"cycle": "none", "phase": "charge"})))

    assert updates["command"] == "stop"
    assert updates["error"] == "0"
    assert sync.is_paused is False


def test_mission_report_without_cycle_derives_no_command() -> None:
    sync = StateSynchronizer()
    updates = _values(sync.merge(_report(cleanMissionStatus={"phase": "run"})))

    assert "command" not in updates
    assert "cycle" not in updates
    assert updates["phase"] == "run"


def test_resuming_clears_paused_flag() -> None:
    sync = StateSynchronizer()
    sync.merge(_report(cleanMissionStatus={"cycle": "clean", "phase": "stop"}))
    sync.merge(_report(cleanMissionStatus={"cycle": "clean", "phase": "run"}))
    assert sync.is_paused is False


def test_only_present_fields_produce_updates() -> None:
    sync = StateSynchronizer()
    assert _values(sync.merge(_report(batPct=87))) == {"battery": 87}
    assert _values(sync.merge(_report(signal={"rssi": -55}))) == {"rssi": -55}
    assert _values(sync.merge(_report(signal={"rssi": -50, "snr": 30}))) == {"rssi": -50, "snr": 30}


def test_bin_report() -> None:
    sync = StateSynchronizer()
    assert _values(sync.merge(_report(bin={"present": True, "full": True}))) == {"bin": "full"}
    assert _values(sync.merge(_report(bin={"present": False}))) == {"bin": "removed"}


def test_inverted_settings() -> None:
    sync = StateSynchronizer()
    updates = _values(sync.merge(_report(openOnly=False, binPause=True)))
    assert updates == {"edge_clean": True, "always_finish": False}


def test_schedule_report_updates_days_and_mask() -> None:
    sync = StateSynchronizer()
    cycle = ["start", "none", "start", "none", "none", "none", "none"]
    updates = _values(sync.merge(_report(cleanSchedule={"cycle": cycle, "h": [9] * 7, "m": [0] * 7})))

    assert updates["sched_sun"] is True
    assert updates["sched_mon"] is False
    assert updates["sched_tue"] is True
    assert updates["schedule"] == 0b101
    schedule = sync.cached_schedule
    assert schedule is not None
    assert schedule.entries[0].hour == 9


def test_schedule_without_cycle_is_cached_without_updates() -> None:
    sync = StateSynchronizer()
    assert sync.merge(_report(cleanSchedule={"h": [9] * 7})) == []
    assert sync.cached_schedule is None


def test_power_boost_override_wins() -> None:
    sync = StateSynchronizer()
    assert _values(sync.merge(_report(carpetBoost=True, vacHigh=True))) == {"power_boost": "auto"}


def test_power_boost_detail_waits_for_override() -> None:
    sync = StateSynchronizer()
    assert sync.merge(_report(vacHigh=True)) == []
    assert _values(sync.merge(_report(carpetBoost=False))) == {"power_boost": "performance"}
    assert _values(sync.merge(_report(vacHigh=False))) == {"power_boost": "eco"}


def test_power_boost_detail_ignored_while_auto() -> None:
    sync = StateSynchronizer()
    sync.merge(_report(carpetBoost=True))
    assert sync.merge(_report(vacHigh=False)) == []
    assert sync.get("power_boost") == "auto"


def test_clean_passes_pairing() -> None:
    sync = StateSynchronizer()
    assert _values(sync.merge(_report(noAutoPasses=False, twoPass=True))) == {"clean_passes": "AUTO"}
    assert _values(sync.merge(_report(noAutoPasses=True, twoPass=True))) == {"clean_passes": "2"}
    assert _values(sync.merge(_report(twoPass=False))) == {"clean_passes": "1"}


def test_clean_passes_override_without_detail_emits_nothing() -> None:
    sync = StateSynchronizer()
    assert sync.merge(_report(noAutoPasses=True)) == []


def test_version_fields_are_forwarded_as_properties() -> None:
    properties: dict[str, str] = {}
    sync = StateSynchronizer(on_property=properties.__setitem__)

    updates = sync.merge(_report(softwareVer="v2.4.16-126", navSwVer="01.12.01#1", batPct=50))

    assert properties == {"firmwareVersion": "v2.4.16-126", "navSwVer": "01.12.01#1"}
    assert _values(updates) == {"battery": 50}


def test_malformed_message_is_dropped() -> None:
    sync = StateSynchronizer()
    assert sync.merge(b"\x00garbage") == []
    assert sync.merge(_report(batPct="lots")) == []
    assert sync.snapshot() == {}


def test_message_without_reported_is_ignored() -> None:
    sync = StateSynchronizer()
    assert sync.merge(json.dumps({"state": {"desired": {"batPct": 3}}})) == []
    assert sync.merge(b"{}") == []


def test_unknown_fields_are_ignored() -> None:
    sync = StateSynchronizer()
    assert _values(sync.merge(_report(batPct=10, langs=[{"en-US": 0}], tz={"ver": 8}))) == {"battery": 10}


def test_store_keeps_last_values() -> None:
    sync = StateSynchronizer()
    sync.merge(_report(batPct=90))
    sync.merge(_report(batPct=80))
    assert sync.get("battery") == 80
    assert sync.snapshot() == {"battery": 80}


def test_power_boost_override_off_then_detail() -> None:
    sync = StateSynchronizer()
    assert sync.merge(_report(carpetBoost=False)) == []
    assert _values(sync.merge(_report(vacHigh=True))) == {"power_boost": "performance"}


def test_undecodable_message_debug_log_masks_secrets(caplog: pytest.LogCaptureFixture) -> None:
    sync = StateSynchronizer()
    with caplog.at_level(logging.DEBUG, logger="pyroomba.state.synchronizer"):
        assert sync.merge(_report(batPct="lots", password="hunter2")) == []

    assert "Raw contents" in caplog.text
    assert "hunter2" not in caplog.text
