from __future__ import annotations

import pytest
from pydantic import ValidationError

from pyroomba.models import Credential, DeviceIdentity, StateMessage
from pyroomba.state.pairs import boost_setting


def test_credential_repr_hides_secret() -> None:
    credential = Credential(secret="hunter2")
    assert "hunter2" not in repr(credential)
    assert credential.secret == "hunter2"


def test_credential_must_not_be_empty() -> None:
    with pytest.raises(ValidationError):
        Credential(secret="")


def test_identity_requires_blid() -> None:
    with pytest.raises(ValidationError):
        DeviceIdentity(id="  ", product_name="Roomba", protocol_version=2)


def test_identity_is_frozen() -> None:
    identity = DeviceIdentity(id="3147C8", product_name="Roomba", protocol_version=2)
    with pytest.raises(ValidationError):
        identity.id = "other"  # type: ignore[misc]


def test_state_message_reads_camel_case_fields() -> None:
    message = StateMessage.model_validate_json(
        '{"state": {"reported": {"batPct": 12, "cleanMissionStatus": {"cycle": "dock", "phase": "hmUsrDock"}}}}'
    )
    reported = message.reported
    assert reported is not None
    assert reported.bat_pct == 12
    assert reported.clean_mission_status is not None
    assert reported.clean_mission_status.phase == "hmUsrDock"
    assert reported.clean_mission_status.error == 0


def test_paired_setting_display() -> None:
    setting = boost_setting()
    assert setting.display() is None
    setting.update_detail(True)
    assert setting.display() is None
    assert setting.update_auto(False) == "performance"
    assert setting.update_auto(True) == "auto"
