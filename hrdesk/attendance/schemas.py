"""Attendance Pydantic v2 schemas."""


import uuid
from datetime import datetime, time
from typing import Optional

from pydantic import BaseModel, ConfigDict

from hrdesk.attendance.trust import AttendanceSignals
from hrdesk.common.constants import AttendanceStatus, CheckType


class SignalsIn(BaseModel):
    in_geofence: bool = False
    correct_wifi: bool = True
    mock_location_detected: bool = False
    rooted: bool = False
    emulator: bool = False
    attestation_failed: bool = False
    # Real mode: when set, overrides in_geofence with the geolocation outcome
    geolocation_ok: Optional[bool] = None

    def to_signals(self) -> AttendanceSignals:
        return AttendanceSignals(
            **self.model_dump(exclude={"geolocation_ok"}),
        )


class VerdictOut(BaseModel):
    status: AttendanceStatus
    message: Optional[str] = None


class ActionRequest(BaseModel):
    signals: SignalsIn
    online: bool = True


class LocalRecordOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    reference: str
    type: CheckType
    recorded_at: datetime
    is_synced: bool
    server_timestamp: Optional[datetime] = None
    security_flags: list[str]


class AttendanceLogOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    employee_id: uuid.UUID
    reference: Optional[str] = None
    check_type: str
    status: str
    timestamp: datetime
    shift_start: Optional[time] = None
    shift_end: Optional[time] = None
    location_verified: bool
