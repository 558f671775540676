"""Attendance recorder: turns a trusted check-in attempt into a device-log
record and, when online, an ``attendance_logs`` row.

A failed attempt is terminal: nothing is queued for retry and the operator
repeats the action.
"""

from __future__ import annotations

import logging
import secrets
import string
import uuid
from dataclasses import dataclass, field
from datetime import datetime, time, timezone
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from hrdesk.attendance.models import AttendanceLog
from hrdesk.attendance.trust import AttendanceSignals, evaluate_trust
from hrdesk.common.constants import (
    ATTENDANCE_PRESENT,
    OFFLINE_FLAG,
    ONLINE_FLAGS,
    CheckType,
)
from hrdesk.common.exceptions import BackendError, ValidationException
from hrdesk.config import settings
from hrdesk.core_hr.models import Employee, Shift

logger = logging.getLogger(__name__)

_REFERENCE_ALPHABET = string.ascii_uppercase + string.digits


def new_reference() -> str:
    return "TX-" + "".join(secrets.choice(_REFERENCE_ALPHABET) for _ in range(6))


@dataclass
class LocalRecord:
    reference: str
    type: CheckType
    recorded_at: datetime
    is_synced: bool = False
    server_timestamp: Optional[datetime] = None
    security_flags: list[str] = field(default_factory=list)


@dataclass
class DeviceLog:
    """Records captured on one device, newest first."""

    records: list[LocalRecord] = field(default_factory=list)

    def next_type(self) -> CheckType:
        return CheckType.CHECK_IN if len(self.records) % 2 == 0 else CheckType.CHECK_OUT

    def add(self, record: LocalRecord) -> None:
        self.records.insert(0, record)


class DeviceLogRegistry:
    def __init__(self) -> None:
        self._logs: dict[uuid.UUID, DeviceLog] = {}

    def for_employee(self, employee_id: uuid.UUID) -> DeviceLog:
        return self._logs.setdefault(employee_id, DeviceLog())


async def resolve_shift_window(
    db: AsyncSession, employee: Employee,
) -> tuple[time, time]:
    if employee.shift_id is not None:
        shift = await db.get(Shift, employee.shift_id)
        if shift is not None:
            return shift.start_time, shift.end_time
    return settings.DEFAULT_SHIFT_START, settings.DEFAULT_SHIFT_END


async def record_action(
    db: AsyncSession,
    employee: Employee,
    signals: AttendanceSignals,
    *,
    online: bool,
    device_log: DeviceLog,
) -> LocalRecord:
    employee_id = employee.id
    verdict = evaluate_trust(signals)
    if not verdict.ready:
        raise ValidationException({"status": [verdict.message or verdict.status.value]})

    now = datetime.now(timezone.utc)
    record = LocalRecord(
        reference=new_reference(),
        type=device_log.next_type(),
        recorded_at=now,
    )
    device_log.add(record)

    if not online:
        record.security_flags = [OFFLINE_FLAG]
        logger.info("Stored offline %s %s for %s", record.type.value, record.reference, employee_id)
        return record

    shift_start, shift_end = await resolve_shift_window(db, employee)
    db.add(
        AttendanceLog(
            employee_id=employee_id,
            reference=record.reference,
            check_type=record.type.value,
            status=ATTENDANCE_PRESENT,
            timestamp=now,
            shift_start=shift_start,
            shift_end=shift_end,
            location_verified=not signals.mock_location_detected,
        )
    )
    try:
        await db.flush()
    except SQLAlchemyError as exc:
        await db.rollback()
        logger.error("Attendance sync failed for %s: %s", employee_id, exc)
        raise BackendError.from_db_error(exc)

    record.is_synced = True
    record.server_timestamp = datetime.now(timezone.utc)
    record.security_flags = list(ONLINE_FLAGS)
    return record
