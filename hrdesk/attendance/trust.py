"""Device trust evaluation for check-in attempts.

``evaluate_trust`` applies a fixed first-match order: device integrity
failures mask spoofing, which masks location, which masks network.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Optional

from hrdesk.common.constants import AttendanceStatus

MSG_ATTESTATION_FAILED = "فشل فحص سلامة النظام (Device Integrity). الهاتف غير موثوق!"
MSG_EMULATOR = "تم اكتشاف بيئة تشغيل افتراضية (Emulator). يرجى استخدام هاتف حقيقي."
MSG_MOCK_LOCATION = "تم اكتشاف GPS وهمي. تم حظر محاولة التلاعب."
MSG_OUT_OF_RANGE = "أنت خارج المضلع الجغرافي المحدد لمقر العمل."
MSG_WRONG_WIFI = "يرجى الاتصال بشبكة (Office_Secure_WiFi) حصرياً."


@dataclass(frozen=True)
class AttendanceSignals:
    in_geofence: bool = False
    correct_wifi: bool = True
    mock_location_detected: bool = False
    rooted: bool = False
    emulator: bool = False
    attestation_failed: bool = False


@dataclass(frozen=True)
class TrustVerdict:
    status: AttendanceStatus
    message: Optional[str] = None

    @property
    def ready(self) -> bool:
        return self.status is AttendanceStatus.READY


def evaluate_trust(signals: AttendanceSignals) -> TrustVerdict:
    if signals.rooted or signals.attestation_failed:
        return TrustVerdict(AttendanceStatus.ATTESTATION_FAILED, MSG_ATTESTATION_FAILED)
    if signals.emulator:
        return TrustVerdict(AttendanceStatus.SECURITY_BREACH, MSG_EMULATOR)
    if signals.mock_location_detected:
        return TrustVerdict(AttendanceStatus.SECURITY_BREACH, MSG_MOCK_LOCATION)
    if not signals.in_geofence:
        return TrustVerdict(AttendanceStatus.OUT_OF_RANGE, MSG_OUT_OF_RANGE)
    if not signals.correct_wifi:
        return TrustVerdict(AttendanceStatus.WRONG_WIFI, MSG_WRONG_WIFI)
    return TrustVerdict(AttendanceStatus.READY)


def signals_from_geolocation(
    position_ok: bool, base: AttendanceSignals,
) -> AttendanceSignals:
    """Real mode: geofence follows the geolocation outcome, other toggles stay."""
    return replace(base, in_geofence=position_ok)
