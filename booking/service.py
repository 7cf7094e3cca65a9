"""BookingService – Ablauf einer Bedieneraktion.

    Eingabe prüfen → Zugangscode prüfen → ScheduleEngine → Protokoll

Das Protokoll wird erst nach erfolgreicher Änderung geschrieben; ein
Protokollfehler macht die Aktion nicht rückgängig.
"""

import logging
from enum import Enum
from typing import Optional, Protocol

from pydantic import BaseModel

from audit.entry import AuditAction, LogEntry
from audit.writer import AuditLogWriter, NullAuditLogWriter
from booking.access_gate import (
    AccessConfigurationError,
    AccessGateUnavailableError,
    ActionType,
)
from booking.authorization import Identity, StaffPolicy
from booking.engine import ScheduleEngine
from models.attendee import AttendeeFields

logger = logging.getLogger(__name__)


class CodeValidator(Protocol):
    def validate(self, code: str, action) -> bool: ...


class ActionStatus(str, Enum):
    OK = "ok"
    MISSING_NAME = "missing_name"
    INVALID_CODE = "invalid_code"
    CONFIG_ERROR = "config_error"
    GATE_UNAVAILABLE = "gate_unavailable"
    FORBIDDEN = "forbidden"
    FAILED = "failed"


class ActionResult(BaseModel):
    status: ActionStatus
    message: str

    @property
    def success(self) -> bool:
        return self.status == ActionStatus.OK


_SUCCESS_MESSAGES = {
    AuditAction.BOOK: "Slot gebucht",
    AuditAction.CANCEL: "Buchung storniert",
    AuditAction.EDIT: "Buchung aktualisiert",
    AuditAction.CHECKIN: "Eingecheckt",
}


class BookingService:
    """Verbindet Zugangscode, Engine und Protokoll für eine Bedieneraktion."""

    def __init__(self, engine: ScheduleEngine, gate: CodeValidator,
                 audit: Optional[AuditLogWriter] = None,
                 staff_policy: Optional[StaffPolicy] = None):
        self.engine = engine
        self.gate = gate
        self.audit = audit or NullAuditLogWriter()
        self.staff_policy = staff_policy or StaffPolicy([])

    # ─── Bedieneraktionen mit Zugangscode ───

    def book(self, room_id: str, day_id: str, slot_id: str,
             fields: AttendeeFields, code: str, operator: str) -> ActionResult:
        denied = self._check_operator(code, operator, ActionType.BOOK)
        if denied is not None:
            return denied
        if not self.engine.book_slot(room_id, day_id, slot_id, fields):
            return ActionResult(status=ActionStatus.FAILED, message=self.engine.last_error)
        self._log(AuditAction.BOOK, operator, room_id, day_id, slot_id, fields)
        return self._ok(AuditAction.BOOK)

    def cancel(self, room_id: str, day_id: str, slot_id: str,
               code: str, operator: str) -> ActionResult:
        denied = self._check_operator(code, operator, ActionType.CANCEL)
        if denied is not None:
            return denied
        previous = self._current_fields(room_id, day_id, slot_id)
        if not self.engine.cancel_booking(room_id, day_id, slot_id):
            return ActionResult(status=ActionStatus.FAILED, message=self.engine.last_error)
        self._log(AuditAction.CANCEL, operator, room_id, day_id, slot_id,
                  previous, previous=previous)
        return self._ok(AuditAction.CANCEL)

    def edit(self, room_id: str, day_id: str, slot_id: str,
             fields: AttendeeFields, code: str, operator: str) -> ActionResult:
        denied = self._check_operator(code, operator, ActionType.EDIT)
        if denied is not None:
            return denied
        previous = self._current_fields(room_id, day_id, slot_id)
        if not self.engine.edit_booking(room_id, day_id, slot_id, fields):
            return ActionResult(status=ActionStatus.FAILED, message=self.engine.last_error)
        self._log(AuditAction.EDIT, operator, room_id, day_id, slot_id,
                  fields, previous=previous)
        return self._ok(AuditAction.EDIT)

    # ─── Mitarbeiteraktion ───

    def check_in(self, room_id: str, day_id: str, slot_id: str,
                 identity: Optional[Identity]) -> ActionResult:
        """Check-in nur für Mitarbeiter; Autor im Protokoll ist deren E-Mail."""
        if not self.staff_policy.is_staff(identity):
            return ActionResult(status=ActionStatus.FORBIDDEN,
                                message="Nur für Mitarbeiter")
        if not self.engine.check_in_booking(room_id, day_id, slot_id):
            return ActionResult(status=ActionStatus.FAILED, message=self.engine.last_error)
        current = self._current_fields(room_id, day_id, slot_id)
        self._log(AuditAction.CHECKIN, identity.email, room_id, day_id, slot_id, current)
        return self._ok(AuditAction.CHECKIN)

    # ─── Hilfsfunktionen ───

    def _check_operator(self, code: str, operator: str,
                        action: ActionType) -> Optional[ActionResult]:
        """Gibt ein Ablehnungs-Ergebnis zurück oder None wenn alles passt."""
        if not (operator or "").strip():
            return ActionResult(status=ActionStatus.MISSING_NAME,
                                message="Bitte Ihren Namen eingeben")
        try:
            valid = self.gate.validate(code, action)
        except AccessConfigurationError as e:
            logger.error(f"Zugangscode für '{action.value}' nicht konfiguriert: {e}")
            return ActionResult(
                status=ActionStatus.CONFIG_ERROR,
                message="Zugangscode ist nicht eingerichtet – bitte die Administration informieren")
        except AccessGateUnavailableError as e:
            logger.error(f"Code-Prüfung fehlgeschlagen: {e}")
            return ActionResult(status=ActionStatus.GATE_UNAVAILABLE,
                                message="Code-Prüfung derzeit nicht möglich")
        if not valid:
            return ActionResult(status=ActionStatus.INVALID_CODE,
                                message="Ungültiger Zugangscode")
        return None

    def _current_fields(self, room_id: str, day_id: str,
                        slot_id: str) -> Optional[AttendeeFields]:
        slot = self.engine.find_slot(room_id, day_id, slot_id)
        if slot is None or slot.attendee is None:
            return None
        return slot.attendee.fields

    def _log(self, action: AuditAction, author: str, room_id: str, day_id: str,
             slot_id: str, fields: Optional[AttendeeFields],
             previous: Optional[AttendeeFields] = None) -> None:
        room = self.engine.store.get_room(room_id)
        day = room.get_day(day_id) if room else None
        slot = day.get_slot(slot_id) if day else None
        try:
            entry = LogEntry(
                author=author.strip(),
                action=action,
                room_id=room_id,
                room_name=room.name if room else "",
                day_id=day_id,
                day_name=day.day_name if day else "",
                date=day.date if day else "",
                slot_id=slot_id,
                slot_time=slot.time if slot else "",
                attendee_name=fields.name if fields else None,
                attendee_email=fields.email if fields else None,
                attendee_phone=fields.phone if fields else None,
                attendee_notes=fields.notes if fields else None,
                previous_attendee=previous,
            )
        except ValueError as e:
            logger.warning(f"Protokolleintrag nicht erstellt: {e}")
            return
        self.audit.append(entry)

    def _ok(self, action: AuditAction) -> ActionResult:
        return ActionResult(status=ActionStatus.OK, message=_SUCCESS_MESSAGES[action])
