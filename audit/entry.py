"""Datenmodell eines Protokolleintrags (Pydantic v2)."""

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from models.attendee import AttendeeFields


class AuditAction(str, Enum):
    BOOK = "book"
    CANCEL = "cancel"
    EDIT = "edit"
    CHECKIN = "checkin"


class LogEntry(BaseModel):
    """Eine protokollierte Buchungsaktion.

    Wird camelCase serialisiert (Format des Protokoll-Endpunkts).
    """

    model_config = ConfigDict(populate_by_name=True)

    timestamp: Optional[datetime] = None      # beim Anhängen gesetzt
    author: str                               # Bediener-Name oder Mitarbeiter-E-Mail
    action: AuditAction
    room_id: str = Field(alias="roomId")
    room_name: str = Field("", alias="roomName")
    day_id: str = Field("", alias="dayId")
    day_name: str = Field("", alias="dayName")
    date: str = ""
    slot_id: str = Field("", alias="slotId")
    slot_time: str = Field("", alias="slotTime")
    attendee_name: Optional[str] = Field(None, alias="attendeeName")
    attendee_email: Optional[str] = Field(None, alias="attendeeEmail")
    attendee_phone: Optional[str] = Field(None, alias="attendeePhone")
    attendee_notes: Optional[str] = Field(None, alias="attendeeNotes")
    previous_attendee: Optional[AttendeeFields] = Field(None, alias="previousAttendee")

    @field_validator("author", "room_id")
    @classmethod
    def _required(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("Pflichtfeld fehlt")
        return v.strip()

    def to_payload(self) -> dict:
        """JSON-fähiges Dict im Format des Endpunkts."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)

    def matches(self, term: str) -> bool:
        """Freitext-Suche (case-insensitive) über die anzeigbaren Felder."""
        needle = term.strip().lower()
        if not needle:
            return True
        haystack = [
            self.author, self.room_name, self.day_name, self.slot_time,
            self.attendee_name, self.attendee_email, self.attendee_phone,
            self.action.value,
            self.previous_attendee.name if self.previous_attendee else None,
        ]
        return any(needle in h.lower() for h in haystack if h)
