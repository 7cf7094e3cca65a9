"""Datenmodell für eine gebuchte Person (Pydantic v2)."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class AttendeeFields(BaseModel):
    """Eingabedaten einer Buchung, wie sie das Formular liefert.

    Nur der Name ist Pflicht. Alle Felder werden getrimmt.
    """

    name: str
    email: str = ""
    phone: str = ""
    notes: str = ""

    @field_validator("name", "email", "phone", "notes", mode="before")
    @classmethod
    def _strip(cls, v):
        if v is None:
            return ""
        return v.strip() if isinstance(v, str) else v

    @field_validator("name")
    @classmethod
    def _name_required(cls, v: str) -> str:
        if not v:
            raise ValueError("Name darf nicht leer sein.")
        return v


class Attendee(AttendeeFields):
    """Gebuchte Person innerhalb eines Slots.

    Gehört exklusiv zu genau einem Slot und wird bei Änderungen komplett ersetzt.
    """

    model_config = ConfigDict(populate_by_name=True)

    booked_at: datetime = Field(alias="bookedAt")
    checked_in: Optional[bool] = Field(default=None, alias="checkedIn")
    checked_in_at: Optional[datetime] = Field(default=None, alias="checkedInAt")

    @property
    def fields(self) -> AttendeeFields:
        """Nur die Formularfelder (ohne Zeitstempel)."""
        return AttendeeFields(name=self.name, email=self.email,
                              phone=self.phone, notes=self.notes)

    @property
    def is_checked_in(self) -> bool:
        return bool(self.checked_in)
