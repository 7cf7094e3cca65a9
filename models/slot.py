"""Datenmodell für einen buchbaren Zeitslot + Generator für das Tagesraster."""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from models.attendee import Attendee

# Raster-Abstand in Minuten
SLOT_INTERVAL_MINUTES = 10


class TimeSlot(BaseModel):
    """Ein einzelner 10-Minuten-Slot innerhalb eines Tages.

    Invariante: attendee ist genau dann gesetzt, wenn is_booked True ist.
    """

    model_config = ConfigDict(populate_by_name=True)

    id: str                                   # "16:00" (24h, kanonischer Schlüssel)
    time: str                                 # "4:00 PM" (Anzeige)
    is_booked: bool = Field(default=False, alias="isBooked")
    attendee: Optional[Attendee] = None

    @model_validator(mode="after")
    def _check_booking_invariant(self):
        if self.is_booked and self.attendee is None:
            raise ValueError(f"Slot {self.id} ist gebucht, hat aber keine Person.")
        if not self.is_booked and self.attendee is not None:
            raise ValueError(f"Slot {self.id} ist frei, hat aber eine Person.")
        return self

    def to_document(self) -> dict:
        """Dokument-Darstellung (camelCase, ohne leere Felder)."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


def format_time_labels(minutes: int) -> tuple[str, str]:
    """Gibt (id, label) für eine Minute seit Mitternacht zurück.

    id:    "HH:MM" im 24h-Format
    label: "H:MM AM/PM" im 12h-Format
    """
    hours, mins = divmod(minutes, 60)
    time24 = f"{hours:02d}:{mins:02d}"
    hour12 = hours - 12 if hours > 12 else hours
    ampm = "PM" if hours >= 12 else "AM"
    return time24, f"{hour12}:{mins:02d} {ampm}"


def generate_time_slots(start_hour: int, end_hour: int) -> list[TimeSlot]:
    """Erzeugt freie Slots für [start_hour:00, end_hour:00) im 10-Minuten-Takt.

    end_hour <= start_hour ergibt eine leere Liste (kein Fehler).
    """
    slots: list[TimeSlot] = []
    for minutes in range(start_hour * 60, end_hour * 60, SLOT_INTERVAL_MINUTES):
        slot_id, label = format_time_labels(minutes)
        slots.append(TimeSlot(id=slot_id, time=label, is_booked=False))
    return slots
