"""Flache Sichten auf Buchungen (Export, Suche, Duplikat-Warnung)."""

from pydantic import BaseModel

from models.attendee import Attendee


class BookingRecord(BaseModel):
    """Eine Buchung mit Raum- und Tageskontext."""

    room_id: str
    room_name: str
    day_id: str
    day_name: str
    date: str
    slot_id: str
    slot_time: str
    attendee: Attendee


class DuplicateMatch(BaseModel):
    """Treffer der Duplikat-Suche mit Ähnlichkeitswert (0.0 – 1.0)."""

    room_id: str
    room_name: str
    day_id: str
    day_name: str
    slot_id: str
    slot_time: str
    attendee_name: str
    similarity: float
