"""Gemeinsame Hilfsfunktionen für CSV- und Excel-Export."""

from datetime import date, datetime
from typing import Optional

from models.booking import BookingRecord
from models.room import Room

# ─── Farbpalette (RRGGBB, ohne #) ─────────────────────────────────────────────

COLORS: dict[str, str] = {
    "booked":     "B3D4FF",
    "checked_in": "B3FFB3",
    "free":       "F5F5F5",
    "header":     "4472C4",
}

# Spalten der Buchungsliste (Format der bisherigen Export-Datei)
BOOKING_COLUMNS = ["Room", "Day", "Date", "Time", "Name", "Email", "Phone",
                   "Notes", "Booked At"]


def today_str() -> str:
    """Gibt das heutige Datum als DD.MM.YYYY zurück."""
    return date.today().strftime("%d.%m.%Y")


def format_timestamp(ts: Optional[datetime]) -> str:
    """Zeitstempel als DD.MM.YYYY HH:MM (lokale Zeit), leer wenn None."""
    if ts is None:
        return ""
    if ts.tzinfo is not None:
        ts = ts.astimezone()
    return ts.strftime("%d.%m.%Y %H:%M")


def booking_row(record: BookingRecord) -> list[str]:
    """Eine Zeile der Buchungsliste in Spaltenreihenfolge BOOKING_COLUMNS."""
    a = record.attendee
    return [
        record.room_name,
        record.day_name,
        record.date,
        record.slot_time,
        a.name,
        a.email or "",
        a.phone or "",
        a.notes or "",
        format_timestamp(a.booked_at),
    ]


# ─── Belegungsraster ──────────────────────────────────────────────────────────

def build_occupancy_grid(room: Room) -> tuple[list[str], list[list[str]]]:
    """Gibt (Kopfzeile, Zeilen) für das Raster eines Raums zurück.

    Jede Zeile: [Uhrzeit, Tag1, Tag2, ...]. Zellen enthalten den Namen der
    gebuchten Person oder "" für freie / nicht existierende Slots.
    """
    header = ["Zeit"] + [d.day_name for d in room.schedule]
    times: dict[str, str] = {}
    for day in room.schedule:
        for slot in day.slots:
            times.setdefault(slot.id, slot.time)

    rows: list[list[str]] = []
    for slot_id in sorted(times):
        cells = [times[slot_id]]
        for day in room.schedule:
            slot = day.get_slot(slot_id)
            cells.append(slot.attendee.name if slot and slot.attendee else "")
        rows.append(cells)
    return header, rows
