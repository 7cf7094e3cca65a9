"""CSV-Export der Buchungsliste."""

import csv
import io
from pathlib import Path

from models.booking import BookingRecord

from export.helpers import BOOKING_COLUMNS, booking_row


def bookings_to_csv(bookings: list[BookingRecord]) -> str:
    """Gibt die Buchungsliste als CSV-Text zurück (mit Kopfzeile)."""
    buf = io.StringIO()
    writer = csv.writer(buf, lineterminator="\n")
    writer.writerow(BOOKING_COLUMNS)
    for record in bookings:
        writer.writerow(booking_row(record))
    return buf.getvalue()


def export_csv(bookings: list[BookingRecord], output_path: Path) -> None:
    """Schreibt die Buchungsliste als UTF-8-CSV."""
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    with open(output_path, "w", encoding="utf-8", newline="") as f:
        f.write(bookings_to_csv(bookings))
