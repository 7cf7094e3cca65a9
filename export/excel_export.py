"""Excel-Export der Buchungen (openpyxl)."""

from pathlib import Path

from models.booking import BookingRecord
from models.room import Room

from export.helpers import (
    BOOKING_COLUMNS, COLORS, booking_row, build_occupancy_grid, today_str,
)


class ExcelExporter:
    """Exportiert Buchungsliste + ein Belegungsraster pro Raum."""

    # Spaltenbreiten (Excel-Einheiten)
    COL_TIME_W = 12
    COL_DAY_W  = 24

    # Zeilenhöhen (Punkte)
    ROW_HEADER_H = 22

    def __init__(self, rooms: list[Room], bookings: list[BookingRecord],
                 event_name: str = ""):
        self.rooms      = rooms
        self.bookings   = bookings
        self.event_name = event_name

    # ─── Öffentliche API ──────────────────────────────────────────────────────

    def export(self, output_path: Path) -> None:
        """Erstellt die Excel-Datei mit allen Sheets."""
        from openpyxl import Workbook
        wb = Workbook()
        wb.remove(wb.active)   # Leeres Standard-Sheet entfernen

        self._sheet_buchungen(wb)
        for room in self.rooms:
            self._sheet_raum(wb, room)

        output_path = Path(output_path)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        wb.save(output_path)

    # ─── Style-Helpers ────────────────────────────────────────────────────────

    def _fill(self, hex_color: str):
        from openpyxl.styles import PatternFill
        return PatternFill(start_color=hex_color, end_color=hex_color, fill_type="solid")

    def _center_align(self, wrap: bool = True):
        from openpyxl.styles import Alignment
        return Alignment(wrap_text=wrap, horizontal="center", vertical="center")

    def _thin_border(self):
        from openpyxl.styles import Border, Side
        s = Side(border_style="thin", color="BBBBBB")
        return Border(left=s, right=s, top=s, bottom=s)

    def _write_header_row(self, ws, headers: list[str], row: int = 1) -> None:
        from openpyxl.styles import Font
        fill = self._fill(COLORS["header"])
        border = self._thin_border()
        for col, text in enumerate(headers, 1):
            cell = ws.cell(row=row, column=col, value=text)
            cell.fill = fill
            cell.font = Font(bold=True, color="FFFFFF", size=10)
            cell.alignment = self._center_align(wrap=False)
            cell.border = border
        ws.row_dimensions[row].height = self.ROW_HEADER_H

    # ─── Sheet: Buchungen ─────────────────────────────────────────────────────

    def _sheet_buchungen(self, wb) -> None:
        from openpyxl.utils import get_column_letter
        ws = wb.create_sheet(title="Buchungen", index=0)
        self._write_header_row(ws, BOOKING_COLUMNS)
        border = self._thin_border()

        for row, record in enumerate(self.bookings, 2):
            for col, value in enumerate(booking_row(record), 1):
                ws.cell(row=row, column=col, value=value).border = border
            if record.attendee.is_checked_in:
                ws.cell(row=row, column=5).fill = self._fill(COLORS["checked_in"])

        widths = [12, 12, 18, 10, 28, 30, 16, 40, 18]
        for col, w in enumerate(widths, 1):
            ws.column_dimensions[get_column_letter(col)].width = w

        footer = len(self.bookings) + 3
        ws.cell(row=footer, column=1, value=f"{self.event_name} – Erstellt: {today_str()}")

    # ─── Sheet: Raum ──────────────────────────────────────────────────────────

    def _sheet_raum(self, wb, room: Room) -> None:
        from openpyxl.utils import get_column_letter
        title = room.name[:31]
        ws = wb.create_sheet(title=title)
        header, rows = build_occupancy_grid(room)
        self._write_header_row(ws, header)
        border = self._thin_border()

        for r, cells in enumerate(rows, 2):
            for c, value in enumerate(cells, 1):
                cell = ws.cell(row=r, column=c, value=value)
                cell.border = border
                cell.alignment = self._center_align(wrap=False)
                if c > 1:
                    cell.fill = self._fill(COLORS["booked"] if value else COLORS["free"])

        ws.column_dimensions["A"].width = self.COL_TIME_W
        for col in range(2, len(header) + 1):
            ws.column_dimensions[get_column_letter(col)].width = self.COL_DAY_W
