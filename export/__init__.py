"""Export-Modul: CSV und Excel (openpyxl) für die Buchungsliste."""

from export.csv_export import bookings_to_csv, export_csv
from export.excel_export import ExcelExporter

__all__ = ["bookings_to_csv", "export_csv", "ExcelExporter"]
