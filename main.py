"""Raumbuchungs-Planer: Haupt-CLI.

Verwendung:
  python main.py setup                         Standard-Konfiguration anlegen
  python main.py config show                   Konfiguration anzeigen
  python main.py init                          Räume im Speicher anlegen
  python main.py show --room room-1            Belegung eines Raums anzeigen
  python main.py book ROOM DAY SLOT --name ... Slot buchen (Zugangscode nötig)
  python main.py edit ROOM DAY SLOT --name ... Buchung ändern (Zugangscode nötig)
  python main.py cancel ROOM DAY SLOT          Buchung stornieren (Zugangscode nötig)
  python main.py checkin ROOM DAY SLOT --staff E-MAIL   Person einchecken
  python main.py duplicates NAME               Ähnliche Namen suchen
  python main.py search BEGRIFF                Buchungen nach Name suchen
  python main.py stats                         Belegungsstatistik
  python main.py export --format csv|xlsx      Buchungsliste exportieren
  python main.py logs [--search ...]           Aktionsprotokoll anzeigen
  python main.py regenerate --policy ...       Tage neu aus Vorlage aufbauen
"""

import logging
import sys
from pathlib import Path

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table
from rich import box

console = Console()


def _load_config_or_abort():
    """Lädt die Konfiguration oder bricht mit Fehlermeldung ab."""
    from config.manager import ConfigManager
    mgr = ConfigManager()
    if mgr.first_run_check():
        console.print(
            "[red]Keine Konfiguration gefunden.[/red]\n"
            "Führen Sie zunächst [bold]python main.py setup[/bold] aus."
        )
        sys.exit(1)
    return mgr, mgr.load()


def _open_engine(config):
    """Öffnet Speicher + Store für alle Räume und gibt (store, engine) zurück."""
    from booking.engine import ScheduleEngine
    from booking.state import ScheduleStore
    from config.defaults import build_day_template
    from data.json_store import JsonDocumentStore

    gateway = JsonDocumentStore(Path(config.storage.data_dir))
    store = ScheduleStore(gateway, config.room_names, build_day_template(config.days))
    store.open(config.room_ids)
    if store.error:
        console.print(f"[red bold]Fehler:[/red bold] {store.error}")
        sys.exit(1)
    engine = ScheduleEngine(store, write_mode=config.storage.write_mode)
    return store, engine


def _build_service(config, engine):
    from audit.writer import CompositeAuditLogWriter, FileAuditLog, HttpAuditLogWriter
    from booking.access_gate import AccessGate, RemoteAccessGate
    from booking.authorization import StaffPolicy
    from booking.service import BookingService

    if config.access.remote_url:
        gate = RemoteAccessGate(config.access.remote_url,
                                timeout=config.access.timeout_seconds)
    else:
        gate = AccessGate(config.access.booking_code_env, config.access.admin_code_env)

    writers = []
    if config.audit.log_file:
        writers.append(FileAuditLog(Path(config.audit.log_file)))
    if config.audit.endpoint_url:
        writers.append(HttpAuditLogWriter(config.audit.endpoint_url,
                                          timeout=config.audit.timeout_seconds))
    return BookingService(engine, gate, CompositeAuditLogWriter(writers),
                          StaffPolicy(config.staff.domains))


def _print_result(result) -> None:
    if result.success:
        console.print(f"[green]✓[/green] {result.message}")
    else:
        console.print(f"[red bold]✗[/red bold] {result.message}")
        sys.exit(1)


def _attendee_fields(name, email, phone, notes):
    from pydantic import ValidationError
    from models.attendee import AttendeeFields
    try:
        return AttendeeFields(name=name, email=email, phone=phone, notes=notes)
    except ValidationError:
        console.print("[red]Name darf nicht leer sein.[/red]")
        sys.exit(1)


_operator_option = click.option(
    "--operator", prompt="Ihr Name", help="Name des Bedieners (für das Protokoll).")
_code_option = click.option(
    "--code", prompt="Zugangscode", hide_input=True, help="Zugangscode.")


# ─── SETUP ────────────────────────────────────────────────────────────────────

@click.command("setup")
def cmd_setup():
    """Legt die Standard-Konfiguration an (5 Räume, 3 Tage)."""
    from config.defaults import default_scheduler_config
    from config.manager import ConfigManager

    mgr = ConfigManager()
    if not mgr.first_run_check():
        console.print("[yellow]Eine Konfiguration existiert bereits.[/yellow]")
        if not click.confirm("Überschreiben?", default=False):
            return
    mgr.save(default_scheduler_config())
    console.print("Führen Sie jetzt [bold]python main.py init[/bold] aus.")


# ─── CONFIG ───────────────────────────────────────────────────────────────────

@click.group("config")
def cmd_config():
    """Konfiguration anzeigen."""


@cmd_config.command("show")
def config_show():
    """Zeigt die aktuelle Konfiguration an."""
    mgr, config = _load_config_or_abort()

    console.print(Panel(
        f"[bold]{config.event_name}[/bold]  |  "
        f"{len(config.rooms)} Räume  |  Schreibmodus: {config.storage.write_mode.value}",
        title="Konfiguration",
        border_style="cyan",
    ))

    table = Table(title="Tage", box=box.ROUNDED)
    table.add_column("ID")
    table.add_column("Tag")
    table.add_column("Datum")
    table.add_column("Fenster")
    for d in config.days:
        table.add_row(d.id, d.day_name, d.date, f"{d.start_hour:02d}:00–{d.end_hour:02d}:00")
    console.print(table)

    console.print(
        f"[bold]Räume:[/bold] {', '.join(r.name for r in config.rooms)}\n"
        f"[bold]Duplikate:[/bold] ab {config.duplicates.min_length} Zeichen, "
        f"Schwelle {config.duplicates.threshold}\n"
        f"[bold]Codes:[/bold] book={config.access.booking_code_env}, "
        f"cancel/edit={config.access.admin_code_env}"
    )


# ─── INIT / SHOW ──────────────────────────────────────────────────────────────

@click.command("init")
def cmd_init():
    """Legt fehlende Räume aus der Tagesvorlage im Speicher an."""
    mgr, config = _load_config_or_abort()
    store, engine = _open_engine(config)
    console.print(f"[green]✓[/green] {len(store.rooms)} Räume bereit "
                  f"({config.storage.data_dir})")
    outdated = engine.days_needing_regeneration()
    if outdated:
        console.print(
            f"[yellow]{len(outdated)} Tage passen nicht zur Vorlage.[/yellow] "
            "Siehe [bold]python main.py regenerate[/bold]."
        )


@click.command("show")
@click.option("--room", "room_id", default=None, help="Raum-ID (Default: erster Raum).")
def cmd_show(room_id):
    """Zeigt die Belegung eines Raums als Tabelle."""
    from export.helpers import build_occupancy_grid

    mgr, config = _load_config_or_abort()
    store, engine = _open_engine(config)
    room = store.get_room(room_id or config.room_ids[0])
    if room is None:
        console.print(f"[red]Raum nicht gefunden: {room_id}[/red]")
        sys.exit(1)

    header, rows = build_occupancy_grid(room)
    table = Table(title=room.name, box=box.ROUNDED)
    for h in header:
        table.add_column(h)
    for cells in rows:
        table.add_row(cells[0], *[c if c else "[dim]frei[/dim]" for c in cells[1:]])
    console.print(table)
    console.print("[dim]Tages-IDs: " + ", ".join(d.id for d in room.schedule) + "[/dim]")


# ─── BUCHUNGSAKTIONEN ─────────────────────────────────────────────────────────

@click.command("book")
@click.argument("room_id")
@click.argument("day_id")
@click.argument("slot_id")
@click.option("--name", required=True, help="Name der Person.")
@click.option("--email", default="", help="E-Mail.")
@click.option("--phone", default="", help="Telefon.")
@click.option("--notes", default="", help="Notizen.")
@click.option("--yes", "-y", is_flag=True, default=False,
              help="Duplikat-Warnung ohne Rückfrage übergehen.")
@_operator_option
@_code_option
def cmd_book(room_id, day_id, slot_id, name, email, phone, notes, yes, operator, code):
    """Bucht einen freien Slot."""
    from analysis.duplicates import DuplicateDetector

    mgr, config = _load_config_or_abort()
    store, engine = _open_engine(config)
    fields = _attendee_fields(name, email, phone, notes)

    detector = DuplicateDetector(min_length=config.duplicates.min_length,
                                 threshold=config.duplicates.threshold)
    matches = detector.find(fields.name, store.rooms)
    if matches:
        console.print("[yellow bold]Mögliche Doppelbuchung:[/yellow bold]")
        for m in matches[: config.duplicates.display_limit]:
            console.print(f"  [yellow]• {m.attendee_name} – {m.room_name}, "
                          f"{m.day_name} {m.slot_time} ({m.similarity:.0%})[/yellow]")
        if not yes and not click.confirm("Trotzdem buchen?", default=False):
            console.print("[yellow]Abgebrochen.[/yellow]")
            return

    service = _build_service(config, engine)
    _print_result(service.book(room_id, day_id, slot_id, fields, code, operator))


@click.command("edit")
@click.argument("room_id")
@click.argument("day_id")
@click.argument("slot_id")
@click.option("--name", required=True, help="Name der Person.")
@click.option("--email", default="", help="E-Mail.")
@click.option("--phone", default="", help="Telefon.")
@click.option("--notes", default="", help="Notizen.")
@_operator_option
@_code_option
def cmd_edit(room_id, day_id, slot_id, name, email, phone, notes, operator, code):
    """Ändert die Personendaten einer Buchung."""
    mgr, config = _load_config_or_abort()
    store, engine = _open_engine(config)
    fields = _attendee_fields(name, email, phone, notes)
    service = _build_service(config, engine)
    _print_result(service.edit(room_id, day_id, slot_id, fields, code, operator))


@click.command("cancel")
@click.argument("room_id")
@click.argument("day_id")
@click.argument("slot_id")
@_operator_option
@_code_option
def cmd_cancel(room_id, day_id, slot_id, operator, code):
    """Storniert eine Buchung."""
    mgr, config = _load_config_or_abort()
    store, engine = _open_engine(config)
    service = _build_service(config, engine)
    _print_result(service.cancel(room_id, day_id, slot_id, code, operator))


@click.command("checkin")
@click.argument("room_id")
@click.argument("day_id")
@click.argument("slot_id")
@click.option("--staff", "staff_email", required=True,
              help="E-Mail des angemeldeten Mitarbeiters.")
def cmd_checkin(room_id, day_id, slot_id, staff_email):
    """Checkt die gebuchte Person ein (nur Mitarbeiter)."""
    from booking.authorization import Identity

    mgr, config = _load_config_or_abort()
    store, engine = _open_engine(config)
    service = _build_service(config, engine)
    _print_result(service.check_in(room_id, day_id, slot_id, Identity(email=staff_email)))


# ─── SUCHE ────────────────────────────────────────────────────────────────────

@click.command("duplicates")
@click.argument("name")
@click.option("--all", "show_all", is_flag=True, default=False,
              help="Alle Treffer statt nur der ersten anzeigen.")
def cmd_duplicates(name, show_all):
    """Sucht gebuchte Personen mit ähnlichem Namen."""
    from analysis.duplicates import DuplicateDetector

    mgr, config = _load_config_or_abort()
    store, engine = _open_engine(config)
    detector = DuplicateDetector(min_length=config.duplicates.min_length,
                                 threshold=config.duplicates.threshold)
    matches = detector.find(name, store.rooms)
    if not show_all:
        matches = matches[: config.duplicates.display_limit]
    if not matches:
        console.print("[dim]Keine ähnlichen Namen gefunden.[/dim]")
        return

    table = Table(title=f"Ähnliche Namen zu '{name}'", box=box.ROUNDED)
    table.add_column("Name", style="bold")
    table.add_column("Raum")
    table.add_column("Tag")
    table.add_column("Zeit")
    table.add_column("Ähnlichkeit", justify="right")
    for m in matches:
        table.add_row(m.attendee_name, m.room_name, m.day_name, m.slot_time,
                      f"{m.similarity:.0%}")
    console.print(table)


@click.command("search")
@click.argument("term", default="")
def cmd_search(term):
    """Listet Buchungen, deren Name den Suchbegriff enthält."""
    mgr, config = _load_config_or_abort()
    store, engine = _open_engine(config)
    bookings = engine.search_bookings(term)

    table = Table(title=f"Buchungen ({len(bookings)})", box=box.ROUNDED)
    for col in ("Raum", "Tag", "Zeit", "Name", "E-Mail", "Telefon", "Check-in"):
        table.add_column(col)
    for b in bookings:
        a = b.attendee
        table.add_row(b.room_name, b.day_name, b.slot_time, a.name, a.email, a.phone,
                      "[green]✓[/green]" if a.is_checked_in else "")
    console.print(table)


@click.command("stats")
def cmd_stats():
    """Zeigt die Belegungsstatistik."""
    from analysis.occupancy import compute_occupancy

    mgr, config = _load_config_or_abort()
    store, engine = _open_engine(config)
    compute_occupancy(store.rooms).print_rich()


# ─── EXPORT ───────────────────────────────────────────────────────────────────

@click.command("export")
@click.option("--format", "fmt", type=click.Choice(["csv", "xlsx"]), default="csv",
              help="Ausgabeformat.")
@click.option("--output", "-o", default=None, help="Ausgabepfad.")
def cmd_export(fmt, output):
    """Exportiert alle Buchungen als CSV oder Excel."""
    from export.csv_export import export_csv
    from export.excel_export import ExcelExporter

    mgr, config = _load_config_or_abort()
    store, engine = _open_engine(config)
    bookings = engine.all_bookings()
    out_path = Path(output or f"output/bookings.{fmt}")

    if fmt == "csv":
        export_csv(bookings, out_path)
    else:
        ExcelExporter(store.rooms, bookings, config.event_name).export(out_path)
    console.print(f"[green]✓[/green] {len(bookings)} Buchungen exportiert: {out_path}")


# ─── PROTOKOLL ────────────────────────────────────────────────────────────────

@click.command("logs")
@click.option("--search", default=None, help="Freitext-Filter.")
@click.option("--limit", default=1000, show_default=True, help="Maximale Anzahl.")
def cmd_logs(search, limit):
    """Zeigt das Aktionsprotokoll (neueste zuerst)."""
    from audit.writer import FileAuditLog
    from export.helpers import format_timestamp

    mgr, config = _load_config_or_abort()
    if not config.audit.log_file:
        console.print("[yellow]Kein lokales Protokoll konfiguriert.[/yellow]")
        return
    entries = FileAuditLog(Path(config.audit.log_file)).read(search=search, limit=limit)
    if not entries:
        console.print("[dim]Keine Einträge.[/dim]")
        return

    table = Table(title="Aktionsprotokoll", box=box.ROUNDED)
    for col in ("Zeit", "Autor", "Aktion", "Raum", "Tag", "Slot", "Person", "Vorher"):
        table.add_column(col)
    for e in entries:
        table.add_row(
            format_timestamp(e.timestamp), e.author, e.action.value, e.room_name,
            e.day_name, e.slot_time, e.attendee_name or "",
            e.previous_attendee.name if e.previous_attendee else "",
        )
    console.print(table)


# ─── REGENERATE ───────────────────────────────────────────────────────────────

@click.command("regenerate")
@click.option("--policy", type=click.Choice(["discard", "preserve"]), default="preserve",
              show_default=True,
              help="discard: alle Buchungen verwerfen; preserve: passende Slots behalten.")
@click.option("--yes", "-y", is_flag=True, default=False, help="Ohne Rückfrage.")
def cmd_regenerate(policy, yes):
    """Baut alle Tage neu aus der Tagesvorlage auf (z.B. nach Änderung der Zeitfenster)."""
    from config.schema import RegenerationPolicy

    mgr, config = _load_config_or_abort()
    store, engine = _open_engine(config)
    outdated = engine.days_needing_regeneration()
    console.print(f"{len(outdated)} Tage weichen von der Vorlage ab.")
    if not yes and not click.confirm(f"Alle Tage neu aufbauen ({policy})?", default=False):
        console.print("[yellow]Abgebrochen.[/yellow]")
        return

    report = engine.regenerate_days(RegenerationPolicy(policy))
    console.print(
        f"[green]✓[/green] {report.days_rewritten} Tage neu aufgebaut | "
        f"behalten: {report.bookings_preserved} | verworfen: {report.bookings_discarded}"
    )
    for item in report.discarded:
        console.print(f"  [red]• {item}[/red]")


# ─── HAUPT-CLI ────────────────────────────────────────────────────────────────

@click.group()
@click.option("--verbose", "-v", is_flag=True, default=False, help="Ausführliches Logging.")
def cli(verbose):
    """Raumbuchungs-Planer für Veranstaltungen.

    Starten Sie mit: python main.py setup
    """
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
    )


def main():
    """Einstiegspunkt."""
    cli()


# Befehle registrieren
cli.add_command(cmd_setup)
cli.add_command(cmd_config)
cli.add_command(cmd_init)
cli.add_command(cmd_show)
cli.add_command(cmd_book)
cli.add_command(cmd_edit)
cli.add_command(cmd_cancel)
cli.add_command(cmd_checkin)
cli.add_command(cmd_duplicates)
cli.add_command(cmd_search)
cli.add_command(cmd_stats)
cli.add_command(cmd_export)
cli.add_command(cmd_logs)
cli.add_command(cmd_regenerate)


if __name__ == "__main__":
    main()
