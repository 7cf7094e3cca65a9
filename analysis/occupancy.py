"""Belegungsstatistik über alle Räume (Zähler der Admin-Ansicht)."""

from pydantic import BaseModel

from models.room import Room


class RoomOccupancy(BaseModel):
    room_id: str
    room_name: str
    total_slots: int
    booked_slots: int
    checked_in: int

    @property
    def utilization(self) -> float:
        return self.booked_slots / self.total_slots if self.total_slots else 0.0


class OccupancyReport(BaseModel):
    """Gesamt- und Raumzahlen."""

    rooms: list[RoomOccupancy]

    @property
    def total_slots(self) -> int:
        return sum(r.total_slots for r in self.rooms)

    @property
    def booked_slots(self) -> int:
        return sum(r.booked_slots for r in self.rooms)

    @property
    def available_slots(self) -> int:
        return self.total_slots - self.booked_slots

    @property
    def checked_in(self) -> int:
        return sum(r.checked_in for r in self.rooms)

    @property
    def utilization(self) -> float:
        return self.booked_slots / self.total_slots if self.total_slots else 0.0

    def print_rich(self) -> None:
        """Gibt den Report als Rich-Tabelle aus."""
        from rich.console import Console
        from rich.table import Table
        from rich import box

        table = Table(title="Belegung", box=box.ROUNDED)
        table.add_column("Raum", style="bold")
        table.add_column("Slots", justify="right")
        table.add_column("Gebucht", justify="right")
        table.add_column("Eingecheckt", justify="right")
        table.add_column("Auslastung", justify="right")
        for r in self.rooms:
            table.add_row(r.room_name, str(r.total_slots), str(r.booked_slots),
                          str(r.checked_in), f"{r.utilization:.0%}")
        table.add_row("[bold]Gesamt[/bold]", f"[bold]{self.total_slots}[/bold]",
                      f"[bold]{self.booked_slots}[/bold]", f"[bold]{self.checked_in}[/bold]",
                      f"[bold]{self.utilization:.0%}[/bold]")
        Console().print(table)


def compute_occupancy(rooms: list[Room]) -> OccupancyReport:
    result = []
    for room in rooms:
        slots = [s for d in room.schedule for s in d.slots]
        result.append(RoomOccupancy(
            room_id=room.id,
            room_name=room.name,
            total_slots=len(slots),
            booked_slots=sum(1 for s in slots if s.is_booked),
            checked_in=sum(1 for s in slots if s.attendee and s.attendee.is_checked_in),
        ))
    return OccupancyReport(rooms=result)
