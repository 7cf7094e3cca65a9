from config.schema import (
    DayTemplate,
    RoomDefinition,
    SchedulerConfig,
    StaffConfig,
)
from models.day import DaySchedule
from models.slot import generate_time_slots


def default_rooms() -> list[RoomDefinition]:
    """Die fünf Räume der Veranstaltung."""
    return [RoomDefinition(id=f"room-{n}", name=f"Room {n}") for n in range(1, 6)]


def default_days() -> list[DayTemplate]:
    """Standard-Tagesvorlagen.

    Donnerstag   16:00 - 18:00
    Freitag      16:00 - 18:00
    Samstag      15:00 - 18:00

    Das Zeitfenster darf pro Tag unterschiedlich sein.
    """
    return [
        DayTemplate(id="thursday-july-10", date="July 10th, 2025",
                    day_name="Thursday", start_hour=16, end_hour=18),
        DayTemplate(id="friday-july-11", date="July 11th, 2025",
                    day_name="Friday", start_hour=16, end_hour=18),
        DayTemplate(id="saturday-july-12", date="July 12th, 2025",
                    day_name="Saturday", start_hour=15, end_hour=18),
    ]


def default_scheduler_config() -> SchedulerConfig:
    """Komplette Default-Konfiguration (5 Räume × 3 Tage)."""
    return SchedulerConfig(
        event_name="Prophetic Rooms",
        rooms=default_rooms(),
        days=default_days(),
        staff=StaffConfig(domains=["crestofthewave.org"]),
    )


def build_day_template(days: list[DayTemplate]) -> list[DaySchedule]:
    """Erzeugt leere Tagespläne (alle Slots frei) aus den Tagesvorlagen."""
    return [
        DaySchedule(
            id=d.id,
            date=d.date,
            day_name=d.day_name,
            slots=generate_time_slots(d.start_hour, d.end_hour),
        )
        for d in days
    ]
