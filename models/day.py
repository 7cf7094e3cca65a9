"""Datenmodell für einen Veranstaltungstag innerhalb eines Raums (Pydantic v2)."""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from models.slot import TimeSlot


class DaySchedule(BaseModel):
    """Ein Tag mit seiner geordneten Slot-Folge.

    Entspricht einem Tages-Dokument im Dokumentenspeicher.
    """

    model_config = ConfigDict(populate_by_name=True)

    id: str                                     # "thursday-july-10"
    date: str                                   # "July 10th, 2025"
    day_name: str = Field(alias="dayName")      # "Thursday"
    slots: list[TimeSlot] = []

    def get_slot(self, slot_id: str) -> Optional[TimeSlot]:
        """Gibt den Slot mit der ID zurück oder None."""
        return next((s for s in self.slots if s.id == slot_id), None)

    @property
    def booked_slots(self) -> list[TimeSlot]:
        return [s for s in self.slots if s.is_booked]
