"""Datenmodell für einen Raum mit seinen Tagen (Pydantic v2)."""

from typing import Optional

from pydantic import BaseModel

from models.day import DaySchedule


class Room(BaseModel):
    """Ein buchbarer Raum. Die Raumliste ist fest und wird zur Laufzeit nicht gelöscht."""

    id: str                          # "room-1"
    name: str                        # "Room 1"
    schedule: list[DaySchedule] = []

    def get_day(self, day_id: str) -> Optional[DaySchedule]:
        """Gibt den Tag mit der ID zurück oder None."""
        return next((d for d in self.schedule if d.id == day_id), None)
