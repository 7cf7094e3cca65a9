"""In-Memory-Dokumentenspeicher (Test-Double für den gehosteten Speicher).

Zusätzlich zu den normalen Operationen lassen sich Fehler injizieren und
Änderungsbenachrichtigungen zurückhalten, um Netzwerk-Latenz zwischen
Schreiben und Echo zu simulieren.
"""

import copy
from contextlib import contextmanager
from typing import Optional

from data.gateway import DocumentGateway, StoreError


class InMemoryDocumentStore(DocumentGateway):
    """Hält alle Dokumente als {room_id: {day_id: dokument}} im Speicher."""

    def __init__(self) -> None:
        super().__init__()
        self._rooms: dict[str, dict[str, dict]] = {}
        self._next_write_error: Optional[StoreError] = None
        self._holding = False
        self._held_rooms: list[str] = []
        self.write_count = 0

    # ─── Speicher-Primitive ───

    def _load_room(self, room_id: str) -> dict[str, dict]:
        return copy.deepcopy(self._rooms.get(room_id, {}))

    def _save_document(self, room_id: str, doc: dict) -> None:
        self._rooms.setdefault(room_id, {})[doc["id"]] = copy.deepcopy(doc)
        self.write_count += 1

    def list_rooms(self) -> list[str]:
        return sorted(r for r, docs in self._rooms.items() if docs)

    def raw_document(self, room_id: str, day_id: str) -> dict:
        """Gespeichertes Rohdokument (für Tests der Persistenz-Struktur)."""
        return copy.deepcopy(self._rooms[room_id][day_id])

    # ─── Fehlerinjektion ───

    def fail_next_write(self, error: StoreError) -> None:
        """Der nächste Schreibzugriff schlägt mit error fehl."""
        self._next_write_error = error

    def _check_write(self, room_id: str, day_id: str) -> None:
        if self._next_write_error is not None:
            error, self._next_write_error = self._next_write_error, None
            raise error

    # ─── Latenz-Simulation ───

    def _notify(self, room_id: str) -> None:
        if self._holding:
            if room_id not in self._held_rooms:
                self._held_rooms.append(room_id)
            return
        super()._notify(room_id)

    @contextmanager
    def hold_notifications(self):
        """Schreibzugriffe innerhalb des Blocks werden erst am Ende gemeldet."""
        self._holding = True
        try:
            yield self
        finally:
            self._holding = False
            held, self._held_rooms = self._held_rooms, []
            for room_id in held:
                self._echo(room_id)
