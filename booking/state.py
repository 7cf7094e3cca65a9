"""ScheduleStore – In-Memory-Stand aller Räume, gespeist aus Abonnements.

Der Stand wird ausschließlich durch Snapshots des Dokumentenspeichers
aktualisiert, nie vorab durch eigene Schreibzugriffe. Abonnement-Callbacks
legen Nachrichten nur in eine Warteschlange; erst sync() wendet sie an.
"""

import logging
import queue
from typing import Optional

from data.gateway import (
    DocumentGateway,
    StoreError,
    Subscription,
    describe_store_error,
)
from models.day import DaySchedule
from models.room import Room

logger = logging.getLogger(__name__)


class BookingError(Exception):
    """Basisklasse für fachliche Fehler bei Buchungsoperationen."""


class DayNotFoundError(BookingError):
    """Raum/Tag ist im aktuellen Stand (noch) nicht vorhanden."""


class ScheduleHandle:
    """Handle auf eine Gruppe geöffneter Raum-Abonnements."""

    def __init__(self, room_ids: list[str]):
        self.room_ids = list(room_ids)
        self.subscriptions: list[Subscription] = []
        self.closed = False

    def __repr__(self) -> str:
        return f"ScheduleHandle({self.room_ids}, closed={self.closed})"


class ScheduleStore:
    """Hält Room → Days → Slots und aktualisiert sich über das Gateway.

    room_names: {room_id: Anzeigename} in Konfigurations-Reihenfolge
    template:   leere Tagespläne zum Anlegen fehlender Räume (Reihenfolge
                bestimmt auch die Anzeige-Reihenfolge der Tage)
    """

    def __init__(self, gateway: DocumentGateway, room_names: dict[str, str],
                 template: list[DaySchedule]):
        self.gateway = gateway
        self.room_names = dict(room_names)
        self.template = list(template)
        self.error: Optional[str] = None
        self._rooms: dict[str, Room] = {}
        self._updates: queue.SimpleQueue = queue.SimpleQueue()
        self._seeded: set[str] = set()
        self._handles: list[ScheduleHandle] = []
        self._day_order = {d.id: i for i, d in enumerate(self.template)}
        self._day_labels = {d.id: (d.date, d.day_name) for d in self.template}

    # ─── Lebenszyklus ───

    def open(self, room_ids: Optional[list[str]] = None) -> ScheduleHandle:
        """Abonniert die angegebenen Räume (Default: alle konfigurierten)."""
        handle = ScheduleHandle(list(self.room_names) if room_ids is None else room_ids)
        for room_id in handle.room_ids:
            sub = self.gateway.subscribe(room_id, self._on_snapshot, self._on_error)
            handle.subscriptions.append(sub)
        self._handles.append(handle)
        self.sync()
        return handle

    def close(self, handle: ScheduleHandle) -> None:
        """Beendet alle Abonnements des Handles. Weitere Snapshots werden ignoriert."""
        for sub in handle.subscriptions:
            sub.cancel()
        handle.closed = True
        if handle in self._handles:
            self._handles.remove(handle)

    # ─── Nachrichtenkanal ───

    def _on_snapshot(self, room_id: str, days: list[DaySchedule]) -> None:
        self._updates.put(("snapshot", room_id, days))

    def _on_error(self, room_id: str, error: StoreError) -> None:
        self._updates.put(("error", room_id, error))

    def sync(self) -> int:
        """Wendet alle wartenden Updates an. Gibt die Anzahl zurück."""
        applied = 0
        while True:
            try:
                kind, room_id, payload = self._updates.get_nowait()
            except queue.Empty:
                break
            if kind == "snapshot":
                self._apply_snapshot(room_id, payload)
            else:
                self._apply_error(room_id, payload)
            applied += 1
        return applied

    def _apply_snapshot(self, room_id: str, days: list[DaySchedule]) -> None:
        if not days:
            # Leerer Raum: einmalig aus der Vorlage anlegen
            if room_id not in self._seeded:
                self._seeded.add(room_id)
                try:
                    self.gateway.initialize_if_empty(room_id, self.template)
                except StoreError as e:
                    self._apply_error(room_id, e)
            return
        # Anzeigenamen kommen aus der Konfiguration, nicht aus dem Dokument
        labeled = []
        for d in days:
            if d.id in self._day_labels:
                date, day_name = self._day_labels[d.id]
                d = d.model_copy(update={"date": date, "day_name": day_name})
            labeled.append(d)
        ordered = sorted(
            labeled, key=lambda d: (self._day_order.get(d.id, len(self._day_order)), d.id)
        )
        self._rooms[room_id] = Room(
            id=room_id,
            name=self.room_names.get(room_id, room_id),
            schedule=ordered,
        )

    def _apply_error(self, room_id: str, error: StoreError) -> None:
        self.error = describe_store_error(error)
        logger.error(f"Fehler beim Laden von {room_id}: {error} ({error.code})")

    # ─── Lesen ───

    @property
    def rooms(self) -> list[Room]:
        """Alle geladenen Räume in Konfigurations-Reihenfolge."""
        order = {r: i for i, r in enumerate(self.room_names)}
        return sorted(self._rooms.values(),
                      key=lambda r: (order.get(r.id, len(order)), r.id))

    def get_room(self, room_id: str) -> Optional[Room]:
        return self._rooms.get(room_id)

    def get_day(self, room_id: str, day_id: str) -> DaySchedule:
        """Gibt den Tag zurück oder wirft DayNotFoundError."""
        room = self._rooms.get(room_id)
        day = room.get_day(day_id) if room is not None else None
        if day is None:
            raise DayNotFoundError(f"Tag nicht gefunden: {room_id}/{day_id}")
        return day

    def day_index(self, day_id: str) -> int:
        """Position des Tages in der Vorlage (unbekannte Tage zuletzt)."""
        return self._day_order.get(day_id, len(self._day_order))

    @property
    def is_loading(self) -> bool:
        """True solange ein geöffneter Raum noch keinen Stand hat."""
        open_rooms = {r for h in self._handles for r in h.room_ids}
        return self.error is None and any(r not in self._rooms for r in open_rooms)
