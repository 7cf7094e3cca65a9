"""Schnittstelle zum Dokumentenspeicher (Tages-Dokumente pro Raum).

Ein Tages-Dokument hat die Felder {id, date, dayName, slots}. Gespeichert
werden die Slots als Mapping slot_id → Slot, damit ein einzelner Slot
atomar geschrieben werden kann. Nach außen (Snapshots) erscheinen die
Slots als nach ID sortierte Liste.

Jeder Schreibzugriff löst eine Änderungsbenachrichtigung an alle
Abonnenten des Raums aus, auch an den Schreiber selbst.
"""

from __future__ import annotations

import copy
import logging
from abc import ABC, abstractmethod
from typing import Callable, Optional

from pydantic import ValidationError

from models.day import DaySchedule
from models.slot import TimeSlot

logger = logging.getLogger(__name__)

SnapshotCallback = Callable[[str, list[DaySchedule]], None]
ErrorCallback = Callable[[str, "StoreError"], None]


# ─── Fehler ───────────────────────────────────────────────────────────────────

class StoreError(Exception):
    """Fehler des Dokumentenspeichers mit maschinenlesbarem Code."""

    code = "unknown"

    def __init__(self, message: str = "", code: Optional[str] = None):
        super().__init__(message or self.__class__.__name__)
        if code is not None:
            self.code = code


class PermissionDeniedError(StoreError):
    code = "permission-denied"


class ServiceUnavailableError(StoreError):
    code = "unavailable"


class UnauthenticatedError(StoreError):
    code = "unauthenticated"


class DocumentNotFoundError(StoreError):
    code = "not-found"


class CorruptDocumentError(StoreError):
    """Gespeichertes Dokument passt nicht zum Datenmodell."""
    code = "data-loss"


_STORE_ERROR_MESSAGES = {
    "permission-denied":
        "Zugriff verweigert – bitte die Berechtigungen des Dokumentenspeichers prüfen",
    "unavailable":
        "Dokumentenspeicher nicht erreichbar – bitte die Netzwerkverbindung prüfen",
    "unauthenticated":
        "Anmeldung erforderlich – bitte die Zugangsdaten des Speichers prüfen",
}


def describe_store_error(exc: Exception) -> str:
    """Übersetzt einen Speicherfehler in eine anzeigbare Meldung."""
    code = getattr(exc, "code", None)
    if code in _STORE_ERROR_MESSAGES:
        return _STORE_ERROR_MESSAGES[code]
    return f"Zeitplan konnte nicht geladen werden: {exc}"


# ─── Dokument-Konvertierung ───────────────────────────────────────────────────

def day_to_document(day: DaySchedule) -> dict:
    """DaySchedule → gespeichertes Dokument (Slots nach ID verschlüsselt)."""
    return {
        "id": day.id,
        "date": day.date,
        "dayName": day.day_name,
        "slots": {s.id: s.to_document() for s in day.slots},
    }


def document_to_day(doc: dict) -> DaySchedule:
    """Gespeichertes Dokument → DaySchedule (Slots nach ID sortiert).

    Raises:
        CorruptDocumentError: Dokument verletzt das Datenmodell.
    """
    slots = doc.get("slots") or {}
    # Ältere Dokumente speichern die Slots noch als Liste
    if isinstance(slots, list):
        slot_docs = slots
    else:
        slot_docs = [slots[k] for k in sorted(slots)]
    try:
        return DaySchedule(
            id=doc["id"],
            date=doc.get("date", ""),
            day_name=doc.get("dayName", ""),
            slots=[TimeSlot.model_validate(s) for s in slot_docs],
        )
    except (KeyError, ValidationError) as e:
        raise CorruptDocumentError(
            f"Ungültiges Tages-Dokument {doc.get('id', '?')}: {e}") from e


# ─── Abonnement ───────────────────────────────────────────────────────────────

class Subscription:
    """Laufendes Abonnement auf die Tages-Dokumente eines Raums."""

    def __init__(self, gateway: "DocumentGateway", room_id: str,
                 on_snapshot: SnapshotCallback, on_error: Optional[ErrorCallback]):
        self.gateway = gateway
        self.room_id = room_id
        self.on_snapshot = on_snapshot
        self.on_error = on_error
        self.active = True

    def cancel(self) -> None:
        """Beendet das Abonnement; danach kommen keine Callbacks mehr."""
        if self.active:
            self.active = False
            self.gateway._remove_subscription(self)

    def __repr__(self) -> str:
        state = "aktiv" if self.active else "beendet"
        return f"Subscription({self.room_id}, {state})"


# ─── Gateway ──────────────────────────────────────────────────────────────────

class DocumentGateway(ABC):
    """Basisklasse: Abonnement-Verwaltung + Schreiboperationen.

    Unterklassen implementieren nur das Laden/Speichern der Rohdokumente.
    """

    def __init__(self) -> None:
        self._subscriptions: dict[str, list[Subscription]] = {}

    # ─── Speicher-Primitive (Unterklassen) ───

    @abstractmethod
    def _load_room(self, room_id: str) -> dict[str, dict]:
        """Gibt {day_id: dokument} für einen Raum zurück (leer wenn keiner existiert)."""

    @abstractmethod
    def _save_document(self, room_id: str, doc: dict) -> None:
        """Speichert ein Tages-Dokument vollständig."""

    @abstractmethod
    def list_rooms(self) -> list[str]:
        """IDs aller Räume mit mindestens einem Tages-Dokument."""

    def _check_write(self, room_id: str, day_id: str) -> None:
        """Hook vor jedem Schreibzugriff (z.B. Fehlerinjektion im Test)."""

    # ─── Lesen + Abonnieren ───

    def snapshot(self, room_id: str) -> list[DaySchedule]:
        """Aktueller Stand aller Tage eines Raums (nach Tages-ID sortiert)."""
        docs = self._load_room(room_id)
        return [document_to_day(docs[k]) for k in sorted(docs)]

    def subscribe(self, room_id: str, on_snapshot: SnapshotCallback,
                  on_error: Optional[ErrorCallback] = None) -> Subscription:
        """Abonniert einen Raum. Der erste Snapshot wird sofort geliefert."""
        sub = Subscription(self, room_id, on_snapshot, on_error)
        self._subscriptions.setdefault(room_id, []).append(sub)
        try:
            days = self.snapshot(room_id)
        except StoreError as e:
            self.fail_subscriptions(room_id, e)
            return sub
        on_snapshot(room_id, days)
        return sub

    def _remove_subscription(self, sub: Subscription) -> None:
        subs = self._subscriptions.get(sub.room_id, [])
        if sub in subs:
            subs.remove(sub)

    def _notify(self, room_id: str) -> None:
        """Verteilt den neuen Stand an alle Abonnenten des Raums."""
        subs = [s for s in self._subscriptions.get(room_id, []) if s.active]
        if not subs:
            return
        days = self.snapshot(room_id)
        for sub in subs:
            if sub.active:
                sub.on_snapshot(room_id, [d.model_copy(deep=True) for d in days])

    def _echo(self, room_id: str) -> None:
        """Benachrichtigung nach gespeichertem Schreibzugriff.

        Der Schreibzugriff gilt als erfolgt; ein Fehler beim Verteilen beendet
        nur die Abonnements des Raums.
        """
        try:
            self._notify(room_id)
        except StoreError as e:
            self.fail_subscriptions(room_id, e)

    def fail_subscriptions(self, room_id: str, error: StoreError) -> None:
        """Meldet einen Fehler an alle Abonnenten; die Abonnements enden damit."""
        logger.error(f"Abonnement für {room_id} abgebrochen: {error}")
        for sub in list(self._subscriptions.get(room_id, [])):
            sub.active = False
            self._remove_subscription(sub)
            if sub.on_error is not None:
                sub.on_error(room_id, error)

    # ─── Schreiben ───

    def _require_document(self, room_id: str, day_id: str) -> dict:
        docs = self._load_room(room_id)
        if day_id not in docs:
            raise DocumentNotFoundError(
                f"Tages-Dokument {room_id}/{day_id} existiert nicht")
        return copy.deepcopy(docs[day_id])

    def replace_day_slots(self, room_id: str, day_id: str,
                          slots: list[TimeSlot]) -> None:
        """Ersetzt das Slot-Feld eines Tages komplett; übrige Felder bleiben."""
        self._check_write(room_id, day_id)
        doc = self._require_document(room_id, day_id)
        doc["slots"] = {s.id: s.to_document() for s in slots}
        self._save_document(room_id, doc)
        self._echo(room_id)

    def write_slot(self, room_id: str, day_id: str, slot: TimeSlot) -> None:
        """Schreibt genau einen Slot; alle anderen Slots bleiben unberührt."""
        self._check_write(room_id, day_id)
        doc = self._require_document(room_id, day_id)
        slots = doc.get("slots") or {}
        if isinstance(slots, list):
            slots = {s["id"]: s for s in slots}
        slots[slot.id] = slot.to_document()
        doc["slots"] = slots
        self._save_document(room_id, doc)
        self._echo(room_id)

    def replace_day(self, room_id: str, day: DaySchedule) -> None:
        """Ersetzt ein Tages-Dokument vollständig (nur Vorlagen-Neuaufbau)."""
        self._check_write(room_id, day.id)
        self._save_document(room_id, day_to_document(day))
        self._echo(room_id)

    def initialize_if_empty(self, room_id: str, template: list[DaySchedule]) -> bool:
        """Legt die Tage eines Raums aus der Vorlage an, falls noch keiner existiert.

        Gibt True zurück wenn tatsächlich angelegt wurde.
        """
        if self._load_room(room_id):
            return False
        for day in template:
            self._check_write(room_id, day.id)
            self._save_document(room_id, day_to_document(day))
        logger.info(f"Raum {room_id}: {len(template)} Tage aus Vorlage angelegt")
        self._echo(room_id)
        return True
