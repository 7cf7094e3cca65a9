"""ScheduleEngine – Zustandsautomat für Buchen, Stornieren, Ändern, Einchecken.

Jede Operation folgt demselben Ablauf:
    1. aktuellen Tag aus dem ScheduleStore lesen
    2. neue Slot-Folge berechnen (alle Slots, nur der Ziel-Slot ändert sich)
    3. persistieren (write_mode "slot": nur der Ziel-Slot,
                     write_mode "day":  gesamte Slot-Liste)
    4. True zurückgeben

Jede Ausnahme wird geloggt, in eine feste Meldung übersetzt und als
False zurückgegeben. Der In-Memory-Stand ändert sich erst, wenn das
Abonnement den Schreibzugriff zurückmeldet.

Buchen auf einen bereits gebuchten Slot wird abgelehnt
(SlotAlreadyBookedError), statt die vorhandene Person zu überschreiben.
Umbuchen geht nur über edit_booking oder Storno + Neubuchung.

Bekannte Einschränkung im Modus "day": Zwei Schreiber, die denselben Tag
gleichzeitig ändern, überschreiben sich gegenseitig – der letzte gewinnt.
"""

import logging
from datetime import datetime, timezone
from typing import Callable, Optional

from pydantic import BaseModel

from booking.state import BookingError, ScheduleStore
from config.schema import RegenerationPolicy, WriteMode
from data.gateway import DocumentGateway
from models.attendee import Attendee, AttendeeFields
from models.booking import BookingRecord
from models.day import DaySchedule
from models.slot import TimeSlot

logger = logging.getLogger(__name__)

# Suche in der Buchungsliste
SEARCH_MIN_LENGTH = 2
SEARCH_MAX_RESULTS = 50


class SlotNotFoundError(BookingError):
    """Slot-ID existiert im Tag nicht."""


class SlotAlreadyBookedError(BookingError):
    """Slot ist bereits gebucht."""


FAILURE_MESSAGES = {
    "book": "Buchung fehlgeschlagen",
    "cancel": "Stornierung fehlgeschlagen",
    "edit": "Änderung fehlgeschlagen",
    "checkin": "Check-in fehlgeschlagen",
}


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class RegenerationReport(BaseModel):
    """Ergebnis eines Vorlagen-Neuaufbaus."""

    policy: RegenerationPolicy
    days_rewritten: int = 0
    bookings_preserved: int = 0
    bookings_discarded: int = 0
    discarded: list[str] = []   # "room-1/thursday-july-10/16:00 (Alice)"


class ScheduleEngine:
    """Wendet Buchungs-Übergänge auf den Stand im ScheduleStore an."""

    def __init__(
        self,
        store: ScheduleStore,
        gateway: Optional[DocumentGateway] = None,
        write_mode: WriteMode = WriteMode.SLOT,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self.store = store
        self.gateway = gateway or store.gateway
        self.write_mode = write_mode
        self.clock = clock
        self.last_error: Optional[str] = None

    # ─── Öffentliche Operationen ──────────────────────────────────────────────

    def book_slot(self, room_id: str, day_id: str, slot_id: str,
                  fields: AttendeeFields) -> bool:
        """Bucht einen freien Slot. Ein bereits gebuchter Slot wird abgelehnt."""
        def transform(slot: TimeSlot) -> TimeSlot:
            if slot.is_booked:
                raise SlotAlreadyBookedError(
                    f"Slot {room_id}/{day_id}/{slot_id} ist bereits gebucht")
            attendee = Attendee(**fields.model_dump(), booked_at=self.clock())
            return TimeSlot(id=slot.id, time=slot.time, is_booked=True, attendee=attendee)

        return self._mutate("book", room_id, day_id, slot_id, transform)

    def cancel_booking(self, room_id: str, day_id: str, slot_id: str) -> bool:
        """Gibt einen Slot frei; die Person wird vollständig entfernt."""
        def transform(slot: TimeSlot) -> TimeSlot:
            return TimeSlot(id=slot.id, time=slot.time, is_booked=False)

        return self._mutate("cancel", room_id, day_id, slot_id, transform)

    def edit_booking(self, room_id: str, day_id: str, slot_id: str,
                     fields: AttendeeFields) -> bool:
        """Ersetzt die Personendaten; booked_at und Check-in bleiben erhalten.

        Auf einem freien Slot wirkt edit wie eine Buchung mit neuem booked_at.
        """
        def transform(slot: TimeSlot) -> TimeSlot:
            previous = slot.attendee
            attendee = Attendee(
                **fields.model_dump(),
                booked_at=previous.booked_at if previous else self.clock(),
                checked_in=previous.checked_in if previous else None,
                checked_in_at=previous.checked_in_at if previous else None,
            )
            return TimeSlot(id=slot.id, time=slot.time, is_booked=True, attendee=attendee)

        return self._mutate("edit", room_id, day_id, slot_id, transform)

    def check_in_booking(self, room_id: str, day_id: str, slot_id: str) -> bool:
        """Markiert die gebuchte Person als eingecheckt.

        Ohne Person: erfolgreicher No-op ohne Schreibzugriff.
        Bereits eingecheckt: erfolgreicher No-op, checked_in_at bleibt.
        """
        def transform(slot: TimeSlot) -> Optional[TimeSlot]:
            if slot.attendee is None or slot.attendee.is_checked_in:
                return None
            attendee = slot.attendee.model_copy(
                update={"checked_in": True, "checked_in_at": self.clock()})
            return TimeSlot(id=slot.id, time=slot.time, is_booked=True, attendee=attendee)

        return self._mutate("checkin", room_id, day_id, slot_id, transform)

    # ─── Gemeinsamer Ablauf ───────────────────────────────────────────────────

    def _mutate(self, action: str, room_id: str, day_id: str, slot_id: str,
                transform: Callable[[TimeSlot], Optional[TimeSlot]]) -> bool:
        try:
            self.store.sync()
            day = self.store.get_day(room_id, day_id)
            target = day.get_slot(slot_id)
            if target is None:
                raise SlotNotFoundError(f"Slot nicht gefunden: {room_id}/{day_id}/{slot_id}")

            new_slot = transform(target)
            if new_slot is None:
                logger.info(f"{action}: {room_id}/{day_id}/{slot_id} unverändert")
                return True

            if self.write_mode == WriteMode.DAY:
                new_slots = [new_slot if s.id == slot_id else s for s in day.slots]
                self.gateway.replace_day_slots(room_id, day_id, new_slots)
            else:
                self.gateway.write_slot(room_id, day_id, new_slot)

            logger.info(f"{action}: {room_id}/{day_id}/{slot_id} gespeichert")
            self.store.sync()
            return True
        except Exception as e:
            logger.warning(f"{action} für {room_id}/{day_id}/{slot_id} fehlgeschlagen: {e}")
            self.last_error = FAILURE_MESSAGES[action]
            return False

    # ─── Vorlagen-Neuaufbau ───────────────────────────────────────────────────

    def days_needing_regeneration(self) -> list[tuple[str, str]]:
        """(room_id, day_id) aller Tage, deren Slot-Raster nicht zur Vorlage passt."""
        self.store.sync()
        expected = {d.id: [s.id for s in d.slots] for d in self.store.template}
        outdated = []
        for room in self.store.rooms:
            for day in room.schedule:
                if day.id in expected and [s.id for s in day.slots] != expected[day.id]:
                    outdated.append((room.id, day.id))
        return outdated

    def regenerate_days(
        self, policy: RegenerationPolicy = RegenerationPolicy.DISCARD
    ) -> RegenerationReport:
        """Baut alle Tage aller geladenen Räume neu aus der Vorlage auf.

        DISCARD:  alle Buchungen gehen verloren
        PRESERVE: Buchungen bleiben, wenn ihre Slot-ID im neuen Raster existiert
        """
        self.store.sync()
        report = RegenerationReport(policy=policy)
        for room in self.store.rooms:
            for template_day in self.store.template:
                old_day = room.get_day(template_day.id)
                old_booked = {s.id: s for s in old_day.booked_slots} if old_day else {}
                new_day = template_day.model_copy(deep=True)

                if policy == RegenerationPolicy.PRESERVE:
                    new_ids = {s.id for s in new_day.slots}
                    new_day.slots = [old_booked.get(s.id, s) for s in new_day.slots]
                    kept = [sid for sid in old_booked if sid in new_ids]
                    report.bookings_preserved += len(kept)
                    lost = [sid for sid in old_booked if sid not in new_ids]
                else:
                    lost = list(old_booked)

                for sid in lost:
                    report.discarded.append(
                        f"{room.id}/{template_day.id}/{sid} "
                        f"({old_booked[sid].attendee.name})")
                report.bookings_discarded += len(lost)

                self.gateway.replace_day(room.id, new_day)
                report.days_rewritten += 1

        if report.bookings_discarded:
            logger.warning(
                f"Neuaufbau ({policy.value}): {report.bookings_discarded} Buchungen verworfen")
        self.store.sync()
        return report

    # ─── Buchungslisten ───────────────────────────────────────────────────────

    def all_bookings(self) -> list[BookingRecord]:
        """Alle Buchungen, chronologisch (Tag, Uhrzeit, Raum)."""
        self.store.sync()
        records: list[tuple[tuple, BookingRecord]] = []
        for room_pos, room in enumerate(self.store.rooms):
            for day in room.schedule:
                for slot in day.slots:
                    if not (slot.is_booked and slot.attendee):
                        continue
                    key = (self.store.day_index(day.id), day.id, slot.id, room_pos)
                    records.append((key, BookingRecord(
                        room_id=room.id, room_name=room.name,
                        day_id=day.id, day_name=day.day_name, date=day.date,
                        slot_id=slot.id, slot_time=slot.time,
                        attendee=slot.attendee,
                    )))
        return [r for _, r in sorted(records, key=lambda x: x[0])]

    def search_bookings(self, term: str) -> list[BookingRecord]:
        """Buchungen, deren Name term enthält (max. 50).

        Kürzere Suchbegriffe als 2 Zeichen liefern alle Buchungen.
        """
        bookings = self.all_bookings()
        needle = (term or "").strip().lower()
        if len(needle) < SEARCH_MIN_LENGTH:
            return bookings
        hits = [b for b in bookings if needle in b.attendee.name.lower()]
        return hits[:SEARCH_MAX_RESULTS]

    def find_slot(self, room_id: str, day_id: str, slot_id: str) -> Optional[TimeSlot]:
        """Aktueller Slot (oder None) – für Protokoll-Kontext."""
        self.store.sync()
        room = self.store.get_room(room_id)
        day = room.get_day(day_id) if room else None
        return day.get_slot(slot_id) if day else None

    def find_day(self, room_id: str, day_id: str) -> Optional[DaySchedule]:
        self.store.sync()
        room = self.store.get_room(room_id)
        return room.get_day(day_id) if room else None
