"""Tests für die ScheduleEngine (Buchen, Stornieren, Ändern, Einchecken)."""

from datetime import datetime, timedelta, timezone

from booking.engine import SEARCH_MAX_RESULTS, ScheduleEngine
from booking.state import ScheduleStore
from config.defaults import build_day_template, default_days
from config.schema import RegenerationPolicy, WriteMode
from data.gateway import ServiceUnavailableError
from models.attendee import AttendeeFields

ROOM = "room-1"
DAY = "thursday-july-10"
FIXED_NOW = datetime(2025, 7, 10, 15, 30, tzinfo=timezone.utc)


def _fields(name: str, **kw) -> AttendeeFields:
    return AttendeeFields(name=name, **kw)


class _StepClock:
    """Liefert bei jedem Aufruf eine Minute später."""

    def __init__(self):
        self.now = datetime(2025, 7, 10, 15, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        self.now += timedelta(minutes=1)
        return self.now


# ─── EINZELNE OPERATIONEN ─────────────────────────────────────────────────────

class TestBookSlot:
    def test_book_free_slot(self, engine, store):
        """Buchung setzt isBooked, Person und bookedAt."""
        assert engine.book_slot(ROOM, DAY, "16:00", _fields("Alice", email="a@x.org"))
        slot = store.get_day(ROOM, DAY).get_slot("16:00")
        assert slot.is_booked
        assert slot.attendee.name == "Alice"
        assert slot.attendee.email == "a@x.org"
        assert slot.attendee.booked_at == FIXED_NOW
        assert slot.attendee.checked_in is None

    def test_other_slots_untouched(self, engine, store):
        engine.book_slot(ROOM, DAY, "16:00", _fields("Alice"))
        day = store.get_day(ROOM, DAY)
        assert [s.id for s in day.booked_slots] == ["16:00"]
        assert len(day.slots) == 12

    def test_book_already_booked_fails(self, engine, store):
        """Ein gebuchter Slot wird nicht überschrieben."""
        engine.book_slot(ROOM, DAY, "16:00", _fields("Alice"))
        assert not engine.book_slot(ROOM, DAY, "16:00", _fields("Bob"))
        assert engine.last_error == "Buchung fehlgeschlagen"
        assert store.get_day(ROOM, DAY).get_slot("16:00").attendee.name == "Alice"

    def test_unknown_day_fails(self, engine):
        assert not engine.book_slot(ROOM, "sunday-july-13", "16:00", _fields("Alice"))
        assert engine.last_error == "Buchung fehlgeschlagen"

    def test_unknown_slot_fails(self, engine):
        assert not engine.book_slot(ROOM, DAY, "19:00", _fields("Alice"))

    def test_store_error_returns_false(self, engine, gateway, store):
        """Speicherfehler → False, Stand bleibt unverändert."""
        gateway.fail_next_write(ServiceUnavailableError("offline"))
        assert not engine.book_slot(ROOM, DAY, "16:00", _fields("Alice"))
        assert not store.get_day(ROOM, DAY).get_slot("16:00").is_booked

    def test_state_only_changes_via_snapshot(self, engine, gateway, store):
        """Ohne Echo des Speichers bleibt der lokale Stand alt."""
        with gateway.hold_notifications():
            assert engine.book_slot(ROOM, DAY, "16:00", _fields("Alice"))
            assert not store.get_day(ROOM, DAY).get_slot("16:00").is_booked
        store.sync()
        assert store.get_day(ROOM, DAY).get_slot("16:00").is_booked

    def test_saved_booking_succeeds_when_echo_fails(self, engine, gateway, store, monkeypatch):
        """Gespeichert, aber Verteilen scheitert → True, Fehler nur im Store."""
        def broken(room_id):
            raise ServiceUnavailableError("offline")

        monkeypatch.setattr(gateway, "snapshot", broken)
        assert engine.book_slot(ROOM, DAY, "16:00", _fields("Alice"))
        assert engine.last_error is None
        assert gateway.raw_document(ROOM, DAY)["slots"]["16:00"]["isBooked"] is True
        assert "nicht erreichbar" in store.error


class TestCancelBooking:
    def test_cancel_clears_attendee(self, engine, store, gateway):
        """Nach Storno existieren keine Personendaten mehr, auch nicht im Dokument."""
        engine.book_slot(ROOM, DAY, "16:00", _fields("Alice", phone="123"))
        assert engine.cancel_booking(ROOM, DAY, "16:00")
        slot = store.get_day(ROOM, DAY).get_slot("16:00")
        assert not slot.is_booked
        assert slot.attendee is None
        raw = gateway.raw_document(ROOM, DAY)["slots"]["16:00"]
        assert "attendee" not in raw

    def test_cancel_free_slot_succeeds(self, engine):
        assert engine.cancel_booking(ROOM, DAY, "16:10")


class TestEditBooking:
    def test_edit_keeps_booked_at(self, store, gateway):
        engine = ScheduleEngine(store, clock=_StepClock())
        engine.book_slot(ROOM, DAY, "16:00", _fields("Alice"))
        booked_at = store.get_day(ROOM, DAY).get_slot("16:00").attendee.booked_at

        assert engine.edit_booking(ROOM, DAY, "16:00", _fields("Alicia", notes="neu"))
        a = store.get_day(ROOM, DAY).get_slot("16:00").attendee
        assert a.name == "Alicia"
        assert a.notes == "neu"
        assert a.booked_at == booked_at

    def test_edit_replaces_all_fields(self, engine, store):
        """Nicht übergebene Felder werden geleert, nicht übernommen."""
        engine.book_slot(ROOM, DAY, "16:00", _fields("Alice", email="a@x.org"))
        engine.edit_booking(ROOM, DAY, "16:00", _fields("Alice"))
        assert store.get_day(ROOM, DAY).get_slot("16:00").attendee.email == ""

    def test_edit_free_slot_books_with_fresh_timestamp(self, engine, store):
        """Edit auf freiem Slot wirkt wie eine Buchung."""
        assert engine.edit_booking(ROOM, DAY, "16:20", _fields("Bob"))
        slot = store.get_day(ROOM, DAY).get_slot("16:20")
        assert slot.is_booked
        assert slot.attendee.booked_at == FIXED_NOW


class TestCheckIn:
    def test_check_in_sets_flag_and_time(self, engine, store):
        engine.book_slot(ROOM, DAY, "16:00", _fields("Alice"))
        assert engine.check_in_booking(ROOM, DAY, "16:00")
        a = store.get_day(ROOM, DAY).get_slot("16:00").attendee
        assert a.checked_in is True
        assert a.checked_in_at == FIXED_NOW

    def test_second_check_in_keeps_first_timestamp(self, store):
        engine = ScheduleEngine(store, clock=_StepClock())
        engine.book_slot(ROOM, DAY, "16:00", _fields("Alice"))
        engine.check_in_booking(ROOM, DAY, "16:00")
        first = store.get_day(ROOM, DAY).get_slot("16:00").attendee.checked_in_at

        assert engine.check_in_booking(ROOM, DAY, "16:00")
        a = store.get_day(ROOM, DAY).get_slot("16:00").attendee
        assert a.checked_in is True
        assert a.checked_in_at == first

    def test_check_in_free_slot_is_noop(self, engine, gateway):
        """Ohne Person: Erfolg, aber kein Schreibzugriff."""
        writes = gateway.write_count
        assert engine.check_in_booking(ROOM, DAY, "16:00")
        assert gateway.write_count == writes


# ─── GESAMTABLAUF ─────────────────────────────────────────────────────────────

class TestEndToEnd:
    def test_book_checkin_edit_cancel(self, store):
        """Buchen → Einchecken → Ändern → Stornieren."""
        engine = ScheduleEngine(store, clock=_StepClock())

        assert engine.book_slot(ROOM, DAY, "16:00", _fields("Alice"))
        slot = store.get_day(ROOM, DAY).get_slot("16:00")
        assert slot.is_booked and slot.attendee.name == "Alice"
        booked_at = slot.attendee.booked_at
        assert booked_at is not None

        assert engine.check_in_booking(ROOM, DAY, "16:00")
        assert store.get_day(ROOM, DAY).get_slot("16:00").attendee.checked_in is True

        assert engine.edit_booking(ROOM, DAY, "16:00", _fields("Alicia"))
        a = store.get_day(ROOM, DAY).get_slot("16:00").attendee
        assert a.name == "Alicia"
        assert a.booked_at == booked_at
        assert a.checked_in is True

        assert engine.cancel_booking(ROOM, DAY, "16:00")
        slot = store.get_day(ROOM, DAY).get_slot("16:00")
        assert not slot.is_booked
        assert slot.attendee is None

    def test_invariant_holds_everywhere(self, engine, store):
        engine.book_slot(ROOM, DAY, "16:00", _fields("A1"))
        engine.book_slot("room-2", DAY, "16:00", _fields("B1"))
        engine.check_in_booking(ROOM, DAY, "16:00")
        engine.edit_booking("room-2", DAY, "16:00", _fields("B2"))
        engine.cancel_booking(ROOM, DAY, "16:00")
        for room in store.rooms:
            for day in room.schedule:
                for s in day.slots:
                    assert s.is_booked == (s.attendee is not None)


# ─── NEBENLÄUFIGE SCHREIBER ───────────────────────────────────────────────────

class TestConcurrentWriters:
    def _two_engines(self, gateway, room_names, template, mode: WriteMode):
        store_a = ScheduleStore(gateway, room_names, template)
        store_b = ScheduleStore(gateway, room_names, template)
        store_a.open()
        store_b.open()
        return (ScheduleEngine(store_a, write_mode=mode),
                ScheduleEngine(store_b, write_mode=mode),
                store_a)

    def test_slot_mode_keeps_both_bookings(self, gateway, room_names, template):
        """Einzel-Slot-Schreiben: zwei veraltete Schreiber verlieren nichts."""
        a, b, store_a = self._two_engines(gateway, room_names, template, WriteMode.SLOT)
        with gateway.hold_notifications():
            assert a.book_slot(ROOM, DAY, "16:00", _fields("Alice"))
            assert b.book_slot(ROOM, DAY, "16:10", _fields("Bob"))
        store_a.sync()
        booked = [s.id for s in store_a.get_day(ROOM, DAY).booked_slots]
        assert booked == ["16:00", "16:10"]

    def test_day_mode_last_writer_wins(self, gateway, room_names, template):
        """Ganzer Tag ersetzen: der zweite Schreiber überschreibt den ersten."""
        a, b, store_a = self._two_engines(gateway, room_names, template, WriteMode.DAY)
        with gateway.hold_notifications():
            assert a.book_slot(ROOM, DAY, "16:00", _fields("Alice"))
            assert b.book_slot(ROOM, DAY, "16:10", _fields("Bob"))
        store_a.sync()
        booked = [s.id for s in store_a.get_day(ROOM, DAY).booked_slots]
        assert booked == ["16:10"]

    def test_day_mode_without_race(self, gateway, room_names, template):
        a, b, store_a = self._two_engines(gateway, room_names, template, WriteMode.DAY)
        a.book_slot(ROOM, DAY, "16:00", _fields("Alice"))
        b.book_slot(ROOM, DAY, "16:10", _fields("Bob"))
        store_a.sync()
        assert len(store_a.get_day(ROOM, DAY).booked_slots) == 2


# ─── LISTEN + SUCHE ───────────────────────────────────────────────────────────

class TestBookingLists:
    def test_all_bookings_chronological(self, engine):
        """Sortierung: Tag (Vorlagen-Reihenfolge), Uhrzeit, Raum."""
        engine.book_slot("room-1", "friday-july-11", "16:00", _fields("Fri"))
        engine.book_slot("room-2", DAY, "17:00", _fields("Thu late"))
        engine.book_slot("room-3", DAY, "16:00", _fields("Thu early"))
        names = [b.attendee.name for b in engine.all_bookings()]
        assert names == ["Thu early", "Thu late", "Fri"]

    def test_booking_record_context(self, engine):
        engine.book_slot(ROOM, DAY, "16:30", _fields("Alice"))
        record = engine.all_bookings()[0]
        assert record.room_name == "Room 1"
        assert record.day_name == "Thursday"
        assert record.date == "July 10th, 2025"
        assert record.slot_time == "4:30 PM"

    def test_search_by_name(self, engine):
        engine.book_slot(ROOM, DAY, "16:00", _fields("Alice Meyer"))
        engine.book_slot(ROOM, DAY, "16:10", _fields("Bob"))
        assert [b.attendee.name for b in engine.search_bookings("meyer")] == ["Alice Meyer"]

    def test_short_search_returns_all(self, engine):
        engine.book_slot(ROOM, DAY, "16:00", _fields("Alice"))
        engine.book_slot(ROOM, DAY, "16:10", _fields("Bob"))
        assert len(engine.search_bookings("x")) == 2
        assert len(engine.search_bookings("")) == 2

    def test_search_is_capped(self, engine):
        slots = [s.id for s in engine.store.get_day(ROOM, "saturday-july-12").slots]
        for room_id in ("room-1", "room-2", "room-3"):
            for slot_id in slots:
                engine.book_slot(room_id, "saturday-july-12", slot_id, _fields("Guest"))
        assert len(engine.all_bookings()) == 54
        assert len(engine.search_bookings("guest")) == SEARCH_MAX_RESULTS


# ─── VORLAGEN-NEUAUFBAU ───────────────────────────────────────────────────────

class TestRegeneration:
    def _shifted_engine(self, gateway, room_names) -> ScheduleEngine:
        """Engine mit geänderter Vorlage: Donnerstag jetzt 17–19 Uhr."""
        days = default_days()
        days[0] = days[0].model_copy(update={"start_hour": 17, "end_hour": 19})
        store = ScheduleStore(gateway, room_names, build_day_template(days))
        store.open()
        return ScheduleEngine(store)

    def test_unchanged_template_needs_nothing(self, engine):
        assert engine.days_needing_regeneration() == []

    def test_detects_changed_days(self, engine, gateway, room_names):
        shifted = self._shifted_engine(gateway, room_names)
        outdated = shifted.days_needing_regeneration()
        assert len(outdated) == 5
        assert all(day_id == DAY for _, day_id in outdated)

    def test_preserve_keeps_overlapping_bookings(self, engine, gateway, room_names):
        engine.book_slot(ROOM, DAY, "16:00", _fields("Early"))
        engine.book_slot(ROOM, DAY, "17:10", _fields("Overlap"))
        shifted = self._shifted_engine(gateway, room_names)

        report = shifted.regenerate_days(RegenerationPolicy.PRESERVE)
        assert report.days_rewritten == 15
        assert report.bookings_preserved == 1
        assert report.bookings_discarded == 1
        assert report.discarded == [f"{ROOM}/{DAY}/16:00 (Early)"]

        day = shifted.store.get_day(ROOM, DAY)
        assert day.slots[0].id == "17:00"
        assert day.slots[-1].id == "18:50"
        assert [s.attendee.name for s in day.booked_slots] == ["Overlap"]
        assert shifted.days_needing_regeneration() == []

    def test_discard_drops_all_bookings(self, engine, gateway, room_names):
        engine.book_slot(ROOM, DAY, "17:10", _fields("Overlap"))
        engine.book_slot(ROOM, "friday-july-11", "16:00", _fields("Friday"))
        shifted = self._shifted_engine(gateway, room_names)

        report = shifted.regenerate_days(RegenerationPolicy.DISCARD)
        assert report.bookings_discarded == 2
        assert report.bookings_preserved == 0
        assert shifted.all_bookings() == []
