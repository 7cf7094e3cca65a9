"""Tests für Dokumentenspeicher, Abonnements und ScheduleStore."""

import json
from pathlib import Path

import pytest

from booking.state import DayNotFoundError, ScheduleStore
from config.defaults import build_day_template, default_days
from data.gateway import (
    CorruptDocumentError,
    DocumentNotFoundError,
    PermissionDeniedError,
    ServiceUnavailableError,
    StoreError,
    UnauthenticatedError,
    describe_store_error,
    document_to_day,
)
from data.json_store import JsonDocumentStore
from data.memory_store import InMemoryDocumentStore
from models.slot import TimeSlot


# ─── SCHEDULESTORE ────────────────────────────────────────────────────────────

class TestScheduleStore:
    def test_open_seeds_all_rooms(self, store, gateway):
        """Leerer Speicher: jeder Raum bekommt alle Tage der Vorlage."""
        assert [r.id for r in store.rooms] == ["room-1", "room-2", "room-3", "room-4", "room-5"]
        assert gateway.list_rooms() == [r.id for r in store.rooms]
        room = store.get_room("room-1")
        assert [d.id for d in room.schedule] == [
            "thursday-july-10", "friday-july-11", "saturday-july-12"]
        assert len(room.get_day("saturday-july-12").slots) == 18
        assert not store.is_loading

    def test_seeding_happens_once(self, gateway, room_names, template):
        """Zwei Stores auf demselben Speicher legen nicht doppelt an."""
        ScheduleStore(gateway, room_names, template).open()
        writes = gateway.write_count
        ScheduleStore(gateway, room_names, template).open()
        assert gateway.write_count == writes == 15

    def test_existing_rooms_not_reseeded(self, gateway, room_names, template):
        gateway.initialize_if_empty("room-1", template[:1])
        store = ScheduleStore(gateway, room_names, template)
        store.open(["room-1"])
        assert [d.id for d in store.get_room("room-1").schedule] == ["thursday-july-10"]

    def test_get_day_missing_raises(self, store):
        with pytest.raises(DayNotFoundError):
            store.get_day("room-1", "sunday-july-13")
        with pytest.raises(DayNotFoundError):
            store.get_day("room-9", "thursday-july-10")

    def test_updates_wait_for_sync(self, store, gateway):
        """Callbacks legen nur in die Warteschlange; sync() wendet an."""
        slot = TimeSlot(id="16:00", time="4:00 PM", is_booked=False)
        gateway.write_slot("room-1", "thursday-july-10", slot)
        assert store.sync() == 1

    def test_close_stops_updates(self, gateway, room_names, template):
        store = ScheduleStore(gateway, room_names, template)
        handle = store.open(["room-1"])
        store.close(handle)
        assert handle.closed
        assert all(not s.active for s in handle.subscriptions)

        gateway.replace_day_slots("room-1", "thursday-july-10", [])
        assert store.sync() == 0
        assert len(store.get_day("room-1", "thursday-july-10").slots) == 12

    def test_subscription_error_sets_message(self, store, gateway):
        gateway.fail_subscriptions("room-1", PermissionDeniedError("nope"))
        store.sync()
        assert "Zugriff verweigert" in store.error
        assert not store.is_loading

    def test_seeding_error_reported(self, room_names, template):
        gateway = InMemoryDocumentStore()
        gateway.fail_next_write(ServiceUnavailableError("offline"))
        store = ScheduleStore(gateway, room_names, template)
        store.open(["room-1"])
        assert "nicht erreichbar" in store.error

    def test_invalid_document_reported(self, tmp_path: Path, room_names, template):
        """Gebuchter Slot ohne Person im Dokument → Fehlermeldung statt Absturz."""
        room_dir = tmp_path / "rooms" / "room-1"
        room_dir.mkdir(parents=True)
        doc = {"id": "thursday-july-10", "date": "July 10th, 2025", "dayName": "Thursday",
               "slots": {"16:00": {"id": "16:00", "time": "4:00 PM", "isBooked": True}}}
        (room_dir / "thursday-july-10.json").write_text(json.dumps(doc), encoding="utf-8")

        store = ScheduleStore(JsonDocumentStore(tmp_path), room_names, template)
        store.open(["room-1"])
        assert store.error.startswith("Zeitplan konnte nicht geladen werden")
        assert store.get_room("room-1") is None
        assert not store.is_loading

    def test_open_empty_list_opens_nothing(self, gateway, room_names, template):
        store = ScheduleStore(gateway, room_names, template)
        handle = store.open([])
        assert handle.room_ids == []
        assert store.rooms == []
        assert gateway.write_count == 0

    def test_day_labels_follow_configuration(self, store, gateway, room_names):
        """Umbenannter Tag in der Vorlage wirkt sofort, ohne Neuaufbau."""
        days = default_days()
        days[0] = days[0].model_copy(update={"day_name": "Donnerstag", "date": "10. Juli 2025"})
        renamed = ScheduleStore(gateway, room_names, build_day_template(days))
        renamed.open(["room-1"])
        day = renamed.get_day("room-1", "thursday-july-10")
        assert (day.day_name, day.date) == ("Donnerstag", "10. Juli 2025")
        assert gateway.raw_document("room-1", "thursday-july-10")["dayName"] == "Thursday"


# ─── FEHLERMELDUNGEN ──────────────────────────────────────────────────────────

class TestStoreErrors:
    @pytest.mark.parametrize("error,text", [
        (PermissionDeniedError(), "Zugriff verweigert"),
        (ServiceUnavailableError(), "nicht erreichbar"),
        (UnauthenticatedError(), "Anmeldung erforderlich"),
    ])
    def test_known_codes(self, error, text):
        assert text in describe_store_error(error)

    def test_generic_fallback(self):
        msg = describe_store_error(StoreError("kaputt"))
        assert msg == "Zeitplan konnte nicht geladen werden: kaputt"

    def test_code_override(self):
        assert StoreError("x", code="unavailable").code == "unavailable"


# ─── GATEWAY-SCHREIBOPERATIONEN ───────────────────────────────────────────────

class TestGatewayWrites:
    def test_slots_stored_as_mapping(self, store, gateway):
        raw = gateway.raw_document("room-1", "thursday-july-10")
        assert isinstance(raw["slots"], dict)
        assert raw["slots"]["16:00"] == {"id": "16:00", "time": "4:00 PM", "isBooked": False}
        assert raw["dayName"] == "Thursday"

    def test_write_to_missing_day_fails(self, store, gateway):
        slot = TimeSlot(id="16:00", time="4:00 PM")
        with pytest.raises(DocumentNotFoundError):
            gateway.write_slot("room-1", "sunday-july-13", slot)

    def test_replace_day_slots_keeps_metadata(self, store, gateway):
        gateway.replace_day_slots("room-1", "thursday-july-10",
                                  [TimeSlot(id="16:00", time="4:00 PM")])
        raw = gateway.raw_document("room-1", "thursday-july-10")
        assert raw["date"] == "July 10th, 2025"
        assert list(raw["slots"]) == ["16:00"]

    def test_invalid_slot_raises_store_error(self):
        with pytest.raises(CorruptDocumentError):
            document_to_day({"id": "d1", "slots": {"16:00": {"id": "16:00", "isBooked": True}}})

    def test_echo_failure_ends_subscription(self, store, gateway, monkeypatch):
        """Speichern gelingt, Verteilen scheitert → Abonnement endet, kein Fehler."""
        def broken(room_id):
            raise ServiceUnavailableError("offline")

        monkeypatch.setattr(gateway, "snapshot", broken)
        gateway.write_slot("room-1", "thursday-july-10",
                           TimeSlot(id="16:00", time="4:00 PM", is_booked=False))
        store.sync()
        assert "nicht erreichbar" in store.error
        assert gateway._subscriptions["room-1"] == []

    def test_legacy_list_layout_readable(self):
        """Ältere Dokumente mit Slot-Liste werden weiterhin gelesen."""
        day = document_to_day({
            "id": "d1", "date": "x", "dayName": "Thursday",
            "slots": [{"id": "16:10", "time": "4:10 PM", "isBooked": False},
                      {"id": "16:00", "time": "4:00 PM", "isBooked": False}],
        })
        assert [s.id for s in day.slots] == ["16:10", "16:00"]

    def test_initialize_if_empty_returns_flag(self, gateway, template):
        assert gateway.initialize_if_empty("room-x", template)
        assert not gateway.initialize_if_empty("room-x", template)


# ─── JSON-SPEICHER ────────────────────────────────────────────────────────────

class TestJsonDocumentStore:
    def test_seed_and_reload(self, tmp_path: Path, room_names, template):
        """Zweite Instanz liest die vom ersten Store angelegten Dateien."""
        first = JsonDocumentStore(tmp_path)
        ScheduleStore(first, room_names, template).open()
        assert (tmp_path / "rooms" / "room-1" / "thursday-july-10.json").exists()

        second = JsonDocumentStore(tmp_path)
        assert second.list_rooms() == list(room_names)
        days = second.snapshot("room-2")
        assert [d.id for d in days] == sorted(d.id for d in template)

    def test_write_slot_persists(self, tmp_path: Path, room_names, template):
        gateway = JsonDocumentStore(tmp_path)
        ScheduleStore(gateway, room_names, template).open(["room-1"])
        gateway.write_slot("room-1", "friday-july-11",
                           TimeSlot(id="16:00", time="4:00 PM", is_booked=False))
        with open(tmp_path / "rooms" / "room-1" / "friday-july-11.json", encoding="utf-8") as f:
            doc = json.load(f)
        assert doc["slots"]["16:00"]["isBooked"] is False
        assert not list((tmp_path / "rooms" / "room-1").glob("*.tmp"))

    def test_corrupt_document_is_unavailable(self, tmp_path: Path):
        room_dir = tmp_path / "rooms" / "room-1"
        room_dir.mkdir(parents=True)
        (room_dir / "thursday-july-10.json").write_text("{kaputt", encoding="utf-8")
        with pytest.raises(ServiceUnavailableError):
            JsonDocumentStore(tmp_path).snapshot("room-1")

    def test_empty_root(self, tmp_path: Path):
        gateway = JsonDocumentStore(tmp_path / "neu")
        assert gateway.list_rooms() == []
        assert gateway.snapshot("room-1") == []
