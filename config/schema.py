from pydantic import BaseModel, Field, model_validator
from typing import Optional
from enum import Enum


class WriteMode(str, Enum):
    # Atomarer Schreibzugriff auf genau einen Slot (Standard)
    SLOT = "slot"
    # Gesamte Slot-Liste des Tages ersetzen (letzter Schreiber gewinnt)
    DAY = "day"


class RegenerationPolicy(str, Enum):
    DISCARD = "discard"
    PRESERVE = "preserve"


# ─── RÄUME + TAGE ───

class RoomDefinition(BaseModel):
    """Ein fest konfigurierter Raum."""
    # Technische ID, z.B. "room-1"
    id: str
    # Anzeigename, z.B. "Room 1"
    name: str


class DayTemplate(BaseModel):
    """Vorlage für einen Veranstaltungstag mit eigenem Zeitfenster."""
    # Kalender-Schlüssel, z.B. "thursday-july-10"
    id: str
    # Anzeigedatum
    date: str
    # Anzeigename des Wochentags
    day_name: str
    # Erste buchbare Stunde (inklusive)
    start_hour: int = Field(ge=0, le=24)
    # Ende des Fensters (exklusive)
    end_hour: int = Field(ge=0, le=24)


# ─── DUPLIKAT-ERKENNUNG ───

class DuplicateConfig(BaseModel):
    """Parameter der Namens-Ähnlichkeitssuche."""
    # Mindestlänge des Suchnamens (getrimmt)
    min_length: int = Field(3, ge=1)
    # Treffer nur wenn Ähnlichkeit > threshold
    threshold: float = Field(0.6, ge=0.0, le=1.0)
    # Wie viele Treffer in der Warnung angezeigt werden
    display_limit: int = Field(3, ge=1)


# ─── ZUGANGSCODES ───

class AccessConfig(BaseModel):
    """Woher die beiden Zugangscodes kommen.

    Die Codes selbst stehen NIE in der YAML-Datei, nur die Namen der
    Umgebungsvariablen.
    """
    # Code für Buchungen
    booking_code_env: str = "RESERVATION_CODE"
    # Gemeinsamer Code für Stornieren + Bearbeiten
    admin_code_env: str = "ADMIN_CODE"
    # Optional: externer Prüf-Endpunkt (POST /validate-code)
    remote_url: Optional[str] = None
    timeout_seconds: float = Field(5.0, gt=0)


# ─── PROTOKOLL ───

class AuditConfig(BaseModel):
    """Senken für das Aktionsprotokoll."""
    # Basis-URL des Protokoll-Dienstes (POST /log-action); None = deaktiviert
    endpoint_url: Optional[str] = None
    # Lokale JSON-Lines-Datei; None = deaktiviert
    log_file: Optional[str] = "output/action_log.jsonl"
    timeout_seconds: float = Field(5.0, gt=0)


# ─── SPEICHER ───

class StorageConfig(BaseModel):
    """Dokumentenspeicher für die Tagespläne."""
    # Verzeichnis des JSON-Dokumentenspeichers
    data_dir: str = "output/store"
    write_mode: WriteMode = WriteMode.SLOT


class StaffConfig(BaseModel):
    """Wer als Mitarbeiter gilt (E-Mail-Domain)."""
    domains: list[str] = Field(default_factory=list)


# ─── GESAMT-KONFIGURATION ───

class SchedulerConfig(BaseModel):
    """Vollständige Konfiguration des Raumbuchungs-Planers."""
    event_name: str = Field(description="Name der Veranstaltung")
    rooms: list[RoomDefinition] = Field(description="Feste Raumliste")
    days: list[DayTemplate] = Field(description="Tagesvorlagen mit Zeitfenstern")
    duplicates: DuplicateConfig = Field(default_factory=DuplicateConfig)
    access: AccessConfig = Field(default_factory=AccessConfig)
    audit: AuditConfig = Field(default_factory=AuditConfig)
    storage: StorageConfig = Field(default_factory=StorageConfig)
    staff: StaffConfig = Field(default_factory=StaffConfig)

    @model_validator(mode='after')
    def validate_unique_ids(self):
        """Raum- und Tages-IDs müssen eindeutig sein."""
        room_ids = [r.id for r in self.rooms]
        if len(room_ids) != len(set(room_ids)):
            raise ValueError(f"Doppelte Raum-IDs: {room_ids}")
        day_ids = [d.id for d in self.days]
        if len(day_ids) != len(set(day_ids)):
            raise ValueError(f"Doppelte Tages-IDs: {day_ids}")
        return self

    @property
    def room_ids(self) -> list[str]:
        return [r.id for r in self.rooms]

    @property
    def room_names(self) -> dict[str, str]:
        return {r.id: r.name for r in self.rooms}
