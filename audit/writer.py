"""Senken für das Aktionsprotokoll.

Protokollieren ist "fire and forget": Fehler werden nur geloggt und
niemals an den Aufrufer weitergereicht. Eine erfolgreiche Buchung bleibt
erfolgreich, auch wenn der Protokolleintrag verloren geht.
"""

import json
import logging
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

import httpx
from pydantic import ValidationError

from audit.entry import LogEntry

logger = logging.getLogger(__name__)

# Standard-Obergrenze beim Lesen des Protokolls
DEFAULT_READ_LIMIT = 1000


class AuditLogWriter(ABC):
    """Schnittstelle: einen Eintrag anhängen, Ergebnis egal."""

    def append(self, entry: LogEntry) -> None:
        try:
            self._write(entry)
        except Exception as e:
            logger.warning(
                f"Protokolleintrag ({entry.action.value}, {entry.room_id}) "
                f"nicht geschrieben: {e}")

    @abstractmethod
    def _write(self, entry: LogEntry) -> None:
        ...


class NullAuditLogWriter(AuditLogWriter):
    """Verwirft alle Einträge."""

    def _write(self, entry: LogEntry) -> None:
        pass


class HttpAuditLogWriter(AuditLogWriter):
    """POST {base_url}/log-action mit dem camelCase-Payload."""

    def __init__(self, base_url: str, timeout: float = 5.0,
                 client: Optional[httpx.Client] = None):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._client = client

    def _write(self, entry: LogEntry) -> None:
        payload = entry.to_payload()
        # Zeitstempel setzt der Server
        payload.pop("timestamp", None)
        if self._client is not None:
            response = self._client.post(f"{self.base_url}/log-action", json=payload)
        else:
            with httpx.Client(timeout=self.timeout) as client:
                response = client.post(f"{self.base_url}/log-action", json=payload)
        response.raise_for_status()


class FileAuditLog(AuditLogWriter):
    """JSON-Lines-Datei: ein Eintrag pro Zeile, Zeitstempel beim Anhängen."""

    def __init__(self, path: Path):
        self.path = Path(path)

    def _write(self, entry: LogEntry) -> None:
        stamped = entry.model_copy(update={"timestamp": datetime.now(timezone.utc)})
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.path, "a", encoding="utf-8") as f:
            f.write(json.dumps(stamped.to_payload(), ensure_ascii=False) + "\n")

    def read(self, search: Optional[str] = None,
             limit: int = DEFAULT_READ_LIMIT) -> list[LogEntry]:
        """Einträge, neueste zuerst; optional gefiltert und begrenzt."""
        if not self.path.exists():
            return []
        entries: list[LogEntry] = []
        with open(self.path, "r", encoding="utf-8") as f:
            for line_no, line in enumerate(f, 1):
                line = line.strip()
                if not line:
                    continue
                try:
                    entries.append(LogEntry.model_validate(json.loads(line)))
                except (ValueError, ValidationError) as e:
                    logger.warning(f"{self.path}:{line_no}: ungültiger Eintrag übersprungen ({e})")

        # Neueste zuerst; Dateireihenfolge entscheidet bei gleichem Zeitstempel
        indexed = list(enumerate(entries))
        indexed.sort(
            key=lambda x: (x[1].timestamp or datetime.min.replace(tzinfo=timezone.utc), x[0]),
            reverse=True,
        )
        entries = [e for _, e in indexed]
        if limit and limit > 0:
            entries = entries[:limit]
        if search and search.strip():
            entries = [e for e in entries if e.matches(search)]
        return entries


class CompositeAuditLogWriter(AuditLogWriter):
    """Schreibt in mehrere Senken; jede Senke scheitert für sich."""

    def __init__(self, writers: list[AuditLogWriter]):
        self.writers = list(writers)

    def append(self, entry: LogEntry) -> None:
        for w in self.writers:
            w.append(entry)

    def _write(self, entry: LogEntry) -> None:
        for w in self.writers:
            w.append(entry)
