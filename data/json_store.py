"""Dateibasierter Dokumentenspeicher: ein JSON-Dokument pro Tag.

Layout:  <root>/rooms/<room_id>/<day_id>.json

Änderungen werden nur innerhalb des eigenen Prozesses gemeldet.
"""

import json
import logging
import os
from pathlib import Path

from data.gateway import (
    DocumentGateway,
    PermissionDeniedError,
    ServiceUnavailableError,
)

logger = logging.getLogger(__name__)


class JsonDocumentStore(DocumentGateway):
    """Persistiert Tages-Dokumente als JSON-Dateien."""

    def __init__(self, root: Path):
        super().__init__()
        self.root = Path(root)

    def _room_dir(self, room_id: str) -> Path:
        return self.root / "rooms" / room_id

    def _load_room(self, room_id: str) -> dict[str, dict]:
        room_dir = self._room_dir(room_id)
        if not room_dir.exists():
            return {}
        docs: dict[str, dict] = {}
        try:
            for p in sorted(room_dir.glob("*.json")):
                with open(p, "r", encoding="utf-8") as f:
                    doc = json.load(f)
                docs[doc.get("id", p.stem)] = doc
        except PermissionError as e:
            raise PermissionDeniedError(str(e)) from e
        except json.JSONDecodeError as e:
            raise ServiceUnavailableError(
                f"Beschädigtes Dokument in {room_dir}: {e}") from e
        return docs

    def _save_document(self, room_id: str, doc: dict) -> None:
        room_dir = self._room_dir(room_id)
        target = room_dir / f"{doc['id']}.json"
        tmp = target.with_suffix(".json.tmp")
        try:
            room_dir.mkdir(parents=True, exist_ok=True)
            with open(tmp, "w", encoding="utf-8") as f:
                json.dump(doc, f, indent=2, ensure_ascii=False)
            # Atomar ersetzen
            os.replace(tmp, target)
        except PermissionError as e:
            raise PermissionDeniedError(str(e)) from e
        except OSError as e:
            raise ServiceUnavailableError(str(e)) from e
        logger.debug(f"Dokument gespeichert: {target}")

    def list_rooms(self) -> list[str]:
        rooms_dir = self.root / "rooms"
        if not rooms_dir.exists():
            return []
        return sorted(
            p.name for p in rooms_dir.iterdir()
            if p.is_dir() and any(p.glob("*.json"))
        )
