"""Duplikat-Erkennung: ähnliche Namen über alle Räume/Tage/Slots finden.

Warnt Mitarbeiter, bevor dieselbe Person ein zweites Mal gebucht wird.
Linearer Scan über alle gebuchten Slots – bei einigen hundert Slots
ausreichend schnell.
"""

from __future__ import annotations

import unicodedata
from typing import Protocol

from models.booking import DuplicateMatch
from models.room import Room


class SimilarityStrategy(Protocol):
    """Austauschbares Ähnlichkeitsmaß (0.0 = verschieden, 1.0 = gleich)."""

    def score(self, a: str, b: str) -> float: ...


def fold_accents(text: str) -> str:
    """Entfernt diakritische Zeichen: "María López" → "Maria Lopez"."""
    decomposed = unicodedata.normalize("NFKD", text)
    return "".join(c for c in decomposed if not unicodedata.combining(c))


class WordOverlapSimilarity:
    """Heuristik aus exaktem Vergleich, Teilstring und Wort-Überlappung.

    1.0   normalisiert gleich (klein, getrimmt)
    0.8   einer ist Teilstring des anderen
    sonst Anteil übereinstimmender Wörter von a, geteilt durch die größere
          Wortanzahl; Wörter stimmen überein wenn sie (akzentbereinigt)
          gleich sind oder eines das andere enthält
    """

    def score(self, a: str, b: str) -> float:
        s1 = a.lower().strip()
        s2 = b.lower().strip()

        if s1 == s2:
            return 1.0
        if s1 in s2 or s2 in s1:
            return 0.8

        words1 = s1.split()
        words2 = s2.split()
        total = max(len(words1), len(words2))
        if total == 0:
            return 0.0

        folded2 = [fold_accents(w) for w in words2]
        matching = 0
        for w1 in words1:
            f1 = fold_accents(w1)
            if any(f1 == f2 or f1 in f2 or f2 in f1 for f2 in folded2):
                matching += 1
        return matching / total


class DuplicateDetector:
    """Durchsucht alle gebuchten Slots nach ähnlichen Namen."""

    def __init__(self, strategy: SimilarityStrategy | None = None,
                 min_length: int = 3, threshold: float = 0.6):
        self.strategy = strategy or WordOverlapSimilarity()
        self.min_length = min_length
        self.threshold = threshold

    def find(self, name: str, rooms: list[Room]) -> list[DuplicateMatch]:
        """Alle Treffer mit Ähnlichkeit > threshold, absteigend sortiert.

        Gleiche Werte behalten die Fundreihenfolge (Raum → Tag → Slot).
        """
        candidate = (name or "").strip()
        if len(candidate) < self.min_length:
            return []

        matches: list[DuplicateMatch] = []
        for room in rooms:
            for day in room.schedule:
                for slot in day.slots:
                    if not (slot.is_booked and slot.attendee and slot.attendee.name):
                        continue
                    similarity = self.strategy.score(candidate, slot.attendee.name)
                    if similarity > self.threshold:
                        matches.append(DuplicateMatch(
                            room_id=room.id,
                            room_name=room.name,
                            day_id=day.id,
                            day_name=day.day_name,
                            slot_id=slot.id,
                            slot_time=slot.time,
                            attendee_name=slot.attendee.name,
                            similarity=similarity,
                        ))

        # sorted() ist stabil → Fundreihenfolge bei Gleichstand
        return sorted(matches, key=lambda m: m.similarity, reverse=True)
