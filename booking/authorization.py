"""Rollenbestimmung für angemeldete Benutzer."""

from enum import Enum
from typing import Optional

from pydantic import BaseModel


class Role(str, Enum):
    STAFF = "staff"
    ATTENDEE = "attendee"


class Identity(BaseModel):
    """Vom Auth-Provider gelieferte Identität."""

    email: str
    uid: Optional[str] = None


class StaffPolicy:
    """Mitarbeiter = E-Mail endet auf eine der konfigurierten Domains.

    Reine Richtlinie, keine Sicherheitsgrenze: die Domain wird vom
    Auth-Provider nicht verifiziert.
    """

    def __init__(self, domains: list[str]):
        self.domains = [d.lower().lstrip("@") for d in domains if d.strip()]

    def role_for(self, identity: Optional[Identity]) -> Role:
        if identity is None:
            return Role.ATTENDEE
        email = identity.email.strip().lower()
        if any(email.endswith(f"@{d}") for d in self.domains):
            return Role.STAFF
        return Role.ATTENDEE

    def is_staff(self, identity: Optional[Identity]) -> bool:
        return self.role_for(identity) == Role.STAFF
