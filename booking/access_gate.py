"""Zugangscode-Prüfung vor Buchungsänderungen.

Zwei Geheimnisse: eines für "book", ein gemeinsames für "cancel"/"edit".
Es gibt weder Rate-Limit noch Sperre – nur einen Gleichheitsvergleich.
"""

import hmac
import logging
import os
from enum import Enum
from typing import Mapping, Optional

import httpx

logger = logging.getLogger(__name__)


class ActionType(str, Enum):
    BOOK = "book"
    CANCEL = "cancel"
    EDIT = "edit"


class AccessGateError(Exception):
    """Basisklasse für Fehler der Code-Prüfung (nicht: falscher Code)."""


class AccessConfigurationError(AccessGateError):
    """Das benötigte Geheimnis ist nicht konfiguriert."""


class AccessGateUnavailableError(AccessGateError):
    """Externer Prüf-Dienst nicht erreichbar oder Antwort unbrauchbar."""


def _coerce_action(action) -> ActionType:
    try:
        return ActionType(action)
    except ValueError:
        raise ValueError(f"Unbekannter Aktionstyp: {action!r}") from None


class AccessGate:
    """Prüft Codes gegen Umgebungsvariablen."""

    def __init__(self, booking_code_env: str = "RESERVATION_CODE",
                 admin_code_env: str = "ADMIN_CODE",
                 environ: Optional[Mapping[str, str]] = None):
        self.booking_code_env = booking_code_env
        self.admin_code_env = admin_code_env
        self.environ = environ if environ is not None else os.environ

    def secret_name(self, action) -> str:
        """Name der Umgebungsvariable für den Aktionstyp."""
        action = _coerce_action(action)
        if action == ActionType.BOOK:
            return self.booking_code_env
        return self.admin_code_env

    def validate(self, code: str, action) -> bool:
        """True wenn code zum Geheimnis des Aktionstyps passt.

        Raises:
            AccessConfigurationError: Geheimnis nicht gesetzt (fail closed).
        """
        env_name = self.secret_name(action)
        secret = self.environ.get(env_name)
        if not secret:
            raise AccessConfigurationError(
                f"Zugangscode nicht konfiguriert (Umgebungsvariable {env_name})")
        candidate = (code or "").strip()
        return hmac.compare_digest(candidate.encode("utf-8"), secret.encode("utf-8"))


class RemoteAccessGate:
    """Prüft Codes über den externen Endpunkt POST /validate-code."""

    def __init__(self, base_url: str, timeout: float = 5.0,
                 client: Optional[httpx.Client] = None):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._client = client

    def validate(self, code: str, action) -> bool:
        action = _coerce_action(action)
        payload = {"code": (code or "").strip(), "type": action.value}
        client = self._client or httpx.Client(timeout=self.timeout)
        try:
            response = client.post(f"{self.base_url}/validate-code", json=payload)
        except httpx.HTTPError as e:
            logger.error(f"Code-Prüfung nicht erreichbar: {e}")
            raise AccessGateUnavailableError(str(e)) from e
        finally:
            if self._client is None:
                client.close()

        if response.status_code == 500:
            detail = _error_detail(response)
            if "not configured" in detail.lower():
                raise AccessConfigurationError(detail)
            raise AccessGateUnavailableError(detail or "Serverfehler")
        if response.status_code != 200:
            raise AccessGateUnavailableError(
                f"Unerwarteter Status {response.status_code}: {_error_detail(response)}")
        try:
            return bool(response.json().get("valid", False))
        except ValueError as e:
            raise AccessGateUnavailableError(f"Ungültige Antwort: {e}") from e


def _error_detail(response: httpx.Response) -> str:
    try:
        return str(response.json().get("error", ""))
    except ValueError:
        return response.text
