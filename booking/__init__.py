"""Buchungs-Modul: Zustand, Zustandsautomat, Zugangscode, Ablaufsteuerung."""

from .state import BookingError, DayNotFoundError, ScheduleHandle, ScheduleStore
from .engine import (
    RegenerationReport,
    ScheduleEngine,
    SlotAlreadyBookedError,
    SlotNotFoundError,
)
from .access_gate import (
    AccessConfigurationError,
    AccessGate,
    AccessGateUnavailableError,
    ActionType,
    RemoteAccessGate,
)
from .authorization import Identity, Role, StaffPolicy
from .service import ActionResult, ActionStatus, BookingService

__all__ = [
    "BookingError",
    "DayNotFoundError",
    "ScheduleHandle",
    "ScheduleStore",
    "RegenerationReport",
    "ScheduleEngine",
    "SlotAlreadyBookedError",
    "SlotNotFoundError",
    "AccessConfigurationError",
    "AccessGate",
    "AccessGateUnavailableError",
    "ActionType",
    "RemoteAccessGate",
    "Identity",
    "Role",
    "StaffPolicy",
    "ActionResult",
    "ActionStatus",
    "BookingService",
]
