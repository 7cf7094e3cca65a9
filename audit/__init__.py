"""Aktionsprotokoll: wer hat wann welchen Slot gebucht, geändert, storniert."""

from audit.entry import AuditAction, LogEntry
from audit.writer import (
    AuditLogWriter,
    CompositeAuditLogWriter,
    FileAuditLog,
    HttpAuditLogWriter,
    NullAuditLogWriter,
)

__all__ = [
    "AuditAction",
    "LogEntry",
    "AuditLogWriter",
    "CompositeAuditLogWriter",
    "FileAuditLog",
    "HttpAuditLogWriter",
    "NullAuditLogWriter",
]
