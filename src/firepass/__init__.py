# FirePass - Main Package
#
# Encrypted local credential vault: master-password key derivation,
# AES-256-GCM vault blob, lock/unlock lifecycle.

__version__ = "0.1.0"
__author__ = "FirePass Team"
__description__ = "Encrypted local credential vault"

from .core import (
    EventType,
    EventSeverity,
    get_audit_logger,
)

__all__ = [
    "__version__",
    "EventType",
    "EventSeverity",
    "get_audit_logger",
]
