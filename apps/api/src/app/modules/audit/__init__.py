"""
Audit Module

Best-effort audit trail of every mutating super-admin action, with
plain-English descriptions for the console.

API Endpoints:
- GET /superadmin/audit-logs - List audit entries
"""

from .admin_router import router
from .service import SYSTEM_ACTOR, Actor, describe, record_action

__all__ = ["router", "Actor", "SYSTEM_ACTOR", "describe", "record_action"]
