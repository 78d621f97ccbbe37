"""
Mosque Admins Module

Super-admin management of mosque administrators:
1. Deciding pending applications (approve / reject)
2. Removing approved administrators
3. Allowing rejected administrators to reapply (refused once auto-banned)
4. Assigning an administrator to a mosque directly
5. Registering and deleting mosques and managing their verification codes
6. Public applications and reapplications from prospective administrators

The lifecycle rules in ``lifecycle`` are shared with the console so client
pre-validation and server enforcement agree.

API Endpoints: see ``admin_router`` (mounted under /superadmin) and
``application_router`` (public, mounted under /auth/admin).
"""

from .admin_router import router
from .application_router import router as public_router
from .lifecycle import AUTO_BAN_THRESHOLD, MIN_PASSWORD_LENGTH, MIN_REASON_LENGTH

__all__ = [
    "router",
    "public_router",
    "AUTO_BAN_THRESHOLD",
    "MIN_PASSWORD_LENGTH",
    "MIN_REASON_LENGTH",
]
