"""
Super admins module - platform operator accounts.
"""

from app.modules.super_admins.models import SuperAdmin
from app.modules.super_admins.repository import SuperAdminRepository

__all__ = ["SuperAdmin", "SuperAdminRepository"]
