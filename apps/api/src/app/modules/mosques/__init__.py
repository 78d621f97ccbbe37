"""
Mosques Module

Mosque tenants and their verification codes. Applicants must present a
mosque's current code to apply as its administrator; codes expire after 30
days by default.

Background Jobs (via APScheduler):
- regenerate_expired_verification_codes: Runs hourly
"""

from .jobs import register_mosque_jobs
from .models import Mosque
from .repository import MosqueRepository

__all__ = ["Mosque", "MosqueRepository", "register_mosque_jobs"]
