"""
Mosque Background Jobs

Scheduled maintenance of mosque verification codes:
- Regenerate codes that have expired, so applicants always need a current one

Design Principles:
- Idempotent: a regenerated code is no longer expired, so it isn't picked again
- Each mosque is processed in its own session
- One failing mosque doesn't stop the rest
"""

import logging
from datetime import UTC, datetime
from typing import Any

from apscheduler.triggers.interval import IntervalTrigger

from app.core.database import async_session_maker
from app.core.scheduler import register_job
from app.modules.audit.models import AuditActionType, TargetType
from app.modules.audit.service import SYSTEM_ACTOR, record_action
from app.modules.mosques.repository import MosqueRepository

logger = logging.getLogger(__name__)

JOB_ID_REGENERATE_EXPIRED_CODES = "mosques_regenerate_expired_codes"


async def _regenerate_one(mosque_id: str) -> dict[str, Any]:
    async with async_session_maker() as db:
        mosque = await MosqueRepository.get_by_id(db, mosque_id)
        if mosque is None:
            return {"mosque_id": mosque_id, "status": "skipped", "reason": "deleted"}

        old_code = mosque.verification_code
        await MosqueRepository.regenerate_code(db, mosque)

        await record_action(
            db,
            AuditActionType.VERIFICATION_CODE_REGENERATED,
            SYSTEM_ACTOR,
            TargetType.VERIFICATION_CODE,
            target_id=str(mosque.id),
            target_name=mosque.name,
            details={
                "mosque_data": {"name": mosque.name, "location": mosque.location},
                "before_data": {"verification_code": old_code},
                "after_data": {"verification_code": mosque.verification_code},
                "reason": "expired",
            },
        )
        await db.commit()

        return {"mosque_id": mosque_id, "status": "regenerated"}


async def regenerate_expired_verification_codes() -> dict[str, Any]:
    """
    Regenerate every verification code that has expired.

    Returns:
        Dict with job execution summary
    """
    executed_at = datetime.now(UTC)
    logger.info(f"Starting expired verification code job at {executed_at.isoformat()}")

    results: dict[str, Any] = {
        "executed_at": executed_at.isoformat(),
        "processed": [],
        "total_regenerated": 0,
        "total_errors": 0,
    }

    async with async_session_maker() as db:
        expired = await MosqueRepository.get_expiring_codes(db, before=executed_at)
        mosque_ids = [str(mosque.id) for mosque in expired]

    logger.info(f"Found {len(mosque_ids)} mosque(s) with expired verification codes")

    for mosque_id in mosque_ids:
        try:
            result = await _regenerate_one(mosque_id)
            results["processed"].append(result)
            if result["status"] == "regenerated":
                results["total_regenerated"] += 1
        except Exception as e:
            logger.error(f"Error regenerating code for mosque {mosque_id}: {e}", exc_info=True)
            results["processed"].append({"mosque_id": mosque_id, "status": "error", "error": str(e)})
            results["total_errors"] += 1

    logger.info(
        f"Expired code job complete: {results['total_regenerated']} regenerated, "
        f"{results['total_errors']} errors"
    )
    return results


def register_mosque_jobs() -> None:
    """Register mosque background jobs. Call before the scheduler starts."""
    register_job(
        job_id=JOB_ID_REGENERATE_EXPIRED_CODES,
        func=regenerate_expired_verification_codes,
        trigger=IntervalTrigger(hours=1),
    )
    logger.info(f"Registered job: {JOB_ID_REGENERATE_EXPIRED_CODES} (interval: 1 hour)")
