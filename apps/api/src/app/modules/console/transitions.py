"""
Lifecycle Transition Engine

Console-side driver for administrator and mosque mutations.

Each action:
1. Validates locally with the shared lifecycle rules (nothing is sent on failure)
2. Submits the mutation to the backend
3. On success, refreshes the whole session

Mutations are serialized per engine. Results come back as
``TransitionResult`` values; errors are not raised to the caller.
"""

import asyncio
import enum
import logging
from collections.abc import Awaitable, Callable
from typing import Any, Protocol

from pydantic import BaseModel, ConfigDict

from app.modules.admins.lifecycle import (
    LifecycleRuleError,
    can_allow_reapplication,
    ensure_reapplication_allowed,
    validate_assignment,
    validate_deletion_reason,
    validate_reason,
)

from .errors import (
    AutoBannedError,
    ConsoleConflictError,
    ConsoleError,
    ConsoleRequestError,
    ConsoleTransientError,
    ConsoleValidationError,
    message_for_code,
)
from .reconciliation import AdminStatusView, RejectedAdminSummary
from .records import RejectedAdminRecord
from .session import ConsoleSession

logger = logging.getLogger(__name__)


class TransitionAction(str, enum.Enum):
    APPROVE = "approve"
    REJECT = "reject"
    REMOVE = "remove"
    ALLOW_REAPPLICATION = "allow_reapplication"
    ASSIGN_ADMIN = "assign_admin"
    DELETE_MOSQUE = "delete_mosque"


_FAILURE_MESSAGES = {
    TransitionAction.APPROVE: "Failed to approve admin. Please try again.",
    TransitionAction.REJECT: "Failed to reject admin. Please try again.",
    TransitionAction.REMOVE: "Failed to remove admin. Please try again.",
    TransitionAction.ALLOW_REAPPLICATION: "Failed to allow reapplication. Please try again.",
    TransitionAction.ASSIGN_ADMIN: "Failed to assign admin. Please try again.",
    TransitionAction.DELETE_MOSQUE: "Failed to delete mosque. Please try again.",
}


class DirectoryClient(Protocol):
    async def approve_admin(self, admin_id: str, notes: str | None = None) -> dict: ...
    async def reject_admin(self, admin_id: str, reason: str) -> dict: ...
    async def remove_admin(self, admin_id: str, reason: str) -> dict: ...
    async def allow_reapplication(self, admin_id: str, notes: str | None = None) -> dict: ...
    async def assign_admin(self, mosque_id: str, payload: dict) -> dict: ...
    async def delete_mosque(self, mosque_id: str, reason: str) -> dict: ...


class AssignAdminForm(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str = ""
    email: str = ""
    phone: str = ""
    password: str = ""
    confirm_password: str | None = None
    notes: str | None = None

    def to_payload(self) -> dict[str, Any]:
        payload = {
            "admin_name": self.name.strip(),
            "admin_email": self.email.strip().lower(),
            "admin_phone": self.phone.strip(),
            "admin_password": self.password,
        }
        if self.notes:
            payload["super_admin_notes"] = self.notes
        return payload


class TransitionResult(BaseModel):
    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    action: TransitionAction
    target_id: str
    success: bool
    message: str
    error: ConsoleError | None = None
    response: dict[str, Any] | None = None

    @property
    def error_code(self) -> str | None:
        return self.error.code if self.error else None

    @property
    def retryable(self) -> bool:
        return bool(self.error and self.error.retryable)


# ============================================
# Action availability
# ============================================


def available_actions(view: AdminStatusView) -> set[TransitionAction]:
    """Actions the console offers for a mosque row."""
    actions = {TransitionAction.DELETE_MOSQUE}
    if view.has_approved_admin:
        actions.add(TransitionAction.REMOVE)
    else:
        actions.add(TransitionAction.ASSIGN_ADMIN)
    if view.pending_admins:
        actions |= {TransitionAction.APPROVE, TransitionAction.REJECT}
    return actions


def rejected_actions(record: RejectedAdminRecord | RejectedAdminSummary) -> set[TransitionAction]:
    if can_allow_reapplication(record.rejection_count, record.can_reapply):
        return {TransitionAction.ALLOW_REAPPLICATION}
    return set()


# ============================================
# Engine
# ============================================


class TransitionEngine:
    def __init__(self, client: DirectoryClient, session: ConsoleSession):
        self.client = client
        self.session = session
        self._lock = asyncio.Lock()

    async def _run(
        self,
        action: TransitionAction,
        target_id: str,
        submit: Callable[[], Awaitable[dict]],
        success_message: str,
    ) -> TransitionResult:
        async with self._lock:
            try:
                response = await submit()
            except ConsoleConflictError as e:
                message = message_for_code(e.code, e.details, fallback=_FAILURE_MESSAGES[action])
                logger.info(f"{action.value} {target_id} refused: {e.code}")
                return TransitionResult(
                    action=action, target_id=target_id, success=False, message=message, error=e
                )
            except (ConsoleRequestError, ConsoleTransientError) as e:
                logger.warning(f"{action.value} {target_id} failed: {e.message}")
                return TransitionResult(
                    action=action, target_id=target_id, success=False, message=e.message, error=e
                )

            await self.session.refresh()

        logger.info(f"{action.value} {target_id} succeeded")
        return TransitionResult(
            action=action,
            target_id=target_id,
            success=True,
            message=(response or {}).get("message") or success_message,
            response=response,
        )

    @staticmethod
    def _invalid(action: TransitionAction, target_id: str, error: ConsoleError) -> TransitionResult:
        return TransitionResult(
            action=action, target_id=target_id, success=False, message=error.message, error=error
        )

    @staticmethod
    def _rule_error(e: LifecycleRuleError) -> ConsoleValidationError:
        if e.code == "AUTO_BANNED":
            return AutoBannedError(e.message)
        return ConsoleValidationError(e.message, e.code)

    # ============================================
    # Actions
    # ============================================

    async def approve(self, pending_admin_id: str, notes: str | None = None) -> TransitionResult:
        return await self._run(
            TransitionAction.APPROVE,
            pending_admin_id,
            lambda: self.client.approve_admin(pending_admin_id, notes),
            "Admin approved successfully.",
        )

    async def reject(self, pending_admin_id: str, reason: str) -> TransitionResult:
        try:
            trimmed = validate_reason(reason, "rejection")
        except LifecycleRuleError as e:
            return self._invalid(TransitionAction.REJECT, pending_admin_id, self._rule_error(e))

        return await self._run(
            TransitionAction.REJECT,
            pending_admin_id,
            lambda: self.client.reject_admin(pending_admin_id, trimmed),
            "Admin rejected.",
        )

    async def remove(self, view: AdminStatusView, reason: str) -> TransitionResult:
        if view.approved_admin is None:
            return self._invalid(
                TransitionAction.REMOVE,
                view.id,
                ConsoleValidationError("This mosque has no approved admin to remove."),
            )
        admin_id = view.approved_admin.id

        try:
            trimmed = validate_reason(reason, "removal")
        except LifecycleRuleError as e:
            return self._invalid(TransitionAction.REMOVE, admin_id, self._rule_error(e))

        return await self._run(
            TransitionAction.REMOVE,
            admin_id,
            lambda: self.client.remove_admin(admin_id, trimmed),
            f"{view.approved_admin.name} has been removed from {view.mosque.name}.",
        )

    async def allow_reapplication(
        self,
        record: RejectedAdminRecord | RejectedAdminSummary,
        notes: str | None = None,
    ) -> TransitionResult:
        try:
            ensure_reapplication_allowed(record.rejection_count, record.can_reapply)
        except LifecycleRuleError as e:
            return self._invalid(
                TransitionAction.ALLOW_REAPPLICATION, record.id, self._rule_error(e)
            )

        return await self._run(
            TransitionAction.ALLOW_REAPPLICATION,
            record.id,
            lambda: self.client.allow_reapplication(record.id, notes),
            f"{record.name} can now reapply.",
        )

    async def assign_admin(self, mosque_id: str, form: AssignAdminForm) -> TransitionResult:
        try:
            validate_assignment(
                form.name, form.email, form.phone, form.password, form.confirm_password
            )
        except LifecycleRuleError as e:
            return self._invalid(TransitionAction.ASSIGN_ADMIN, mosque_id, self._rule_error(e))

        payload = form.to_payload()
        return await self._run(
            TransitionAction.ASSIGN_ADMIN,
            mosque_id,
            lambda: self.client.assign_admin(mosque_id, payload),
            f"{payload['admin_name']} assigned as admin.",
        )

    async def delete_mosque(self, mosque_id: str, reason: str) -> TransitionResult:
        try:
            trimmed = validate_deletion_reason(reason)
        except LifecycleRuleError as e:
            return self._invalid(TransitionAction.DELETE_MOSQUE, mosque_id, self._rule_error(e))

        return await self._run(
            TransitionAction.DELETE_MOSQUE,
            mosque_id,
            lambda: self.client.delete_mosque(mosque_id, trimmed),
            "Mosque deleted.",
        )

