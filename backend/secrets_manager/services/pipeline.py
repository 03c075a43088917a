"""
Authorize → mutate → record, as one reusable step.

Endpoints describe what they want to do and what should be written to the
activity trail; `run_guarded` performs the three steps in order and stops at
the first failure, so a denied or failed operation never produces a log entry.
"""

from dataclasses import dataclass
from typing import Awaitable, Callable, Optional, TypeVar, Union

from sqlalchemy.ext.asyncio import AsyncSession

from secrets_manager.models.activity_log import ActivityAction, ResourceType
from secrets_manager.services.activity_service import ActivityRecorder, activity_recorder
from secrets_manager.services.authorization import (
    Action,
    Actor,
    AuthorizationService,
    Resource,
    authorization_service,
)

T = TypeVar("T")


@dataclass(frozen=True)
class ActivityEntry:
    """What to append to the activity trail once an operation succeeds."""
    action: ActivityAction
    resource_type: ResourceType
    resource_id: int
    details: Optional[str] = None


async def run_guarded(
    db: AsyncSession,
    actor: Actor,
    action: Union[Action, str],
    resource: Resource,
    operation: Callable[[], Awaitable[T]],
    describe: Callable[[T], Optional[ActivityEntry]],
    authorizer: AuthorizationService = authorization_service,
    recorder: ActivityRecorder = activity_recorder,
) -> T:
    """
    Run `operation` if `actor` may perform `action` on `resource`, then
    record the entry returned by `describe(result)`.

    Args:
        db: Database session
        actor: The caller
        action: Authorization action to check
        resource: Project-scoped target of the action
        operation: Zero-argument coroutine factory doing the actual work
        describe: Maps the operation result to an ActivityEntry, or None to skip logging

    Returns:
        Whatever `operation` returned

    Raises:
        PermissionDeniedError: before anything is mutated
        Any error raised by `operation`, in which case nothing is recorded
    """
    await authorizer.require(db, actor, action, resource)

    result = await operation()

    entry = describe(result)
    if entry is not None:
        await recorder.record(
            db,
            actor,
            entry.action,
            entry.resource_type,
            entry.resource_id,
            entry.details,
        )
    return result


def no_activity(_result) -> None:
    """`describe` for reads that are checked but not recorded."""
    return None
