# projects/commands.py
"""
Command layer for projects.

update_project is where revenue recognition happens: a status change into
COMPLETED posts the budget as revenue (AR against Service Revenue) in the
same transaction as the status update.
"""

import logging
import uuid
from decimal import Decimal, InvalidOperation

from django.utils import timezone

from accounts.authz import ActorContext, require
from accounting.commands import (
    CommandResult,
    emit_entry_created,
    ledger_transaction,
    track_changes,
)
from accounting.exceptions import (
    DuplicateCode,
    InvalidTransition,
    LedgerError,
    LedgerValidationError,
    NotFound,
)
from accounting.journal import next_code
from accounting.posting import PostingRules
from events.emitter import emit_event
from events.types import (
    EventTypes,
    ProjectCreatedData,
    ProjectUpdatedData,
    ProjectCompletedData,
)
from projects.models import Project, ZERO
from projects.policies import can_change_budget, can_change_project_status


logger = logging.getLogger(__name__)

UPDATABLE_FIELDS = {
    "name", "description", "location", "customer_id", "start_date",
    "end_date", "budget", "actual_cost", "status",
}


def _amount(value, label: str) -> Decimal:
    try:
        amount = Decimal(str(value if value not in (None, "") else "0"))
    except InvalidOperation:
        raise LedgerValidationError(f"{label} is not a valid amount.")
    if not amount.is_finite() or amount < 0:
        raise LedgerValidationError(f"{label} must be a non-negative amount.")
    return amount


def _check_customer(customer_id):
    if customer_id is None:
        return
    from invoicing.models import Customer
    if not Customer.objects.filter(pk=customer_id).exists():
        raise NotFound("Customer not found.")


def _check_dates(start_date, end_date):
    if start_date and end_date and end_date < start_date:
        raise LedgerValidationError("End date cannot be before the start date.")


def create_project(
    actor: ActorContext,
    name: str,
    budget=ZERO,
    code: str = None,
    description: str = "",
    location: str = "",
    customer_id: int = None,
    start_date=None,
    end_date=None,
    actual_cost=ZERO,
    status: str = Project.Status.PLANNING,
) -> CommandResult:
    """
    Create a project. A code like PRJ-00001 is allocated when omitted.

    Projects cannot be created already COMPLETED; completion must go
    through update_project so revenue is recognized.
    """
    require(actor, "projects.manage")

    try:
        with ledger_transaction():
            if status not in Project.Status.values:
                raise LedgerValidationError(f"Invalid project status '{status}'.")
            if status == Project.Status.COMPLETED:
                raise InvalidTransition("A project cannot be created as COMPLETED.")

            budget = _amount(budget, "Budget")
            actual_cost = _amount(actual_cost, "Actual cost")
            _check_customer(customer_id)
            _check_dates(start_date, end_date)

            code = code or next_code("PRJ")
            if Project.objects.filter(code=code).exists():
                raise DuplicateCode(f"Project code '{code}' already exists.", code=code)

            project = Project.objects.create(
                code=code,
                name=name,
                description=description or "",
                location=location or "",
                customer_id=customer_id,
                start_date=start_date,
                end_date=end_date,
                budget=budget,
                actual_cost=actual_cost,
                status=status,
                created_by=actor.user,
            )

            event = emit_event(
                actor=actor,
                event_type=EventTypes.PROJECT_CREATED,
                aggregate_type="Project",
                aggregate_id=project.pk,
                idempotency_key=f"project.created:{project.pk}",
                data=ProjectCreatedData(
                    project_id=project.pk,
                    code=project.code,
                    name=project.name,
                    status=project.status,
                    budget=str(project.budget),
                    customer_id=project.customer_id,
                ).to_dict(),
            )
    except LedgerError as exc:
        return CommandResult.from_exception(exc)

    return CommandResult.ok(project, event=event)


def update_project(
    actor: ActorContext,
    project_id: int,
    rules: PostingRules = None,
    completion_date=None,
    **updates,
) -> CommandResult:
    """
    Update a project.

    A transition into COMPLETED posts the revenue recognition entry dated
    completion_date (today by default). A missing posting account aborts
    the whole update. Leaving COMPLETED is rejected.

    Returns:
        CommandResult with the updated Project or error
    """
    require(actor, "projects.manage")
    rules = rules or PostingRules.from_settings()

    try:
        with ledger_transaction():
            try:
                project = Project.objects.select_for_update().get(pk=project_id)
            except Project.DoesNotExist:
                raise NotFound("Project not found.")

            new_status = updates.get("status", project.status)
            if new_status not in Project.Status.values:
                raise LedgerValidationError(f"Invalid project status '{new_status}'.")

            allowed, reason = can_change_project_status(actor, project, new_status)
            if not allowed:
                raise InvalidTransition(reason)

            if "budget" in updates:
                updates["budget"] = _amount(updates["budget"], "Budget")
                if updates["budget"] != project.budget:
                    allowed, reason = can_change_budget(actor, project)
                    if not allowed:
                        raise InvalidTransition(reason)
            if "actual_cost" in updates:
                updates["actual_cost"] = _amount(updates["actual_cost"], "Actual cost")
            if "customer_id" in updates:
                _check_customer(updates["customer_id"])

            _check_dates(
                updates.get("start_date", project.start_date),
                updates.get("end_date", project.end_date),
            )

            completing = (
                new_status == Project.Status.COMPLETED
                and project.status != Project.Status.COMPLETED
            )

            changes = track_changes(project, updates, UPDATABLE_FIELDS)
            if not changes:
                return CommandResult.ok(project)

            project.save()

            event = emit_event(
                actor=actor,
                event_type=EventTypes.PROJECT_UPDATED,
                aggregate_type="Project",
                aggregate_id=project.pk,
                idempotency_key=f"project.updated:{project.pk}:{uuid.uuid4()}",
                data=ProjectUpdatedData(
                    project_id=project.pk,
                    code=project.code,
                    changes=changes,
                ).to_dict(),
            )

            if completing:
                entry = rules.post_project_completed(
                    actor, project, completion_date or timezone.localdate(),
                )
                if entry is not None:
                    project.revenue_entry = entry
                    project.save(update_fields=["revenue_entry", "updated_at"])
                    emit_entry_created(actor, entry)

                event = emit_event(
                    actor=actor,
                    event_type=EventTypes.PROJECT_COMPLETED,
                    aggregate_type="Project",
                    aggregate_id=project.pk,
                    idempotency_key=f"project.completed:{project.pk}",
                    data=ProjectCompletedData(
                        project_id=project.pk,
                        code=project.code,
                        budget=str(project.budget),
                        entry_number=entry.entry_number if entry else None,
                    ).to_dict(),
                )

                logger.info(
                    "Project completed",
                    extra={
                        "project_code": project.code,
                        "entry_number": entry.entry_number if entry else None,
                    },
                )
    except LedgerError as exc:
        return CommandResult.from_exception(exc)

    return CommandResult.ok(project, event=event)
