# projects/models.py
"""
Construction projects.

A project moving into COMPLETED recognizes its budget as revenue
(accounting.posting.PostingRules.post_project_completed). The resulting
entry is kept on revenue_entry.
"""

from decimal import Decimal

from django.conf import settings
from django.db import models
from django.db.models import Q


ZERO = Decimal("0.00")


class Project(models.Model):
    class Status(models.TextChoices):
        PLANNING = "PLANNING", "Planning"
        IN_PROGRESS = "IN_PROGRESS", "In Progress"
        ON_HOLD = "ON_HOLD", "On Hold"
        COMPLETED = "COMPLETED", "Completed"
        CANCELLED = "CANCELLED", "Cancelled"

    code = models.CharField(max_length=20, unique=True)
    name = models.CharField(max_length=255)
    description = models.TextField(blank=True, default="")
    location = models.CharField(max_length=255, blank=True, default="")
    customer = models.ForeignKey(
        "invoicing.Customer",
        null=True,
        blank=True,
        on_delete=models.PROTECT,
        related_name="projects",
    )

    start_date = models.DateField(null=True, blank=True)
    end_date = models.DateField(null=True, blank=True)

    budget = models.DecimalField(max_digits=18, decimal_places=2, default=ZERO)
    actual_cost = models.DecimalField(max_digits=18, decimal_places=2, default=ZERO)

    status = models.CharField(max_length=15, choices=Status.choices, default=Status.PLANNING)

    revenue_entry = models.OneToOneField(
        "accounting.JournalEntry",
        null=True,
        blank=True,
        on_delete=models.PROTECT,
        related_name="completed_project",
    )

    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        null=True,
        blank=True,
        on_delete=models.SET_NULL,
        related_name="created_projects",
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-created_at", "-id"]
        indexes = [
            models.Index(fields=["status"], name="prj_project_status_idx"),
        ]
        constraints = [
            models.CheckConstraint(condition=Q(budget__gte=0), name="chk_project_budget_non_negative"),
            models.CheckConstraint(condition=Q(actual_cost__gte=0), name="chk_project_cost_non_negative"),
        ]

    def __str__(self):
        return f"{self.code} - {self.name}"

    @property
    def is_completed(self) -> bool:
        return self.status == self.Status.COMPLETED

    @property
    def budget_utilization(self) -> Decimal:
        """Actual cost as a percentage of budget."""
        if not self.budget:
            return ZERO
        return (self.actual_cost / self.budget * 100).quantize(Decimal("0.01"))
