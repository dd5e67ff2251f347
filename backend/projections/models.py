# projections/models.py
"""
Read model inputs.

CashFlow is an append-only log of cash movements. Payments append to it
inside the same transaction that posts their journal entry; the cash flow
statement sums it by category. Rows are never updated or deleted.
"""

from decimal import Decimal

from django.conf import settings
from django.db import models
from django.db.models import Q


class CashFlow(models.Model):
    class FlowType(models.TextChoices):
        INFLOW = "INFLOW", "Inflow"
        OUTFLOW = "OUTFLOW", "Outflow"

    class Category(models.TextChoices):
        OPERATING = "OPERATING", "Operating"
        INVESTING = "INVESTING", "Investing"
        FINANCING = "FINANCING", "Financing"

    flow_type = models.CharField(max_length=10, choices=FlowType.choices)
    category = models.CharField(max_length=10, choices=Category.choices, default=Category.OPERATING)
    amount = models.DecimalField(max_digits=18, decimal_places=2)
    date = models.DateField()
    description = models.CharField(max_length=255, blank=True, default="")

    payment = models.ForeignKey(
        "invoicing.Payment",
        null=True,
        blank=True,
        on_delete=models.PROTECT,
        related_name="cash_flows",
    )
    project = models.ForeignKey(
        "projects.Project",
        null=True,
        blank=True,
        on_delete=models.PROTECT,
        related_name="cash_flows",
    )

    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        null=True,
        blank=True,
        on_delete=models.SET_NULL,
        related_name="+",
    )
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["date", "id"]
        indexes = [
            models.Index(fields=["date", "category"], name="proj_cashflow_date_cat_idx"),
        ]
        constraints = [
            models.CheckConstraint(condition=Q(amount__gt=0), name="chk_cashflow_amount_positive"),
        ]

    def __str__(self):
        return f"{self.date} {self.flow_type} {self.amount} ({self.category})"

    @property
    def signed_amount(self) -> Decimal:
        return self.amount if self.flow_type == self.FlowType.INFLOW else -self.amount

    def save(self, *args, **kwargs):
        if not self._state.adding:
            raise ValueError("Cash flow records are append-only and cannot be modified.")
        super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise ValueError("Cash flow records are append-only and cannot be deleted.")
