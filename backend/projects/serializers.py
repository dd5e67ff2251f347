# projects/serializers.py
from rest_framework import serializers

from .models import Project


class ProjectSerializer(serializers.ModelSerializer):
    customer_name = serializers.CharField(source="customer.name", read_only=True, default=None)
    revenue_entry_number = serializers.CharField(source="revenue_entry.entry_number", read_only=True, default=None)
    budget_utilization = serializers.DecimalField(max_digits=9, decimal_places=2, read_only=True)

    class Meta:
        model = Project
        fields = [
            "id", "code", "name", "description", "location",
            "customer", "customer_name", "start_date", "end_date",
            "budget", "actual_cost", "budget_utilization", "status",
            "revenue_entry_number", "created_at", "updated_at",
        ]
        read_only_fields = fields


class ProjectInputSerializer(serializers.Serializer):
    """Input for creating (full) or updating (partial) a project."""
    code = serializers.CharField(max_length=20, required=False)
    name = serializers.CharField(max_length=255)
    description = serializers.CharField(required=False, allow_blank=True)
    location = serializers.CharField(max_length=255, required=False, allow_blank=True)
    customer_id = serializers.IntegerField(required=False, allow_null=True)
    start_date = serializers.DateField(required=False, allow_null=True)
    end_date = serializers.DateField(required=False, allow_null=True)
    budget = serializers.DecimalField(max_digits=18, decimal_places=2, min_value=0, required=False)
    actual_cost = serializers.DecimalField(max_digits=18, decimal_places=2, min_value=0, required=False)
    status = serializers.ChoiceField(choices=Project.Status.choices, required=False)
    completion_date = serializers.DateField(required=False, write_only=True)
