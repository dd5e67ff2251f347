import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("invoicing", "0002_invoice_payment"),
        ("projects", "0001_initial"),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="CashFlow",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("flow_type", models.CharField(choices=[("INFLOW", "Inflow"), ("OUTFLOW", "Outflow")], max_length=10)),
                ("category", models.CharField(choices=[("OPERATING", "Operating"), ("INVESTING", "Investing"), ("FINANCING", "Financing")], default="OPERATING", max_length=10)),
                ("amount", models.DecimalField(decimal_places=2, max_digits=18)),
                ("date", models.DateField()),
                ("description", models.CharField(blank=True, default="", max_length=255)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("created_by", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="+", to=settings.AUTH_USER_MODEL)),
                ("payment", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, related_name="cash_flows", to="invoicing.payment")),
                ("project", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, related_name="cash_flows", to="projects.project")),
            ],
            options={
                "ordering": ["date", "id"],
                "indexes": [
                    models.Index(fields=["date", "category"], name="proj_cashflow_date_cat_idx"),
                ],
                "constraints": [
                    models.CheckConstraint(condition=models.Q(("amount__gt", 0)), name="chk_cashflow_amount_positive"),
                ],
            },
        ),
    ]
