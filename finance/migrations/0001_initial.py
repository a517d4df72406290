import decimal

import django.core.validators
import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="RevenueEntry",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("notion_page_id", models.CharField(max_length=64)),
                ("description", models.TextField(blank=True, null=True)),
                ("kilometers", models.DecimalField(blank=True, decimal_places=2, max_digits=10, null=True)),
                ("minutes", models.DecimalField(blank=True, decimal_places=2, max_digits=10, null=True)),
                ("hours", models.DecimalField(blank=True, decimal_places=2, max_digits=10, null=True)),
                ("billable", models.BooleanField(default=True)),
                ("start_time", models.DateTimeField(blank=True, null=True)),
                ("end_time", models.DateTimeField(blank=True, null=True)),
                ("break_minutes", models.DecimalField(blank=True, decimal_places=2, max_digits=10, null=True)),
                ("client", models.CharField(blank=True, max_length=255, null=True)),
                ("type", models.CharField(blank=True, max_length=255, null=True)),
                ("rate", models.DecimalField(blank=True, decimal_places=2, max_digits=12, null=True)),
                ("revenue", models.DecimalField(blank=True, decimal_places=2, max_digits=12, null=True)),
                ("tax_reservation", models.DecimalField(blank=True, decimal_places=2, max_digits=12, null=True)),
                ("net_income", models.DecimalField(blank=True, decimal_places=2, max_digits=12, null=True)),
                ("year", models.IntegerField(blank=True, null=True)),
                ("quarter", models.CharField(blank=True, max_length=10, null=True)),
                ("month", models.CharField(blank=True, max_length=20, null=True)),
                ("month_number", models.IntegerField(blank=True, null=True)),
                ("week", models.IntegerField(blank=True, null=True)),
                ("synced_at", models.DateTimeField(auto_now=True)),
                ("simplicate_id", models.CharField(blank=True, max_length=64, null=True)),
                ("simplicate_synced_at", models.DateTimeField(blank=True, null=True)),
                (
                    "simplicate_status",
                    models.CharField(
                        blank=True,
                        choices=[("pending", "Pending"), ("synced", "Synced"), ("failed", "Failed")],
                        max_length=10,
                        null=True,
                    ),
                ),
                (
                    "user",
                    models.ForeignKey(
                        help_text="Owner of this entry",
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="revenue_entries",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "verbose_name_plural": "Revenue entries",
                "constraints": [
                    models.UniqueConstraint(fields=("user", "notion_page_id"), name="uq_revenueentry_user_page"),
                ],
                "ordering": ["-start_time", "-id"],
            },
        ),
        migrations.CreateModel(
            name="CostEntry",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("notion_page_id", models.CharField(max_length=64)),
                ("name", models.CharField(blank=True, default="", max_length=255)),
                ("vat", models.DecimalField(blank=True, decimal_places=2, max_digits=12, null=True)),
                ("amount_excl_vat", models.DecimalField(blank=True, decimal_places=2, max_digits=12, null=True)),
                ("invoice_date", models.DateField(blank=True, null=True)),
                ("year", models.IntegerField(blank=True, null=True)),
                ("quarter", models.CharField(blank=True, max_length=10, null=True)),
                ("description", models.TextField(blank=True, null=True)),
                ("vat_remarks", models.TextField(blank=True, null=True)),
                ("vat_section", models.CharField(blank=True, max_length=255, null=True)),
                ("synced_at", models.DateTimeField(auto_now=True)),
                (
                    "user",
                    models.ForeignKey(
                        help_text="Owner of this entry",
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="cost_entries",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "verbose_name_plural": "Cost entries",
                "constraints": [
                    models.UniqueConstraint(fields=("user", "notion_page_id"), name="uq_costentry_user_page"),
                ],
                "ordering": ["-invoice_date", "-id"],
            },
        ),
        migrations.CreateModel(
            name="RevenueTarget",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("year", models.IntegerField()),
                (
                    "target_value",
                    models.DecimalField(
                        decimal_places=2,
                        max_digits=12,
                        validators=[django.core.validators.MinValueValidator(decimal.Decimal("0.00"))],
                    ),
                ),
                ("notes", models.TextField(blank=True, default="")),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "user",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="revenue_targets",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "ordering": ["-year"],
                "constraints": [
                    models.UniqueConstraint(fields=("user", "year"), name="uq_revenuetarget_user_year"),
                ],
            },
        ),
    ]
