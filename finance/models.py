# finance/models.py

# ✅ Import Django utilities for building models
from django.db import models                        # core Django ORM classes
from django.conf import settings                    # lets us reference the current User model safely
from django.core.validators import MinValueValidator # to make sure targets are not negative
from django.utils import timezone                   # local dates for aware datetimes
from decimal import Decimal                         # accurate money math

# ✅ Push state of a revenue entry towards Simplicate
SIMPLICATE_STATUSES = (
    ("pending", "Pending"),
    ("synced", "Synced"),
    ("failed", "Failed"),
)


class RevenueEntry(models.Model):
    """
    One time entry synced from the Notion hours database.
    Rows are created/updated only by the Notion sync (keyed by notion_page_id);
    locally, only the simplicate_* push fields ever change.
    """

    # ✅ Each entry belongs to a user (privacy boundary)
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="revenue_entries",
        help_text="Owner of this entry",
    )

    # ✅ Notion page id: the upsert key (unique per user)
    notion_page_id = models.CharField(max_length=64)

    description = models.TextField(null=True, blank=True)
    kilometers = models.DecimalField(max_digits=10, decimal_places=2, null=True, blank=True)
    minutes = models.DecimalField(max_digits=10, decimal_places=2, null=True, blank=True)
    hours = models.DecimalField(max_digits=10, decimal_places=2, null=True, blank=True)
    billable = models.BooleanField(default=True)
    start_time = models.DateTimeField(null=True, blank=True)
    end_time = models.DateTimeField(null=True, blank=True)
    break_minutes = models.DecimalField(max_digits=10, decimal_places=2, null=True, blank=True)

    # ✅ Dimensions used for filtering/grouping
    client = models.CharField(max_length=255, null=True, blank=True)
    type = models.CharField(max_length=255, null=True, blank=True)

    # ✅ Money (Decimal, 2dp)
    rate = models.DecimalField(max_digits=12, decimal_places=2, null=True, blank=True)
    revenue = models.DecimalField(max_digits=12, decimal_places=2, null=True, blank=True)
    tax_reservation = models.DecimalField(max_digits=12, decimal_places=2, null=True, blank=True)
    net_income = models.DecimalField(max_digits=12, decimal_places=2, null=True, blank=True)

    # ✅ Period labels as computed in Notion (kept for reference; analytics uses start_time)
    year = models.IntegerField(null=True, blank=True)
    quarter = models.CharField(max_length=10, null=True, blank=True)
    month = models.CharField(max_length=20, null=True, blank=True)
    month_number = models.IntegerField(null=True, blank=True)
    week = models.IntegerField(null=True, blank=True)

    synced_at = models.DateTimeField(auto_now=True)

    # ✅ Push bookkeeping (the only locally mutable fields)
    simplicate_id = models.CharField(max_length=64, null=True, blank=True)
    simplicate_synced_at = models.DateTimeField(null=True, blank=True)
    simplicate_status = models.CharField(max_length=10, choices=SIMPLICATE_STATUSES, null=True, blank=True)

    class Meta:
        ordering = ["-start_time", "-id"]                # newest first in lists
        verbose_name_plural = "Revenue entries"
        constraints = [
            models.UniqueConstraint(fields=["user", "notion_page_id"], name="uq_revenueentry_user_page"),
        ]

    def __str__(self):
        return f"{self.description or 'Entry'} • {self.client or '-'} • {self.revenue or 0}"

    @property
    def period_date(self):
        """The (local) date analytics buckets this entry on, None when unknown."""
        if self.start_time is None:
            return None
        if timezone.is_aware(self.start_time):
            return timezone.localtime(self.start_time).date()
        return self.start_time.date()


class CostEntry(models.Model):
    """One invoice line synced from the Notion costs database."""

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="cost_entries",
        help_text="Owner of this entry",
    )

    notion_page_id = models.CharField(max_length=64)

    name = models.CharField(max_length=255, blank=True, default="")
    vat = models.DecimalField(max_digits=12, decimal_places=2, null=True, blank=True)
    amount_excl_vat = models.DecimalField(max_digits=12, decimal_places=2, null=True, blank=True)
    invoice_date = models.DateField(null=True, blank=True)
    year = models.IntegerField(null=True, blank=True)
    quarter = models.CharField(max_length=10, null=True, blank=True)
    description = models.TextField(null=True, blank=True)
    vat_remarks = models.TextField(null=True, blank=True)
    vat_section = models.CharField(max_length=255, null=True, blank=True)

    synced_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-invoice_date", "-id"]
        verbose_name_plural = "Cost entries"
        constraints = [
            models.UniqueConstraint(fields=["user", "notion_page_id"], name="uq_costentry_user_page"),
        ]

    def __str__(self):
        return f"{self.name} • {self.amount_excl_vat or 0}"

    @property
    def period_date(self):
        return self.invoice_date


class RevenueTarget(models.Model):
    """An annual revenue goal. One per user per year."""

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="revenue_targets",
    )
    year = models.IntegerField()
    target_value = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        validators=[MinValueValidator(Decimal("0.00"))],   # a target can be 0, never negative
    )
    notes = models.TextField(blank=True, default="")

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        constraints = [
            models.UniqueConstraint(fields=["user", "year"], name="uq_revenuetarget_user_year"),
        ]
        ordering = ["-year"]

    def __str__(self):
        return f"{self.year}: {self.target_value}"
