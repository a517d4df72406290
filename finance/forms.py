# finance/forms.py
# ─────────────────────────────────────────────────────────────────────────────
# All the forms for the Finance app live here.
#   1) TargetForm     – create/update the yearly revenue target (one per user+year)
#   2) EntryQueryForm – validates the query-string knobs of the analytics views
#   3) PacingForm     – EntryQueryForm plus the period/target/date of the pacing view
# ─────────────────────────────────────────────────────────────────────────────

from django import forms

from .analytics import GROUPINGS
from .models import RevenueTarget


class TargetForm(forms.ModelForm):
    """
    Upsert form for RevenueTarget.
    The view passes `user=request.user`; saving updates the existing row for
    that (user, year) instead of failing on the unique constraint.
    """

    class Meta:
        model  = RevenueTarget
        fields = ["year", "target_value", "notes"]

    def __init__(self, *args, **kwargs):
        self.user = kwargs.pop("user", None)                           # ← owner of the target
        super().__init__(*args, **kwargs)
        self.fields["notes"].required = False

    def clean_year(self):
        year = self.cleaned_data.get("year")
        if year is not None and not 2000 <= year <= 2100:
            raise forms.ValidationError("Pick a year between 2000 and 2100.")
        return year

    def save(self, commit=True):
        """Create or update the target for (user, year)."""
        target, _ = RevenueTarget.objects.update_or_create(
            user=self.user,
            year=self.cleaned_data["year"],
            defaults={
                "target_value": self.cleaned_data["target_value"],
                "notes": self.cleaned_data.get("notes") or "",
            },
        )
        return target


class EntryQueryForm(forms.Form):
    """Query-string options shared by the revenue/cost analytics endpoints."""

    METRIC_CHOICES = [
        ("revenue", "Revenue"),
        ("net_income", "Net income"),
        ("hours", "Hours"),
    ]

    date_from = forms.DateField(required=False)
    date_to = forms.DateField(required=False)
    group_by = forms.ChoiceField(choices=[(g, g) for g in GROUPINGS], required=False)
    metric = forms.ChoiceField(choices=METRIC_CHOICES, required=False)
    billable = forms.NullBooleanField(required=False)
    cumulative = forms.BooleanField(required=False)
    moving_average = forms.IntegerField(required=False, min_value=0, max_value=24)
    limit = forms.IntegerField(required=False, min_value=1, max_value=1000)


class PacingForm(EntryQueryForm):
    """Pacing needs a target; ?date= picks the period (today when omitted)."""

    PERIOD_CHOICES = [("year", "Year"), ("quarter", "Quarter"), ("month", "Month")]

    period = forms.ChoiceField(choices=PERIOD_CHOICES, required=False)
    target = forms.DecimalField(min_value=0, max_digits=14, decimal_places=2)
    date = forms.DateField(required=False)
