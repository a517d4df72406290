# integrations/forms.py
# ✅ Settings + mapping forms for the external systems.

from django import forms
from django.forms import ModelForm

from .models import NotionConnection, SimplicateMapping


class NotionSettingsForm(ModelForm):
    """Edits only the database ids on the user's Notion connection."""

    class Meta:
        model = NotionConnection
        fields = ["database_id", "costs_database_id"]

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.fields["database_id"].label = "Hours database"
        self.fields["costs_database_id"].label = "Costs database"

    def clean(self):
        cleaned = super().clean()
        for name in ("database_id", "costs_database_id"):
            cleaned[name] = (cleaned.get(name) or "").strip().replace("-", "")   # Notion accepts both forms
        return cleaned


class NotionValidateForm(forms.Form):
    database_id = forms.CharField(max_length=64)
    kind = forms.ChoiceField(choices=[("revenue", "Hours"), ("costs", "Costs")], required=False)


class SimplicateSettingsForm(forms.Form):
    """
    Subdomain is required; credentials may be left out to keep the stored ones.
    The subdomain is the part before .simplicate.nl.
    """

    subdomain = forms.SlugField(max_length=100)
    api_key = forms.CharField(max_length=255, required=False)
    api_secret = forms.CharField(max_length=255, required=False)
    employee_id = forms.CharField(max_length=64, required=False)

    def clean_subdomain(self):
        return self.cleaned_data["subdomain"].strip().lower()

    def credentials(self):
        """Only the optional fields that were actually filled in."""
        return {
            name: self.cleaned_data[name].strip()
            for name in ("api_key", "api_secret", "employee_id")
            if self.cleaned_data.get(name)
        }


class MappingForm(forms.Form):
    notion_value = forms.CharField(max_length=255)
    simplicate_id = forms.CharField(max_length=64, required=False)
    mapping_type = forms.ChoiceField(choices=SimplicateMapping.MAPPING_TYPES)


class EntryIdsForm(forms.Form):
    """{"entry_ids": [1, 2, 3]} → list of ints (at least one)."""

    entry_ids = forms.JSONField()

    def clean_entry_ids(self):
        ids = self.cleaned_data.get("entry_ids")
        if not isinstance(ids, list) or not ids:
            raise forms.ValidationError("Give at least one entry id.")
        try:
            return [int(i) for i in ids if not isinstance(i, bool)]
        except (TypeError, ValueError):
            raise forms.ValidationError("Entry ids must be numbers.")
