# integrations/models.py

# ✅ Per-user settings for the external systems
from django.db import models                        # core Django ORM classes
from django.conf import settings                    # current User model


class NotionConnection(models.Model):
    """Which Notion databases hold the user's hours and costs."""

    user = models.OneToOneField(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="notion_connection",
    )
    database_id = models.CharField(max_length=64, blank=True, default="")         # hours database
    costs_database_id = models.CharField(max_length=64, blank=True, default="")   # costs database
    last_sync_at = models.DateTimeField(null=True, blank=True)
    costs_last_sync_at = models.DateTimeField(null=True, blank=True)

    def __str__(self):
        return f"Notion • {self.user}"


class SimplicateConnection(models.Model):
    """API credentials for the user's Simplicate environment."""

    user = models.OneToOneField(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="simplicate_connection",
    )
    subdomain = models.CharField(max_length=100)                 # https://<subdomain>.simplicate.nl
    api_key = models.CharField(max_length=255, blank=True, default="")
    api_secret = models.CharField(max_length=255, blank=True, default="")
    employee_id = models.CharField(max_length=64, blank=True, default="")

    def __str__(self):
        return f"Simplicate ({self.subdomain}) • {self.user}"

    @property
    def has_credentials(self):
        return bool(self.subdomain and self.api_key and self.api_secret)


class SimplicateMapping(models.Model):
    """
    Translates a Notion value into a Simplicate id:
      • project  → Notion client name  → Simplicate project id
      • hourtype → Notion entry type   → Simplicate hour type id
    """

    PROJECT = "project"
    HOURTYPE = "hourtype"
    MAPPING_TYPES = (
        (PROJECT, "Project"),
        (HOURTYPE, "Hour type"),
    )

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="simplicate_mappings",
    )
    notion_value = models.CharField(max_length=255)
    simplicate_id = models.CharField(max_length=64)
    mapping_type = models.CharField(max_length=10, choices=MAPPING_TYPES)

    class Meta:
        constraints = [
            models.UniqueConstraint(
                fields=["user", "notion_value", "mapping_type"],
                name="uq_mapping_user_value_type",
            ),
        ]
        ordering = ["mapping_type", "notion_value"]

    def __str__(self):
        return f"{self.get_mapping_type_display()}: {self.notion_value} → {self.simplicate_id}"
