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
            name="NotionConnection",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("database_id", models.CharField(blank=True, default="", max_length=64)),
                ("costs_database_id", models.CharField(blank=True, default="", max_length=64)),
                ("last_sync_at", models.DateTimeField(blank=True, null=True)),
                ("costs_last_sync_at", models.DateTimeField(blank=True, null=True)),
                (
                    "user",
                    models.OneToOneField(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="notion_connection",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
        ),
        migrations.CreateModel(
            name="SimplicateConnection",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("subdomain", models.CharField(max_length=100)),
                ("api_key", models.CharField(blank=True, default="", max_length=255)),
                ("api_secret", models.CharField(blank=True, default="", max_length=255)),
                ("employee_id", models.CharField(blank=True, default="", max_length=64)),
                (
                    "user",
                    models.OneToOneField(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="simplicate_connection",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
        ),
        migrations.CreateModel(
            name="SimplicateMapping",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("notion_value", models.CharField(max_length=255)),
                ("simplicate_id", models.CharField(max_length=64)),
                (
                    "mapping_type",
                    models.CharField(choices=[("project", "Project"), ("hourtype", "Hour type")], max_length=10),
                ),
                (
                    "user",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="simplicate_mappings",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "ordering": ["mapping_type", "notion_value"],
                "constraints": [
                    models.UniqueConstraint(
                        fields=("user", "notion_value", "mapping_type"), name="uq_mapping_user_value_type"
                    ),
                ],
            },
        ),
    ]
