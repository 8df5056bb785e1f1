from django.db import migrations, models


class Migration(migrations.Migration):
    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="Book",
            fields=[
                (
                    "id",
                    models.AutoField(
                        auto_created=True,
                        primary_key=True,
                        serialize=False,
                        verbose_name="ID",
                    ),
                ),
                ("created", models.DateTimeField(auto_now_add=True)),
                ("modified", models.DateTimeField(auto_now=True)),
                (
                    "gutenberg_id",
                    models.PositiveIntegerField(
                        help_text="Ebook number assigned by Project Gutenberg",
                        unique=True,
                    ),
                ),
                ("title", models.TextField()),
                (
                    "authors",
                    models.JSONField(
                        blank=True,
                        default=list,
                        help_text="List of {name, birth_year, death_year} objects",
                    ),
                ),
                (
                    "translators",
                    models.JSONField(
                        blank=True,
                        default=list,
                        help_text="List of {name, birth_year, death_year} objects",
                    ),
                ),
                ("type", models.CharField(default="Text", max_length=100)),
                (
                    "subjects",
                    models.JSONField(
                        blank=True,
                        default=list,
                        help_text="Library of Congress Subject Headings",
                    ),
                ),
                ("languages", models.JSONField(blank=True, default=list)),
                (
                    "formats",
                    models.JSONField(
                        blank=True,
                        default=list,
                        help_text="List of {content_type, url} objects",
                    ),
                ),
                (
                    "downloads",
                    models.PositiveIntegerField(
                        blank=True,
                        help_text="Download count; not populated by the catalog sync",
                        null=True,
                    ),
                ),
                ("book_shelves", models.JSONField(blank=True, default=list)),
                (
                    "copyright",
                    models.BooleanField(
                        blank=True,
                        help_text="False when public domain in the USA, True when "
                        "copyrighted, empty when the rights statement says neither",
                        null=True,
                    ),
                ),
            ],
            options={
                "db_table": "books",
                "ordering": ("gutenberg_id",),
            },
        ),
    ]
