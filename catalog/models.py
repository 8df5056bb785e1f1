from django.db import models


class Book(models.Model):
    """
    One Project Gutenberg work, as last seen in the catalog.

    Rows are created and fully overwritten by the catalog sync job; see the
    ``catalog`` module docstring.
    """

    created = models.DateTimeField(auto_now_add=True)
    modified = models.DateTimeField(auto_now=True)

    gutenberg_id = models.PositiveIntegerField(
        unique=True, help_text="Ebook number assigned by Project Gutenberg"
    )
    title = models.TextField()
    authors = models.JSONField(
        default=list,
        blank=True,
        help_text="List of {name, birth_year, death_year} objects",
    )
    translators = models.JSONField(
        default=list,
        blank=True,
        help_text="List of {name, birth_year, death_year} objects",
    )
    type = models.CharField(max_length=100, default="Text")  # NOQA: A003
    subjects = models.JSONField(
        default=list, blank=True, help_text="Library of Congress Subject Headings"
    )
    languages = models.JSONField(default=list, blank=True)
    formats = models.JSONField(
        default=list, blank=True, help_text="List of {content_type, url} objects"
    )
    downloads = models.PositiveIntegerField(
        null=True,
        blank=True,
        help_text="Download count; not populated by the catalog sync",
    )
    book_shelves = models.JSONField(default=list, blank=True)
    copyright = models.BooleanField(
        null=True,
        blank=True,
        help_text="False when public domain in the USA, True when copyrighted, "
        "empty when the rights statement says neither",
    )

    class Meta:
        db_table = "books"
        ordering = ("gutenberg_id",)

    def __str__(self):
        return f"{self.gutenberg_id}: {self.title}"
