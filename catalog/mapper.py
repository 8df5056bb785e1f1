"""
Project parsed ``WorkRecord`` objects onto the fields of the ``Book`` model.
"""

from dataclasses import asdict

from .exceptions import MappingError

#: Model fields written by the sync job. ``downloads`` is never written.
MAPPED_FIELDS = (
    "gutenberg_id",
    "title",
    "authors",
    "translators",
    "type",
    "subjects",
    "languages",
    "formats",
    "book_shelves",
    "copyright",
)


def map_record_to_book_fields(record):
    """
    Return a dict of ``Book`` field values for ``record``.

    Nested people and formats become plain dicts so they can be stored in
    JSON fields. The record's ``bookshelves`` are stored as ``book_shelves``.

    Raises:
        MappingError: If ``record`` is None or otherwise empty, or has no
            title. ``Book.title`` is required.
    """
    if not record:
        raise MappingError("A parsed record is required")
    if record.title is None:
        raise MappingError(f"The record {record.gutenberg_id} has no title")

    return {
        "gutenberg_id": record.gutenberg_id,
        "title": record.title,
        "authors": [asdict(person) for person in record.authors],
        "translators": [asdict(person) for person in record.translators],
        "type": record.type,
        "subjects": list(record.subjects),
        "languages": list(record.languages),
        "formats": [asdict(book_format) for book_format in record.formats],
        "book_shelves": list(record.bookshelves),
        "copyright": record.copyright,
    }
