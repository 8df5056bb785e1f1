import os
from contextlib import contextmanager
from dataclasses import dataclass, field

from django.conf import settings
from django.db import DEFAULT_DB_ALIAS, DatabaseError, connections
from django.utils.connection import ConnectionDoesNotExist
from django.utils.timezone import now

from elibro.logging import ElibroLogger

from .exceptions import AcquisitionError, MappingError, ParseError, StorageError
from .mapper import map_record_to_book_fields
from .models import Book
from .rdf import parse_record

structured_logger = ElibroLogger.get_logger(__name__)


@dataclass
class SyncResult:
    """
    What happened to each directory of the record tree during one run.
    """

    processed: list = field(default_factory=list)
    skipped: list = field(default_factory=list)
    failed: list = field(default_factory=list)


@contextmanager
def store_connection(using=DEFAULT_DB_ALIAS):
    """
    Open the database connection named ``using`` for the duration of the block
    and close it on the way out, whether or not the block raised.

    Raises:
        StorageError: If ``using`` is not a configured alias or the connection
            cannot be opened.
    """
    try:
        connection = connections[using]
    except ConnectionDoesNotExist as exc:
        raise StorageError(f"Unknown database {using!r}") from exc

    try:
        connection.ensure_connection()
    except DatabaseError as exc:
        raise StorageError(f"Unable to connect to database {using!r}: {exc}") from exc

    try:
        yield connection
    finally:
        connection.close()


def is_record_directory(name):
    """
    Record directories are named with the work's decimal ebook number.
    """
    return name.isascii() and name.isdigit()


def list_subdirectories(root):
    """
    Return the sorted names of the directories directly inside ``root``.

    Raises:
        AcquisitionError: If the record tree cannot be listed.
    """
    try:
        names = os.listdir(root)
    except OSError as exc:
        raise AcquisitionError(f"Unable to list record tree {root}: {exc}") from exc
    return sorted(name for name in names if os.path.isdir(os.path.join(root, name)))


def record_path(root, name):
    return os.path.join(root, name, f"pg{name}.rdf")


def upsert_book(fields, *, using=DEFAULT_DB_ALIAS):
    """
    Create or fully overwrite the ``Book`` with ``fields["gutenberg_id"]``.

    Fields not present in ``fields`` keep their model defaults on insert and
    their current values on update.

    Raises:
        StorageError: If the database rejects the write.
    """
    defaults = {k: v for k, v in fields.items() if k != "gutenberg_id"}
    try:
        return Book.objects.using(using).update_or_create(
            gutenberg_id=fields["gutenberg_id"], defaults=defaults
        )
    except DatabaseError as exc:
        raise StorageError(
            f"Unable to store book {fields['gutenberg_id']}: {exc}"
        ) from exc


def sync_record(root, name, *, using=DEFAULT_DB_ALIAS):
    """
    Parse, map and upsert the record stored in the ``name`` directory of ``root``.
    """
    record = parse_record(name, record_path(root, name))
    record_logger = structured_logger.bind(book=record)
    fields = map_record_to_book_fields(record)
    book, created = upsert_book(fields, using=using)
    record_logger.debug(
        "Record stored.", event_code="catalog_record_stored", created=created
    )
    return book


def sync_directory(root, *, using=DEFAULT_DB_ALIAS, continue_on_error=None):
    """
    Upsert every record in the record tree at ``root``, one at a time.

    Directories whose names are not ebook numbers are skipped. By default the
    first record that fails aborts the run, leaving the remaining directories
    unprocessed. With ``continue_on_error`` a record that cannot be parsed or
    mapped is logged and counted instead; storage failures always abort.

    Args:
        root: Directory holding one subdirectory per work.
        using: Database alias to write to.
        continue_on_error: Overrides ``CATALOG_SYNC["CONTINUE_ON_ERROR"]``.

    Returns:
        SyncResult
    """
    if continue_on_error is None:
        continue_on_error = settings.CATALOG_SYNC["CONTINUE_ON_ERROR"]

    result = SyncResult()

    structured_logger.info(
        "Upserting catalog records.", event_code="catalog_upsert_started", root=root
    )

    for name in list_subdirectories(root):
        if not is_record_directory(name):
            structured_logger.debug(
                "Skipping directory which is not a record.",
                event_code="catalog_record_skipped",
                directory=name,
            )
            result.skipped.append(name)
            continue

        try:
            sync_record(root, name, using=using)
        except (ParseError, MappingError) as exc:
            if not continue_on_error:
                raise
            structured_logger.warning(
                "Record could not be synchronized.",
                event_code="catalog_record_failed",
                reason=str(exc),
                reason_code=exc.reason_code,
                gutenberg_id=int(name),
            )
            result.failed.append(int(name))
            continue

        result.processed.append(int(name))

    structured_logger.info(
        f"Catalog upserted successfully at {now().isoformat()}",
        event_code="catalog_upsert_completed",
        sync_result=result,
    )
    return result
