"""
Download the Project Gutenberg catalog and upsert every work into the database.

Usage:
    python manage.py sync_gutenberg_catalog
    python manage.py sync_gutenberg_catalog --source-dir /data/cache/epub
    python manage.py sync_gutenberg_catalog --continue-on-error

Arguments:
    --url                Catalog archive to download
                         (default: CATALOG_SYNC["CATALOG_URL"]).
    --source-dir         Sync an already extracted record tree instead of
                         downloading the archive.
    --work-dir           Directory in which the temporary working directory
                         is created (default: CATALOG_SYNC["WORK_DIR"]).
    --continue-on-error  Log and skip records which cannot be parsed instead
                         of aborting the run.
    --database           Database alias to write to (default: "default").

The temporary working directory is removed whether the run succeeds or fails.
Any failure ends the command with a non-zero exit status.
"""

import os
import shutil
import tempfile
from argparse import ArgumentParser

from django.conf import settings
from django.core.management.base import BaseCommand, CommandError
from django.db import DEFAULT_DB_ALIAS
from django.utils.timezone import now

from catalog.acquisition import acquire_catalog
from catalog.exceptions import CatalogSyncError
from catalog.sync import store_connection, sync_directory
from elibro.logging import ElibroLogger

structured_logger = ElibroLogger.get_logger(__name__)


class Command(BaseCommand):
    help = "Download the Project Gutenberg catalog and upsert every work"  # NOQA: A003

    def add_arguments(self, parser: ArgumentParser) -> None:
        parser.add_argument(
            "--url",
            default=settings.CATALOG_SYNC["CATALOG_URL"],
            help="Catalog archive URL (default=%(default)s)",
        )
        parser.add_argument(
            "--source-dir",
            default=None,
            help="Sync an already extracted record tree instead of downloading",
        )
        parser.add_argument(
            "--work-dir",
            default=settings.CATALOG_SYNC["WORK_DIR"],
            help="Parent of the temporary working directory (default=%(default)s)",
        )
        parser.add_argument(
            "--continue-on-error",
            action="store_true",
            default=settings.CATALOG_SYNC["CONTINUE_ON_ERROR"],
            help="Skip records which cannot be parsed instead of aborting",
        )
        parser.add_argument(
            "--database",
            default=DEFAULT_DB_ALIAS,
            help="Database alias to write to (default=%(default)s)",
        )

    def handle(
        self,
        *,
        url: str,
        source_dir: str,
        work_dir: str,
        continue_on_error: bool,
        database: str,
        **options,
    ) -> None:
        self.stdout.write(
            "Starting Project Gutenberg catalog download, extraction and "
            "database upsert."
        )
        structured_logger.info(
            f"Process started at {now().isoformat()}",
            event_code="catalog_sync_started",
            url=url,
            source_dir=source_dir,
        )

        temp_dir = None
        try:
            if source_dir:
                if not os.path.isdir(source_dir):
                    raise CommandError(f"Source directory {source_dir} does not exist")
                record_root = source_dir
            else:
                temp_dir = tempfile.mkdtemp(prefix="elibro-catalog-", dir=work_dir)
                self.stdout.write("Downloading and extracting catalog...")
                record_root = acquire_catalog(temp_dir, url=url)
                self.stdout.write(
                    self.style.SUCCESS(
                        f"Catalog extraction completed at {now().isoformat()}"
                    )
                )

            self.stdout.write("Upserting database...")
            with store_connection(database):
                result = sync_directory(
                    record_root, using=database, continue_on_error=continue_on_error
                )
        except CatalogSyncError as exc:
            structured_logger.error(
                f"Process failed: {exc}",
                event_code="catalog_sync_failed",
                reason=str(exc),
                reason_code=exc.reason_code,
            )
            self.stderr.write(self.style.ERROR(f"Process failed: {exc}"))
            raise CommandError(f"Process failed: {exc}") from exc
        finally:
            if temp_dir:
                self.clean_up(temp_dir)

        self.stdout.write(
            self.style.SUCCESS(
                f"Database upserted at {now().isoformat()}: "
                f"{len(result.processed)} records processed, "
                f"{len(result.skipped)} directories skipped"
            )
        )
        if result.failed:
            self.stderr.write(
                self.style.WARNING(
                    f"{len(result.failed)} records failed: "
                    + ", ".join(map(str, result.failed))
                )
            )
        structured_logger.info(
            f"Process finished at {now().isoformat()}",
            event_code="catalog_sync_completed",
            sync_result=result,
        )

    def clean_up(self, temp_dir: str) -> None:
        """
        Remove the temporary working directory.

        Raises:
            CommandError: If the directory cannot be removed.
        """
        try:
            shutil.rmtree(temp_dir)
        except FileNotFoundError:
            return
        except OSError as exc:
            structured_logger.error(
                f"Failed to clean up temporary files: {exc}",
                event_code="catalog_cleanup_failed",
                reason=str(exc),
                reason_code="cleanup_failed",
                temp_dir=temp_dir,
            )
            raise CommandError(f"Failed to clean up temporary files: {exc}") from exc

        structured_logger.info(
            f"Temporary files cleaned up at {now().isoformat()}",
            event_code="catalog_cleanup_completed",
            temp_dir=temp_dir,
        )
