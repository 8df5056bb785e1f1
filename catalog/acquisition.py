import os
import tarfile
from logging import getLogger

import requests
from django.conf import settings
from django.utils.timezone import now

from elibro.logging import ElibroLogger

from .exceptions import AcquisitionError

logger = getLogger(__name__)
structured_logger = ElibroLogger.get_logger(__name__)

DOWNLOAD_CHUNK_SIZE = 256 * 1024


def download_archive(url, archive_path, *, timeout=None):
    """
    Stream the catalog archive at ``url`` into ``archive_path``.

    Raises:
        AcquisitionError: If the request fails, the server returns an error
            status or the file cannot be written.
    """
    if timeout is None:
        timeout = settings.CATALOG_SYNC["DOWNLOAD_TIMEOUT"]

    structured_logger.info(
        "Downloading catalog.", event_code="catalog_download_started", url=url
    )
    try:
        resp = requests.get(url, stream=True, timeout=timeout)
        resp.raise_for_status()
        with open(archive_path, "wb") as archive_file:
            for chunk in resp.iter_content(chunk_size=DOWNLOAD_CHUNK_SIZE):
                archive_file.write(chunk)
    except (requests.RequestException, OSError) as exc:
        logger.exception("Unable to download %s to %s", url, archive_path)
        raise AcquisitionError(
            f"Unable to download {url} to {archive_path}: {exc}"
        ) from exc

    structured_logger.info(
        f"Catalog downloaded successfully at {now().isoformat()}",
        event_code="catalog_download_completed",
        url=url,
        archive_path=archive_path,
    )
    return archive_path


def extract_archive(archive_path, destination):
    """
    Extract the tar archive at ``archive_path`` (any compression tarfile
    understands, bzip2 for the published catalog) into ``destination``.
    The ``data`` filter rejects members that would land outside
    ``destination``, links pointing outside it and device files.

    Raises:
        AcquisitionError: If the archive is unreadable or extraction fails.
    """
    structured_logger.info(
        "Extracting catalog.",
        event_code="catalog_extract_started",
        archive_path=archive_path,
    )
    try:
        with tarfile.open(archive_path, mode="r:*") as archive:
            archive.extractall(destination, filter="data")
    except (tarfile.TarError, EOFError, OSError) as exc:
        logger.exception("Unable to extract %s into %s", archive_path, destination)
        raise AcquisitionError(
            f"Unable to extract {archive_path} into {destination}: {exc}"
        ) from exc

    structured_logger.info(
        f"Catalog extraction completed successfully at {now().isoformat()}",
        event_code="catalog_extract_completed",
        destination=destination,
    )
    return destination


def acquire_catalog(work_dir, *, url=None, timeout=None):
    """
    Download and extract the catalog archive into ``work_dir``.

    Returns:
        The path of the record tree inside ``work_dir``, which holds one
        directory per work.

    Raises:
        AcquisitionError: If any step fails or the extracted archive does not
            contain the record tree.
    """
    catalog_settings = settings.CATALOG_SYNC
    if url is None:
        url = catalog_settings["CATALOG_URL"]

    os.makedirs(work_dir, exist_ok=True)
    archive_path = os.path.join(work_dir, catalog_settings["ARCHIVE_NAME"])

    download_archive(url, archive_path, timeout=timeout)
    extract_archive(archive_path, work_dir)

    cache_path = os.path.join(work_dir, *catalog_settings["CACHE_FOLDER"].split("/"))
    if not os.path.isdir(cache_path):
        structured_logger.error(
            "Upsert failed: cache folder does not exist.",
            event_code="catalog_extract_failed",
            reason=f"The archive did not contain {catalog_settings['CACHE_FOLDER']}",
            reason_code="cache_folder_missing",
            cache_path=cache_path,
        )
        raise AcquisitionError(f"Cache folder {cache_path} does not exist")

    return cache_path
