class CatalogSyncError(Exception):
    """
    Base class for every failure that terminates a catalog synchronization run.
    """

    reason_code = "catalog_sync_error"


class AcquisitionError(CatalogSyncError):
    """
    Raised when the catalog archive cannot be downloaded or extracted, or when
    the extracted archive does not contain the expected record tree.
    """

    reason_code = "acquisition_error"


class ParseError(CatalogSyncError):
    """
    Raised when a record document cannot be read, is not well-formed XML, or
    does not contain an ebook description.

    Args:
        message: Human-readable description of the problem.
        path: The record document that failed, if known.
    """

    reason_code = "record_parse_error"

    def __init__(self, message, path=None):
        super().__init__(message)
        self.path = path


class MissingRequiredFieldError(ParseError):
    """
    Raised when a record document lacks an element every record must have,
    such as the rights statement.
    """

    reason_code = "record_missing_field"

    def __init__(self, message, path=None, field=None):
        super().__init__(message, path=path)
        self.field = field


class MappingError(CatalogSyncError):
    """
    Raised when the mapper is handed no record at all.
    """

    reason_code = "record_mapping_error"


class StorageError(CatalogSyncError):
    """
    Raised when the database connection cannot be opened or a record cannot
    be written.
    """

    reason_code = "storage_error"
