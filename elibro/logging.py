from typing import Any, Optional

import structlog


def _book_context(book):
    # Both catalog.rdf.WorkRecord and catalog.models.Book expose gutenberg_id
    return {"gutenberg_id": getattr(book, "gutenberg_id", None)}


def _sync_result_context(result):
    return {
        "processed_count": len(result.processed),
        "skipped_count": len(result.skipped),
        "failed_count": len(result.failed),
    }


#: Context keys whose objects are expanded into plain log fields
CONTEXT_EXTRACTORS = {
    "book": _book_context,
    "sync_result": _sync_result_context,
}


class ElibroLogger:
    """
    A structured logging wrapper around structlog that enforces consistent logging
    conventions across the catalog synchronization job.

    Every event requires a human-readable message and a machine-readable
    ``event_code``. Warnings and errors additionally require ``reason`` and
    ``reason_code``.

    Usage:
    -----

    Create a logger:
        ```python
        structured_logger = ElibroLogger.get_logger(__name__)
        ```

    Log an info-level event:
        ```python
        structured_logger.info(
            "Catalog downloaded.",
            event_code="catalog_download_completed",
            url=url,
        )
        ```

    Log a warning with reason:
        ```python
        structured_logger.warning(
            "Record skipped.",
            event_code="catalog_record_failed",
            reason="The record document is not well-formed XML.",
            reason_code="record_parse_error",
            book=record,
        )
        ```

    Bind a logger for repeated use:
        ```python
        record_logger = structured_logger.bind(book=record)
        record_logger.info("Record stored.", event_code="catalog_record_stored")
        ```

    Special Context Expansion:
    --------------------------

    - `book` -> `gutenberg_id`
    - `sync_result` -> `processed_count`, `skipped_count`, `failed_count`

    Explicit values passed (e.g., `gutenberg_id=...`) override extracted ones.
    Fields with `None` values are omitted from the final log output.
    """

    def __init__(self, logger, context: Optional[dict[str, Any]] = None):
        self._logger = logger
        self._context = context or {}

    @classmethod
    def get_logger(cls, name: str) -> "ElibroLogger":
        """
        Factory method to create an ElibroLogger from a given logger name.

        Args:
            name (str): The logger name, typically ``__name__``. It is placed
                under the ``structlog`` namespace so the structlog handlers
                configured in settings receive it.

        Returns:
            ElibroLogger: A logger instance with enriched behavior.
        """
        return cls(structlog.get_logger(f"structlog.{name}"))

    def log(
        self,
        level: str,
        message: str,
        *,
        event_code: str,
        reason: Optional[str] = None,
        reason_code: Optional[str] = None,
        **context: Any,
    ) -> None:
        """
        Emit structured logs with standardized context. Use one of the level
        methods (debug, info, warning, error) instead of calling this directly.

        Raises:
            ValueError: If required fields are missing for the given log level.
        """
        if not message:
            raise ValueError("Log message is required.")
        if not event_code:
            raise ValueError("Structured logs must include an 'event_code' field.")
        if level in ("warning", "error") and (not reason or not reason_code):
            raise ValueError(
                "Warnings and errors must include both 'reason' and 'reason_code'."
            )

        context_data = {"event_code": event_code}
        if reason:
            context_data["reason"] = reason
        if reason_code:
            context_data["reason_code"] = reason_code

        bound_context = self._context

        for context_key, extractor_function in CONTEXT_EXTRACTORS.items():
            context_object = context.pop(context_key, bound_context.get(context_key))
            if context_object is not None:
                extracted_fields = extractor_function(context_object)
                for key, value in extracted_fields.items():
                    if value is not None:
                        context_data.setdefault(key, value)

        for key, value in bound_context.items():
            if key in CONTEXT_EXTRACTORS or key in context or value is None:
                continue
            context_data[key] = value

        # Explicit values win over extracted and bound ones
        for key, value in context.items():
            if value is not None:
                context_data[key] = value

        getattr(self._logger, level)(message, **context_data)

    def debug(self, message: str, *, event_code: str, **kwargs):
        """Emit a debug-level structured log."""
        self.log("debug", message, event_code=event_code, **kwargs)

    def info(self, message: str, *, event_code: str, **kwargs):
        """Emit an info-level structured log."""
        self.log("info", message, event_code=event_code, **kwargs)

    def warning(
        self, message: str, *, event_code: str, reason: str, reason_code: str, **kwargs
    ):
        """Emit a warning-level structured log. Requires reason and reason_code."""
        self.log(
            "warning",
            message,
            event_code=event_code,
            reason=reason,
            reason_code=reason_code,
            **kwargs,
        )

    def error(
        self, message: str, *, event_code: str, reason: str, reason_code: str, **kwargs
    ):
        """Emit an error-level structured log. Requires reason and reason_code."""
        self.log(
            "error",
            message,
            event_code=event_code,
            reason=reason,
            reason_code=reason_code,
            **kwargs,
        )

    def bind(self, **kwargs: Any) -> "ElibroLogger":
        """
        Return a new ElibroLogger with additional context permanently bound.
        """
        new_context = self._context.copy()
        new_context.update(kwargs)
        return ElibroLogger(self._logger, context=new_context)
