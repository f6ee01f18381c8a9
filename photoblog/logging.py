import warnings
from types import MappingProxyType
from typing import Any, Callable, Optional

import structlog

# Default global registry for semantic context extractors
_DEFAULT_EXTRACTORS: dict[str, Callable[[Any], dict[str, Any]]] = {}


def _register_default_extractor(
    context_key: str, extractor_function: Callable[[Any], dict[str, Any]]
):
    _DEFAULT_EXTRACTORS[context_key] = extractor_function


_register_default_extractor(
    "category",
    lambda category: {
        "category_slug": getattr(category, "slug", None),
    },
)

_register_default_extractor(
    "asset",
    lambda asset: {
        "asset_id": getattr(asset, "pk", None),
        "asset_name": getattr(asset, "original_name", None),
    },
)

# post must be registered after asset because it chains to the featured asset
_register_default_extractor(
    "post",
    lambda post: {
        **_DEFAULT_EXTRACTORS["asset"](getattr(post, "featured_asset", None)),
        "post_id": getattr(post, "pk", None),
    },
)

# Source entries from an export (importer.source.ImportItem)
_register_default_extractor(
    "item",
    lambda item: {
        "source_uri": getattr(item, "source_uri", None),
        "captured_at": getattr(item, "captured_at", None),
    },
)

# Units of work handed to Celery (importer.models.QueuedAction)
_register_default_extractor(
    "action",
    lambda action: {
        "action_name": getattr(action, "action", None),
        "action_group": getattr(action, "group", None) or None,
        "task_id": str(action.task_id) if getattr(action, "task_id", None) else None,
    },
)

# Freeze default extractors to prevent mutation
_DEFAULT_EXTRACTORS = MappingProxyType(_DEFAULT_EXTRACTORS)


class PhotoblogLogger:
    """
    A structured logging wrapper around structlog that enforces consistent logging
    conventions across the photoblog project.

    Features:
        - Requires 'message' and 'event_code' for all logs, and 'reason'/'reason_code'
          for warnings/errors.
        - Automatically extracts common context from objects like MediaAsset,
          Post, Category, export items and queued actions.
        - Allows semantic binding of objects (e.g., asset=asset) which are expanded
          at log time.

    Usage:
    -----

        ```python
        structured_logger = PhotoblogLogger.get_logger(__name__)

        structured_logger.info(
            "Imported media item.",
            event_code="importer_item_imported",
            item=import_item,
            asset=asset,
        )

        structured_logger.warning(
            "Skipped media item.",
            event_code="importer_item_skipped",
            reason="Media file not found",
            reason_code="source_file_missing",
            item=import_item,
        )
        ```

    Special Context Expansion:
    --------------------------

    - `asset` -> `asset_id`, `asset_name`
    - `post` -> `post_id` and the featured asset fields
    - `category` -> `category_slug`
    - `item` -> `source_uri`, `captured_at`
    - `action` -> `action_name`, `action_group`, `task_id`

    Explicit values passed (e.g., `asset_id=...`) override extracted ones. Fields
    with `None` values are omitted from the final log output.

    Note:
        Chained extractors (`post` -> `asset`) are hardcoded to use the default
        global extractors. Overriding `asset` on one logger does not change what
        `post` produces.
    """

    def __init__(self, logger, context: Optional[dict[str, Any]] = None):
        self._logger = logger
        self._context = context or {}
        self._extractors = _DEFAULT_EXTRACTORS.copy()

    @classmethod
    def get_logger(cls, name: str) -> "PhotoblogLogger":
        """
        Factory method to create a PhotoblogLogger from a given logger name.

        Args:
            name (str): The module name; the structlog logger is named
                ``structlog.<name>``.

        Returns:
            PhotoblogLogger: A logger instance with enriched behavior.
        """
        return cls(structlog.get_logger(f"structlog.{name}"))

    def register_extractor(
        self, key: str, extractor: Callable[[Any], dict[str, Any]]
    ) -> None:
        """
        Register a custom context extractor for this logger instance only.
        """
        self._extractors[key] = extractor
        if key in _DEFAULT_EXTRACTORS:
            warnings.warn(
                f"Extractor for '{key}' registered but default extractors may "
                f"still use the default extractor through chaining. Overriding it "
                f"here will not affect those chained uses.",
                UserWarning,
                stacklevel=2,
            )

    def log(
        self,
        level: str,
        message: str,
        *,
        event_code: str,
        reason: Optional[str] = None,
        reason_code: Optional[str] = None,
        **context: Any,
    ):
        """
        Emit a structured log entry.

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

        for context_key, extractor_function in self._extractors.items():
            context_object = context.pop(context_key, bound_context.get(context_key))
            if context_object:
                extracted_fields = extractor_function(context_object)
                for key, value in extracted_fields.items():
                    if value is not None:
                        context_data.setdefault(key, value)

        for key, value in bound_context.items():
            if key not in self._extractors and key not in context and value is not None:
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

    def bind(self, **kwargs: Any) -> "PhotoblogLogger":
        """
        Return a new PhotoblogLogger with additional context permanently bound.
        """
        new_context = self._context.copy()
        new_context.update(kwargs)
        return PhotoblogLogger(self._logger, context=new_context)
