from .ingest_reading import apply_notification, refresh_from_document

__all__ = [
    "apply_notification",
    "refresh_from_document",
]
