"""Logging setup for the photo_restore logger tree."""

import logging

CONTEXT_FIELDS = (
    "route",
    "uid",
    "provider",
    "reason",
    "session_id",
    "credits",
    "path",
    "dir",
)


class ContextFormatter(logging.Formatter):
    """Append request context passed through ``extra`` as key=value pairs."""

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        context = [
            f"{name}={getattr(record, name)}"
            for name in CONTEXT_FIELDS
            if getattr(record, name, None) is not None
        ]
        return f"{line} [{' '.join(context)}]" if context else line


def configure_logging(level: int | str = logging.INFO) -> None:
    """Install one stream handler; later calls only adjust the level."""
    logger = logging.getLogger("photo_restore")
    logger.setLevel(level.upper() if isinstance(level, str) else level)
    if logger.handlers:
        return
    handler = logging.StreamHandler()
    handler.setFormatter(ContextFormatter("%(levelname)s: %(name)s: %(message)s"))
    logger.addHandler(handler)
    logger.propagate = False
