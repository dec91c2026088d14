"""Diagnostic logging and terminal-safe text.

Diagnostics go through structlog on top of stdlib logging and are written
to stderr, so they never mix with the report printed on stdout.
"""
import locale
import logging
import logging.config
import sys

import structlog

# Unicode to ASCII icon mapping for terminals without UTF-8 support
ICON_MAP = {
    '✓': '[OK]',
    '✔': '[OK]',
    '✗': '[FAIL]',
    '✘': '[FAIL]',
    '⚠': '[WARN]',
    'ℹ': '[i]',
    '→': '->',
    '•': '*',
    '…': '...',
    '📦': '[pkg]',
    '🧹': '[clean]',
}


class StderrHandler(logging.StreamHandler):
    """StreamHandler that writes to whatever sys.stderr is at emit time.

    Keeps working when stderr is swapped after configuration (test runners,
    CLI runners).
    """

    @property
    def stream(self):
        return sys.stderr

    @stream.setter
    def stream(self, value):
        pass


def setup_logging(level: str = "WARNING", log_format: str = "console") -> None:
    """Configure structlog and stdlib logging.

    Args:
        level: Log level name for the depsweep loggers
        log_format: 'console' for human-readable lines, 'json' for one JSON
            object per event
    """
    shared_processors = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]

    if log_format == "json":
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=False)

    structlog.configure(
        processors=shared_processors + [structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=False,
    )

    logging.config.dictConfig({
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "structlog": {
                "()": structlog.stdlib.ProcessorFormatter,
                "foreign_pre_chain": shared_processors,
                "processors": [
                    structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                    renderer,
                ],
            },
        },
        "handlers": {
            "default": {
                "()": StderrHandler,
                "formatter": "structlog",
            },
        },
        "loggers": {
            "depsweep": {"handlers": ["default"], "level": level.upper(), "propagate": False},
        },
    })


def detect_terminal_encoding() -> str:
    """Detect the terminal's encoding ('utf-8', 'cp1252', 'ascii', ...)."""
    if getattr(sys.stdout, 'encoding', None):
        return sys.stdout.encoding.lower()

    try:
        return locale.getpreferredencoding().lower()
    except Exception:
        return 'ascii'


def is_utf8_capable() -> bool:
    """Check if the terminal can handle UTF-8 Unicode characters."""
    return detect_terminal_encoding().replace('-', '').replace('_', '') == 'utf8'


def sanitize_for_terminal(text: str) -> str:
    """Replace Unicode icons with ASCII equivalents if terminal doesn't support UTF-8.

    Args:
        text: Text potentially containing Unicode icons

    Returns:
        str: Sanitized text safe for current terminal
    """
    if is_utf8_capable():
        return text

    for unicode_char, ascii_replacement in ICON_MAP.items():
        text = text.replace(unicode_char, ascii_replacement)
    return text
