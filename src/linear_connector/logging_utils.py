"""Logging setup for CLI runs."""

import logging

from rich.console import Console
from rich.logging import RichHandler

REDACTED = "***REDACTED***"


class TokenRedactionFilter(logging.Filter):
    """Logging filter that replaces a raw API key with ``***REDACTED***``."""

    def __init__(self, token: str) -> None:
        super().__init__()
        self._token = token

    def _redact(self, value: object) -> object:
        if self._token and self._token in str(value):
            return str(value).replace(self._token, REDACTED)
        return value

    def filter(self, record: logging.LogRecord) -> bool:
        if self._token and self._token in str(record.msg):
            record.msg = str(record.msg).replace(self._token, REDACTED)
        if record.args:
            args = record.args
            if isinstance(args, tuple):
                record.args = tuple(self._redact(a) for a in args)
            elif isinstance(args, dict):
                record.args = {k: self._redact(v) for k, v in args.items()}
        return True


def redact_token(token: str) -> str:
    """Redact token for display (shows first 4 and last 4 chars)."""
    if len(token) <= 8:
        return "*" * len(token)
    return token[:4] + "*" * (len(token) - 8) + token[-4:]


def setup_logging(verbose: bool, api_key: str = "", console: Console | None = None) -> None:
    """Configure logging with RichHandler, redacting *api_key* from every record."""
    level = logging.DEBUG if verbose else logging.INFO
    handler = RichHandler(console=console, rich_tracebacks=True)
    if api_key:
        handler.addFilter(TokenRedactionFilter(api_key))
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[handler],
        force=True,
    )
    # httpx logs every request at INFO
    logging.getLogger("httpx").setLevel(logging.DEBUG if verbose else logging.WARNING)
