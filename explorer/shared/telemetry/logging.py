"""Logging setup for the Explorer service.

Modules log through logging.getLogger(__name__). Cache keys embed
directory object IDs, so log lines carry key_digest(key) instead of the
key itself.
"""

import hashlib
import logging
import sys

from explorer.core.config import get_settings

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"

# Third-party loggers held at INFO or above; msal's DEBUG output includes token request details
QUIET_LOGGERS = ("redis", "msal", "urllib3")


def setup_logging(level: int | None = None) -> None:
    """Configure the root logger to write to stdout.

    Args:
        level: Explicit level; defaults to DEBUG when settings.debug, else INFO.
    """
    if level is None:
        level = logging.DEBUG if get_settings().debug else logging.INFO
    logging.basicConfig(
        level=level,
        format=LOG_FORMAT,
        handlers=[logging.StreamHandler(sys.stdout)],
    )
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.INFO))


def key_digest(key: str) -> str:
    """Short stable fingerprint of a cache key, safe to log."""
    return hashlib.sha256(key.encode("utf-8")).hexdigest()[:12]
