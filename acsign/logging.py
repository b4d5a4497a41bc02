# Copyright (c) 2026 Pyry Haulos
#
# This software is released under the MIT License.
# https://opensource.org/licenses/MIT

"""Logging setup with access key secret redaction.

Library modules log through ``logging.getLogger(__name__)`` and never
configure handlers.  Entry points (the ``acsign`` CLI) call
``configure_logging`` once, which installs a handler carrying
``SecretFilter``.  Secrets registered with the filter (config loading
registers every access key secret it resolves) are replaced with
``[REDACTED]`` before a record is emitted.

Usage:
    from acsign.logging import configure_logging
    configure_logging(level=logging.DEBUG)
"""

import logging
import re
from typing import ClassVar

from acsign.types import Credential


REDACTED = "[REDACTED]"

_DEFAULT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


class SecretFilter(logging.Filter):
    """Logging filter that redacts registered secrets.

    The registry is process-wide so that every handler carrying a
    ``SecretFilter`` redacts the same values.

    Example:
        SecretFilter.register_secret("my-access-key-secret")
        logger.info("secret is %s", "my-access-key-secret")
        # Output: "secret is [REDACTED]"
    """

    _secrets: ClassVar[set[str]] = set()
    _pattern: ClassVar[re.Pattern[str] | None] = None

    def filter(self, record: logging.LogRecord) -> bool:
        """Redact registered secrets in the record message and arguments.

        Returns:
            Always True; records are modified, never dropped.
        """
        pattern = self._pattern
        if pattern is None:
            return True
        record.msg = pattern.sub(REDACTED, str(record.msg))
        if isinstance(record.args, tuple):
            record.args = tuple(
                pattern.sub(REDACTED, arg) if isinstance(arg, str) else arg
                for arg in record.args
            )
        return True

    @classmethod
    def register_secret(cls, secret: str) -> None:
        """Register a value to redact.  Empty strings are ignored."""
        if secret and secret not in cls._secrets:
            cls._secrets.add(secret)
            cls._rebuild_pattern()

    @classmethod
    def clear_secrets(cls) -> None:
        """Forget all registered secrets.  Primarily for testing."""
        cls._secrets.clear()
        cls._pattern = None

    @classmethod
    def _rebuild_pattern(cls) -> None:
        # Longest first so a secret containing another is fully replaced.
        ordered = sorted(cls._secrets, key=len, reverse=True)
        cls._pattern = re.compile("|".join(re.escape(s) for s in ordered))


def register_credential(credential: Credential) -> None:
    """Register a credential's secret with ``SecretFilter``."""
    SecretFilter.register_secret(credential.access_key_secret)


def configure_logging(
    level: int = logging.INFO,
    format_string: str | None = None,
    add_secret_filter: bool = True,
) -> None:
    """Configure the root logger.

    Replaces existing root handlers with a single stream handler.

    Args:
        level: Root logger level.
        format_string: Record format.  Defaults to
            ``time - name - level - message``.
        add_secret_filter: Whether the handler redacts registered secrets.
    """
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(format_string or _DEFAULT_FORMAT))
    if add_secret_filter:
        handler.addFilter(SecretFilter())

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    for existing_handler in root_logger.handlers[:]:
        root_logger.removeHandler(existing_handler)
    root_logger.addHandler(handler)
