# Copyright (c) 2026 Pyry Haulos
#
# This software is released under the MIT License.
# https://opensource.org/licenses/MIT

"""Idempotent ``.env`` loading for the CLI configuration.

Access keys are usually kept out of ``acsign.yaml`` and referenced with
``!env`` tags instead.  Before resolving those tags the config loader
reads, in order:

1. ``~/.config/acsign/.env`` (XDG config directory, next to acsign.yaml)
2. ``.env`` in the current working directory

``python-dotenv`` never overwrites variables that are already set, so the
process environment beats the XDG file, which beats the CWD file.
"""

import logging
from pathlib import Path

from dotenv import load_dotenv


logger = logging.getLogger(__name__)

_dotenv_loaded = False


def load_dotenv_once() -> None:
    """Load ``.env`` files on first call; later calls do nothing."""
    global _dotenv_loaded
    if _dotenv_loaded:
        return

    from acsign.config import get_dotenv_path

    for env_path in (get_dotenv_path(), Path.cwd() / ".env"):
        if env_path.exists():
            load_dotenv(env_path)
            logger.debug("Loaded .env from %s", env_path)

    _dotenv_loaded = True


def reset_dotenv_state() -> None:
    """Reset the loaded flag.  For testing only."""
    global _dotenv_loaded
    _dotenv_loaded = False
