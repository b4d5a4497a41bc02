# Copyright (c) 2026 Pyry Haulos
#
# This software is released under the MIT License.
# https://opensource.org/licenses/MIT

"""Shared pytest fixtures used across test modules."""

from collections.abc import Iterator

import pytest

from acsign.logging import SecretFilter
from acsign.signing import RequestSigner
from tests.vectors import FIXED_NONCE, FIXED_TIME


@pytest.fixture(autouse=True)
def _isolate_process_state(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    """Keep real ``.env`` files and registered secrets out of tests."""
    monkeypatch.setattr("acsign.config.load_dotenv_once", lambda: None)
    yield
    SecretFilter.clear_secrets()


@pytest.fixture
def fixed_signer() -> RequestSigner:
    """Signer with the fixed clock and nonce of the golden vectors."""
    return RequestSigner(
        clock=lambda: FIXED_TIME, nonce_factory=lambda: FIXED_NONCE
    )
