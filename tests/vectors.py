# Copyright (c) 2026 Pyry Haulos
#
# This software is released under the MIT License.
# https://opensource.org/licenses/MIT

"""Shared test vectors for ACS3 signing tests.

Centralizes the credential, fixed clock/nonce and the golden values of the
``DescribeRegions`` scenario used across ``test_signing.py``,
``test_auth.py`` and ``test_cli.py``.
"""

from datetime import UTC, datetime

from acsign.types import Credential


ACCESS_KEY_ID = "AK"
ACCESS_KEY_SECRET = "SK"
REGION = "cn-hangzhou"

CREDENTIAL = Credential(
    access_key_id=ACCESS_KEY_ID,
    access_key_secret=ACCESS_KEY_SECRET,
    region=REGION,
)

FIXED_TIMESTAMP = "2024-01-01T00:00:00Z"
FIXED_TIME = datetime(2024, 1, 1, tzinfo=UTC)
FIXED_NONCE = "00112233445566778899aabbccddeeff0"

GOLDEN_URL = (
    "https://ecs.cn-hangzhou.aliyuncs.com/"
    "?Action=DescribeRegions&Version=2014-05-26"
)

EMPTY_SHA256 = (
    "e3b0c44298fc1c149afbf4c8996fb92427ae41e4649b934ca495991b7852b855"
)

GOLDEN_SIGNED_HEADERS = (
    "host;x-acs-action;x-acs-content-sha256;x-acs-date;"
    "x-acs-signature-nonce;x-acs-version"
)

GOLDEN_CANONICAL_REQUEST = (
    "GET\n"
    "/\n"
    "Action=DescribeRegions&Version=2014-05-26\n"
    "host:ecs.cn-hangzhou.aliyuncs.com\n"
    "x-acs-action:DescribeRegions\n"
    f"x-acs-content-sha256:{EMPTY_SHA256}\n"
    "x-acs-date:2024-01-01T00:00:00Z\n"
    "x-acs-signature-nonce:00112233445566778899aabbccddeeff0\n"
    "x-acs-version:2014-05-26\n"
    "\n"
    f"{GOLDEN_SIGNED_HEADERS}\n"
    f"{EMPTY_SHA256}"
)

GOLDEN_CANONICAL_REQUEST_HASH = (
    "2e73d11db9ae95ba148797a2037e941310792c35072ae8adb6f957f2ca01f260"
)

GOLDEN_SIGNATURE = (
    "23dfc76fb6d108285baccee3c69bc8208104c603a0f11c35c4f68e740aeff6d5"
)

GOLDEN_AUTHORIZATION = (
    "ACS3-HMAC-SHA256 "
    f"Credential={ACCESS_KEY_ID},"
    f"SignedHeaders={GOLDEN_SIGNED_HEADERS},"
    f"Signature={GOLDEN_SIGNATURE}"
)
