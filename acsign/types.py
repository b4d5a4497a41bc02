# Copyright (c) 2026 Pyry Haulos
#
# This software is released under the MIT License.
# https://opensource.org/licenses/MIT

"""Type definitions for request signing.

Provides the core types used by the signer: Credential, RequestDescriptor,
SigningScheme, and CanonicalForm.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


#: Algorithm identifier for the ACS3 HMAC-SHA256 scheme.
ALGORITHM_ACS3_HMAC_SHA256 = "ACS3-HMAC-SHA256"

#: Region used when neither the caller nor the config names one.
DEFAULT_REGION = "cn-hangzhou"


@dataclass(frozen=True)
class Credential:
    """Long-term access key pair.

    Attributes:
        access_key_id: Access key ID, sent in the clear.
        access_key_secret: Access key secret, used only as the HMAC key.
        region: Region ID (e.g. ``cn-hangzhou``).
    """

    access_key_id: str
    access_key_secret: str = field(repr=False)
    region: str = DEFAULT_REGION


@dataclass
class RequestDescriptor:
    """Outbound HTTP request description.

    The target is given either as a full ``url`` or as ``host`` plus
    ``path``.  The signer extends ``headers`` in place; no other field is
    modified.

    Attributes:
        method: HTTP method.  Empty means ``GET``.
        url: Full request URL, optionally carrying a query string.
        host: Host used when ``url`` has none.
        path: Path used when ``url`` has none.
        headers: Request headers (name -> value).
        query_params: Explicit query parameters, possibly nested, or a
            JSON object text.  Wins over the URL's query on collision.
        body: Request body.
    """

    method: str = "GET"
    url: str = ""
    host: str = ""
    path: str = ""
    headers: dict[str, str] = field(default_factory=dict)
    query_params: dict[str, Any] | str | None = None
    body: str | bytes | None = None


@dataclass(frozen=True)
class SigningScheme:
    """Parameters of an ACS-style HMAC signing scheme.

    Sibling schemes differ only in header prefix and algorithm identifier,
    so both are data here rather than constants in the signer.

    Attributes:
        algorithm: Identifier used in the string to sign and as the
            ``Authorization`` scheme name.
        header_prefix: Lowercase prefix of provider headers that are
            always signed.
        extra_signed_headers: Lowercase names signed regardless of prefix.
        endpoint_template: Host used when the request names none;
            ``{region}`` is substituted.
        mandatory_params: Query parameters that must be present.  The
            first two are also sent as the action and version headers.
    """

    algorithm: str = ALGORITHM_ACS3_HMAC_SHA256
    header_prefix: str = "x-acs-"
    extra_signed_headers: frozenset[str] = frozenset({"host", "content-type"})
    endpoint_template: str = "ecs.{region}.aliyuncs.com"
    mandatory_params: tuple[str, ...] = ("Action", "Version")

    def __post_init__(self) -> None:
        if len(self.mandatory_params) < 2:
            raise ValueError(
                "mandatory_params must name the action and version "
                f"parameters first, got {self.mandatory_params!r}"
            )

    @property
    def date_header(self) -> str:
        return f"{self.header_prefix}date"

    @property
    def nonce_header(self) -> str:
        return f"{self.header_prefix}signature-nonce"

    @property
    def action_header(self) -> str:
        return f"{self.header_prefix}action"

    @property
    def version_header(self) -> str:
        return f"{self.header_prefix}version"

    @property
    def content_hash_header(self) -> str:
        return f"{self.header_prefix}content-sha256"

    def is_signed_header(self, name: str) -> bool:
        """Return True if a header with this name is covered by a signature."""
        lower = name.lower()
        return (
            lower.startswith(self.header_prefix)
            or lower in self.extra_signed_headers
        )

    def default_host(self, region: str) -> str:
        """Return the endpoint host for a region."""
        return self.endpoint_template.format(region=region)


#: Scheme used when the caller does not supply one.
ACS3_SCHEME = SigningScheme()


@dataclass(frozen=True)
class CanonicalForm:
    """Canonical encoding of one request, computed fresh per signing call.

    Attributes:
        host: Resolved request host.
        canonical_uri: Percent-encoded request path.
        canonical_query_string: Sorted, encoded query parameters.
        canonical_headers: ``name:value`` lines, each ending in a newline.
        signed_header_names: Lowercase names of signed headers, sorted.
        body_hash_hex: Lowercase hex SHA-256 of the body.
        query_params: Flattened query parameters.
        method: Uppercased HTTP method.
        signing_headers: Headers the signer adds (host, date, nonce,
            action, version, content hash), already covered by
            ``canonical_headers``.
    """

    host: str
    canonical_uri: str
    canonical_query_string: str
    canonical_headers: str
    signed_header_names: tuple[str, ...]
    body_hash_hex: str
    query_params: dict[str, str]
    method: str = "GET"
    signing_headers: dict[str, str] = field(default_factory=dict)

    @property
    def signed_headers(self) -> str:
        """Semicolon-joined signed header list."""
        return ";".join(self.signed_header_names)

    @property
    def canonical_request(self) -> str:
        """The exact preimage of the request hash."""
        return "\n".join(
            [
                self.method,
                self.canonical_uri,
                self.canonical_query_string,
                self.canonical_headers,
                self.signed_headers,
                self.body_hash_hex,
            ]
        )
