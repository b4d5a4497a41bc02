# Copyright (c) 2026 Pyry Haulos
#
# This software is released under the MIT License.
# https://opensource.org/licenses/MIT

"""ACS3-HMAC-SHA256 request signing.

Derives the ``Authorization`` header for an outbound request from the
request description and an access key pair.  The pipeline is:

1. Canonical URI (each path segment percent-encoded)
2. Canonical query string (flattened, sorted, percent-encoded)
3. Canonical headers (provider-prefixed headers plus host/content-type)
4. Signature (HMAC-SHA256 over the hashed canonical request)

No network I/O.  Wall-clock time and the nonce are the only
non-deterministic inputs; both are injectable on ``RequestSigner``.
"""

from __future__ import annotations

import hashlib
import hmac
import logging
import secrets
import urllib.parse
from collections.abc import Callable
from datetime import UTC, datetime

from acsign.params import MalformedInputError, merge_query
from acsign.types import (
    ACS3_SCHEME,
    CanonicalForm,
    Credential,
    RequestDescriptor,
    SigningScheme,
)


logger = logging.getLogger(__name__)

#: Name of the header carrying the signature.
AUTHORIZATION_HEADER = "Authorization"

_TIMESTAMP_FORMAT = "%Y-%m-%dT%H:%M:%SZ"


class AuthenticationError(Exception):
    """Raised when a request cannot be signed.

    Attributes:
        reason: Human-readable failure reason.
    """

    def __init__(self, reason: str = "") -> None:
        self.reason = reason
        super().__init__(reason or "authentication failed")


class MissingMandatoryParameterError(AuthenticationError):
    """Raised when a mandatory query parameter (Action, Version) is absent.

    Attributes:
        parameter: Name of the missing parameter.
    """

    def __init__(self, parameter: str) -> None:
        self.parameter = parameter
        super().__init__(f"Missing mandatory query parameter: {parameter}")


# ---------------------------------------------------------------------------
# Percent-encoding (RFC 3986, ACS flavour)
# ---------------------------------------------------------------------------


def percent_encode(value: str) -> str:
    """Percent-encode a value for canonical query strings and paths.

    - Unreserved characters are not encoded: A-Z, a-z, 0-9, -, _, ., ~
    - Space becomes ``%20`` and ``*`` becomes ``%2A``
    - Everything else is UTF-8 encoded as ``%XX`` (uppercase hex)

    Args:
        value: String to encode.

    Returns:
        Encoded string.
    """
    return urllib.parse.quote(value, safe="")


# ---------------------------------------------------------------------------
# Canonical request construction
# ---------------------------------------------------------------------------


def resolve_target(
    descriptor: RequestDescriptor,
    region: str,
    scheme: SigningScheme = ACS3_SCHEME,
) -> tuple[str, str, str]:
    """Resolve host, path and raw query string of a request.

    The URL wins when it carries a host.  Otherwise the descriptor's
    ``host`` is used, falling back to the scheme's regional endpoint.

    Args:
        descriptor: Request description.
        region: Region used for the fallback endpoint.
        scheme: Signing scheme.

    Returns:
        Tuple of (host, path, query).
    """
    if descriptor.url:
        target = urllib.parse.urlsplit(descriptor.url)
        host = target.netloc.rpartition("@")[2]
        path, query = target.path, target.query
    else:
        # A bare path is never a URL, even when it starts with "//".
        host = ""
        path, _, query = descriptor.path.partition("?")
    if not host:
        host = descriptor.host or scheme.default_host(region)
    return host, path or "/", query


def canonical_uri(path: str) -> str:
    """Build the canonical URI from a request path.

    The path is split on ``/`` first, then every segment is decoded once
    and re-encoded on its own, so an encoded ``%2F`` stays inside its
    segment.

    Args:
        path: Request path, possibly already percent-encoded.

    Returns:
        Encoded path, ``/`` when empty.
    """
    path = path.split("?")[0]
    if not path:
        return "/"
    if not path.startswith("/"):
        path = "/" + path
    return "/".join(
        percent_encode(urllib.parse.unquote(segment))
        for segment in path.split("/")
    )


def canonical_query_string(params: dict[str, str]) -> str:
    """Build the canonical query string from flattened parameters.

    Args:
        params: Flat parameter mapping.

    Returns:
        ``key=value`` pairs sorted by key and joined with ``&``.
    """
    return "&".join(
        f"{percent_encode(key)}={percent_encode(params[key])}"
        for key in sorted(params)
    )


def canonical_headers_string(
    headers: dict[str, str], scheme: SigningScheme = ACS3_SCHEME
) -> tuple[str, tuple[str, ...]]:
    """Build the canonical headers block and the signed header names.

    Args:
        headers: Request headers (name -> value).
        scheme: Signing scheme deciding which headers are signed.

    Returns:
        Tuple of (block, names).  Each block line is ``name:value`` plus a
        newline; names are lowercase and sorted.
    """
    selected: dict[str, str] = {}
    for name, value in headers.items():
        if scheme.is_signed_header(name):
            selected[name.lower()] = str(value).strip()
    names = tuple(sorted(selected))
    block = "".join(f"{name}:{selected[name]}\n" for name in names)
    return block, names


def hash_body(body: str | bytes | None) -> str:
    """Return the lowercase hex SHA-256 of a request body.

    Raises:
        MalformedInputError: If the body is neither text nor bytes.
    """
    if body is None:
        data = b""
    elif isinstance(body, str):
        data = body.encode("utf-8")
    elif isinstance(body, (bytes, bytearray, memoryview)):
        data = bytes(body)
    else:
        raise MalformedInputError(
            f"Unsupported body type: {type(body).__name__}"
        )
    return hashlib.sha256(data).hexdigest()


# ---------------------------------------------------------------------------
# Signature
# ---------------------------------------------------------------------------


def build_string_to_sign(algorithm: str, canonical_request: str) -> str:
    """Build the string to sign.

    Args:
        algorithm: Algorithm identifier (e.g. ``ACS3-HMAC-SHA256``).
        canonical_request: The canonical request string.

    Returns:
        ``<algorithm>\\n<hex sha256 of canonical request>``.
    """
    digest = hashlib.sha256(canonical_request.encode("utf-8")).hexdigest()
    return f"{algorithm}\n{digest}"


def hmac_sha256_hex(secret: str, string_to_sign: str) -> str:
    """HMAC-SHA256 with a text key, lowercase hex output."""
    return hmac.new(
        secret.encode("utf-8"),
        string_to_sign.encode("utf-8"),
        hashlib.sha256,
    ).hexdigest()


def build_authorization(
    algorithm: str, access_key_id: str, signed_headers: str, signature: str
) -> str:
    """Format the ``Authorization`` header value."""
    return (
        f"{algorithm} "
        f"Credential={access_key_id},"
        f"SignedHeaders={signed_headers},"
        f"Signature={signature}"
    )


def format_timestamp(moment: datetime) -> str:
    """Format a moment as ISO-8601 UTC without fraction (naive means UTC)."""
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=UTC)
    return moment.astimezone(UTC).strftime(_TIMESTAMP_FORMAT)


def new_nonce() -> str:
    """Return 16 random bytes as 32 lowercase hex characters."""
    return secrets.token_hex(16)


def _utcnow() -> datetime:
    return datetime.now(UTC)


def _set_header(headers: dict[str, str], name: str, value: str) -> None:
    """Set a header, replacing any case-insensitive duplicate."""
    lower = name.lower()
    for existing in [k for k in headers if k.lower() == lower]:
        del headers[existing]
    headers[name] = value


# ---------------------------------------------------------------------------
# Signer
# ---------------------------------------------------------------------------


class RequestSigner:
    """Signs request descriptors with an access key pair.

    Holds no per-request state, so one instance may be shared between
    threads.

    Example:
        signer = RequestSigner()
        signer.sign(
            RequestDescriptor(
                url="https://ecs.cn-hangzhou.aliyuncs.com/"
                "?Action=DescribeRegions&Version=2014-05-26"
            ),
            Credential("AK", "SK", "cn-hangzhou"),
        )
    """

    def __init__(
        self,
        scheme: SigningScheme = ACS3_SCHEME,
        *,
        clock: Callable[[], datetime] | None = None,
        nonce_factory: Callable[[], str] | None = None,
    ) -> None:
        """Initialize the signer.

        Args:
            scheme: Signing scheme (header prefix, algorithm identifier).
            clock: Returns the current time.  Defaults to UTC wall clock.
            nonce_factory: Returns a fresh nonce.  Defaults to 16 random
                bytes in hex.
        """
        self.scheme = scheme
        self._clock = clock or _utcnow
        self._nonce_factory = nonce_factory or new_nonce

    def canonicalize(
        self, descriptor: RequestDescriptor, credential: Credential
    ) -> CanonicalForm:
        """Compute the canonical form that ``sign`` would sign.

        Draws a fresh timestamp and nonce.  The descriptor is not modified.

        Args:
            descriptor: Request description.
            credential: Key pair; only the region is used here.

        Returns:
            CanonicalForm including the headers the signer adds.

        Raises:
            MissingMandatoryParameterError: If Action or Version is absent.
            MalformedInputError: If parameters or body cannot be encoded.
        """
        scheme = self.scheme
        host, path, url_query = resolve_target(
            descriptor, credential.region, scheme
        )
        params = merge_query(url_query, descriptor.query_params)

        for name in scheme.mandatory_params:
            if not params.get(name):
                raise MissingMandatoryParameterError(name)

        body_hash = hash_body(descriptor.body)

        signing_headers = {
            "host": host,
            scheme.date_header: format_timestamp(self._clock()),
            scheme.nonce_header: self._nonce_factory(),
        }
        action_param, version_param = scheme.mandatory_params[:2]
        signing_headers[scheme.action_header] = params[action_param]
        signing_headers[scheme.version_header] = params[version_param]
        signing_headers[scheme.content_hash_header] = body_hash

        headers = dict(descriptor.headers)
        for name, value in signing_headers.items():
            _set_header(headers, name, value)
        block, names = canonical_headers_string(headers, scheme)

        return CanonicalForm(
            host=host,
            canonical_uri=canonical_uri(path),
            canonical_query_string=canonical_query_string(params),
            canonical_headers=block,
            signed_header_names=names,
            body_hash_hex=body_hash,
            query_params=params,
            method=(descriptor.method or "GET").upper(),
            signing_headers=signing_headers,
        )

    def string_to_sign(self, form: CanonicalForm) -> str:
        """Return the string to sign for a canonical form."""
        return build_string_to_sign(
            self.scheme.algorithm, form.canonical_request
        )

    def authorization(self, form: CanonicalForm, credential: Credential) -> str:
        """Return the ``Authorization`` value for a canonical form."""
        signature = hmac_sha256_hex(
            credential.access_key_secret, self.string_to_sign(form)
        )
        return build_authorization(
            self.scheme.algorithm,
            credential.access_key_id,
            form.signed_headers,
            signature,
        )

    def sign(
        self, descriptor: RequestDescriptor, credential: Credential
    ) -> RequestDescriptor:
        """Sign a request in place.

        Adds host, date, nonce, action, version, content hash and
        ``Authorization`` headers.  Nothing is written when signing fails.

        Args:
            descriptor: Request description; its headers are extended.
            credential: Access key pair.

        Returns:
            The same descriptor.

        Raises:
            MissingMandatoryParameterError: If Action or Version is absent.
            MalformedInputError: If parameters or body cannot be encoded.
        """
        return self.attach(
            descriptor, self.canonicalize(descriptor, credential), credential
        )

    def attach(
        self,
        descriptor: RequestDescriptor,
        form: CanonicalForm,
        credential: Credential,
    ) -> RequestDescriptor:
        """Write the headers of an already computed form onto a descriptor.

        Args:
            descriptor: The descriptor ``form`` was computed from.
            form: Result of ``canonicalize``.
            credential: Access key pair.

        Returns:
            The same descriptor.
        """
        logger.debug("Canonical request:\n%s", form.canonical_request)

        authorization = self.authorization(form, credential)
        for name, value in form.signing_headers.items():
            _set_header(descriptor.headers, name, value)
        _set_header(descriptor.headers, AUTHORIZATION_HEADER, authorization)

        logger.debug(
            "Signed %s %s%s (action=%s, signed headers: %s)",
            form.method,
            form.host,
            form.canonical_uri,
            form.signing_headers[self.scheme.action_header],
            form.signed_headers,
        )
        return descriptor


_default_signer = RequestSigner()


def sign(
    descriptor: RequestDescriptor, credential: Credential
) -> RequestDescriptor:
    """Sign a request with the default ACS3 scheme.

    See ``RequestSigner.sign``.
    """
    return _default_signer.sign(descriptor, credential)
