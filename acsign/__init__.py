# Copyright (c) 2026 Pyry Haulos
#
# This software is released under the MIT License.
# https://opensource.org/licenses/MIT

"""ACS3-HMAC-SHA256 request signing for Alibaba Cloud style APIs.

The signer turns a request description and an access key pair into the
``Authorization`` header the API verifies.  It performs no I/O; transport
(e.g. httpx via ``acsign.auth.AcsAuth``) and credential storage belong to
the caller.
"""

from acsign.params import (
    MalformedInputError,
    flatten_params,
    merge_query,
    parse_json_params,
)
from acsign.signing import (
    AUTHORIZATION_HEADER,
    AuthenticationError,
    MissingMandatoryParameterError,
    RequestSigner,
    percent_encode,
    sign,
)
from acsign.types import (
    ACS3_SCHEME,
    ALGORITHM_ACS3_HMAC_SHA256,
    CanonicalForm,
    Credential,
    RequestDescriptor,
    SigningScheme,
)


__all__ = [
    # signing
    "RequestSigner",
    "sign",
    "percent_encode",
    "AUTHORIZATION_HEADER",
    # types
    "Credential",
    "RequestDescriptor",
    "CanonicalForm",
    "SigningScheme",
    "ACS3_SCHEME",
    "ALGORITHM_ACS3_HMAC_SHA256",
    # params
    "flatten_params",
    "merge_query",
    "parse_json_params",
    # errors
    "AuthenticationError",
    "MissingMandatoryParameterError",
    "MalformedInputError",
]
