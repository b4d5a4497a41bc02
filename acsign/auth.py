# Copyright (c) 2026 Pyry Haulos
#
# This software is released under the MIT License.
# https://opensource.org/licenses/MIT

"""httpx integration.

``AcsAuth`` plugs the signer into an ``httpx.Client`` so every request it
sends carries ACS3 headers::

    client = httpx.Client(auth=AcsAuth(credential))
    client.get(
        "https://ecs.cn-hangzhou.aliyuncs.com/",
        params={"Action": "DescribeRegions", "Version": "2014-05-26"},
    )

Nothing in this package sends requests; the caller owns the client.
"""

from __future__ import annotations

import logging
from collections.abc import Generator

import httpx

from acsign.signing import RequestSigner
from acsign.types import ACS3_SCHEME, Credential, RequestDescriptor


logger = logging.getLogger(__name__)

#: API version used by the credential test request (ECS).
ECS_API_VERSION = "2014-05-26"


def descriptor_from_request(request: httpx.Request) -> RequestDescriptor:
    """Build a descriptor from an httpx request whose body has been read."""
    return RequestDescriptor(
        method=request.method,
        url=str(request.url),
        headers=dict(request.headers.items()),
        body=request.content,
    )


class AcsAuth(httpx.Auth):
    """httpx auth flow that signs each request with ACS3-HMAC-SHA256.

    Attributes:
        credential: Access key pair used for every request.
        signer: Signer instance; one with the default scheme if omitted.
    """

    requires_request_body = True

    def __init__(
        self, credential: Credential, signer: RequestSigner | None = None
    ) -> None:
        self.credential = credential
        self.signer = signer or RequestSigner()

    def auth_flow(
        self, request: httpx.Request
    ) -> Generator[httpx.Request, httpx.Response, None]:
        descriptor = descriptor_from_request(request)
        form = self.signer.canonicalize(descriptor, self.credential)
        self.signer.attach(descriptor, form, self.credential)
        request.url = request.url.copy_with(
            query=form.canonical_query_string.encode("ascii")
        )
        for name, value in descriptor.headers.items():
            request.headers[name] = value
        logger.debug(
            "Attached ACS3 signature to %s %s", request.method, request.url
        )
        yield request


def credential_test_request(
    credential: Credential, *, endpoint: str | None = None
) -> httpx.Request:
    """Build an unsigned ``DescribeRegions`` request for checking a key pair.

    Send it with ``AcsAuth``; a 200 response means the key pair and region
    are accepted.

    Args:
        credential: Key pair; its region picks the endpoint.
        endpoint: Host override.  Defaults to the regional ECS endpoint.

    Returns:
        An ``httpx.Request`` ready to be sent.
    """
    host = endpoint or ACS3_SCHEME.default_host(credential.region)
    return httpx.Request(
        "GET",
        f"https://{host}/",
        params={
            "Action": "DescribeRegions",
            "Version": ECS_API_VERSION,
            "Format": "JSON",
        },
    )
