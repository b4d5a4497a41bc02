# Copyright (c) 2026 Pyry Haulos
#
# This software is released under the MIT License.
# https://opensource.org/licenses/MIT

"""acsign CLI: multi-command entry point.

Provides ``acsign <command>`` for signing requests from the shell, mostly
to debug signature mismatches against the API.  Running ``acsign`` with no
arguments prints usage information.

Subcommands:

* ``init``     : create a stub config file
* ``sign``     : sign a request and print its headers as JSON
* ``canonical``: print the canonical request and string to sign
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from datetime import UTC, datetime
from pathlib import Path

from acsign.config import ConfigError, Profile, SignerConfig, get_config_path
from acsign.logging import configure_logging
from acsign.params import MalformedInputError, parse_json_params
from acsign.signing import AuthenticationError, RequestSigner
from acsign.types import RequestDescriptor, SigningScheme


logger = logging.getLogger(__name__)

# Known subcommand names.
_SUBCOMMANDS = frozenset({"init", "sign", "canonical"})

_USAGE = """\
usage: acsign <command> [args]

commands:
  init       Create a stub config file
  sign       Sign a request and print its headers as JSON
  canonical  Print the canonical request and string to sign

Run 'acsign <command> --help' for command-specific help.\
"""

#: Errors reported as a single line with exit code 1.
_USER_ERRORS = (ConfigError, AuthenticationError, MalformedInputError)


# ── Argument helpers ────────────────────────────────────────────────


def _parse_timestamp(value: str) -> datetime:
    """Parse ``--timestamp`` (``YYYY-MM-DDTHH:MM:SSZ``)."""
    try:
        return datetime.strptime(value, "%Y-%m-%dT%H:%M:%SZ").replace(
            tzinfo=UTC
        )
    except ValueError:
        raise argparse.ArgumentTypeError(
            f"expected YYYY-MM-DDTHH:MM:SSZ, got {value!r}"
        ) from None


def _request_parser(prog: str, description: str) -> argparse.ArgumentParser:
    """Build the parser shared by ``sign`` and ``canonical``."""
    parser = argparse.ArgumentParser(prog=prog, description=description)
    parser.add_argument("--method", default="GET", help="HTTP method")
    parser.add_argument(
        "--url",
        default="",
        help="Request URL; the profile endpoint is used when it has no host",
    )
    parser.add_argument(
        "--query",
        action="append",
        default=[],
        metavar="KEY=VALUE",
        help="Query parameter (repeatable)",
    )
    parser.add_argument(
        "--query-json",
        default="",
        metavar="JSON",
        help="Query parameters as a JSON object (may be nested)",
    )
    parser.add_argument(
        "--header",
        action="append",
        default=[],
        metavar="NAME:VALUE",
        help="Request header (repeatable)",
    )
    body = parser.add_mutually_exclusive_group()
    body.add_argument("--body", help="Request body text")
    body.add_argument(
        "--body-file", type=Path, help="Read the body from a file"
    )
    parser.add_argument("--profile", help="Config profile name")
    parser.add_argument("--config", type=Path, help="Config file path")
    parser.add_argument(
        "--timestamp",
        type=_parse_timestamp,
        help="Fixed signing time (YYYY-MM-DDTHH:MM:SSZ)",
    )
    parser.add_argument("--nonce", help="Fixed signature nonce")
    parser.add_argument(
        "--debug", action="store_true", help="Enable debug logging"
    )
    return parser


def _split_pair(raw: str, sep: str, what: str) -> tuple[str, str]:
    name, found, value = raw.partition(sep)
    if not found or not name.strip():
        raise MalformedInputError(f"Invalid {what} {raw!r}")
    return name.strip(), value


def _descriptor_from_args(
    args: argparse.Namespace, profile: Profile
) -> RequestDescriptor:
    """Build the request descriptor described by the command line."""
    params: dict[str, object] = parse_json_params(args.query_json)
    for raw in args.query:
        key, value = _split_pair(raw, "=", "query parameter")
        params[key] = value

    headers: dict[str, str] = {}
    for raw in args.header:
        name, value = _split_pair(raw, ":", "header")
        headers[name] = value.strip()

    body: str | bytes | None = args.body
    if args.body_file is not None:
        try:
            body = args.body_file.read_bytes()
        except OSError as e:
            raise MalformedInputError(f"Cannot read body file: {e}") from e

    return RequestDescriptor(
        method=args.method,
        url=args.url,
        host=profile.endpoint or "",
        headers=headers,
        query_params=params,
        body=body,
    )


def _signer_from_args(
    args: argparse.Namespace, scheme: SigningScheme
) -> RequestSigner:
    """Build a signer honouring ``--timestamp`` and ``--nonce``."""
    timestamp: datetime | None = args.timestamp
    nonce: str | None = args.nonce
    return RequestSigner(
        scheme,
        clock=(lambda: timestamp) if timestamp is not None else None,
        nonce_factory=(lambda: nonce) if nonce is not None else None,
    )


def _prepare(
    args: argparse.Namespace,
) -> tuple[RequestSigner, RequestDescriptor, Profile]:
    config = SignerConfig.load(args.config)
    profile = config.profile(args.profile)
    logger.debug("Using profile %s", profile.name)
    descriptor = _descriptor_from_args(args, profile)
    return _signer_from_args(args, config.scheme), descriptor, profile


def _setup_logging(args: argparse.Namespace) -> None:
    configure_logging(level=logging.DEBUG if args.debug else logging.WARNING)


# ── init subcommand ─────────────────────────────────────────────────


def cmd_init(argv: list[str]) -> int:
    """Create a stub config file if none exists.

    Args:
        argv: ``--config PATH`` selects where to write; defaults to the
            XDG config path.

    Returns:
        Exit code (0; argparse exits 2 on bad arguments).
    """
    parser = argparse.ArgumentParser(
        prog="acsign init", description="Create a stub config file."
    )
    parser.add_argument(
        "--config", type=Path, help="Config file path to create"
    )
    args = parser.parse_args(argv)
    config_path: Path = args.config or get_config_path()

    if config_path.exists():
        print(f"Config already exists: {config_path}")
        return 0

    config_path.parent.mkdir(parents=True, exist_ok=True)
    config_path.write_text(_STUB_CONFIG)
    print(f"Created stub config: {config_path}")
    return 0


# ── sign subcommand ─────────────────────────────────────────────────


def cmd_sign(argv: list[str]) -> int:
    """Sign a request and print the resulting headers as JSON.

    Args:
        argv: Request arguments (see ``acsign sign --help``).

    Returns:
        Exit code (0 on success, 1 on error).
    """
    args = _request_parser(
        "acsign sign", "Sign a request and print its headers as JSON."
    ).parse_args(argv)
    _setup_logging(args)

    try:
        signer, descriptor, profile = _prepare(args)
        signer.sign(descriptor, profile.credential)
    except _USER_ERRORS as e:
        print(f"acsign: {e}", file=sys.stderr)
        return 1

    print(json.dumps(descriptor.headers, indent=2, ensure_ascii=False))
    return 0


# ── canonical subcommand ────────────────────────────────────────────


def cmd_canonical(argv: list[str]) -> int:
    """Print the canonical request and the string to sign.

    Args:
        argv: Request arguments (see ``acsign canonical --help``).

    Returns:
        Exit code (0 on success, 1 on error).
    """
    args = _request_parser(
        "acsign canonical",
        "Print the canonical request and string to sign for a request.",
    ).parse_args(argv)
    _setup_logging(args)

    try:
        signer, descriptor, profile = _prepare(args)
        form = signer.canonicalize(descriptor, profile.credential)
    except _USER_ERRORS as e:
        print(f"acsign: {e}", file=sys.stderr)
        return 1

    print(form.canonical_request)
    print()
    print(signer.string_to_sign(form))
    return 0


# ── CLI plumbing ────────────────────────────────────────────────────


_DISPATCH: dict[str, str] = {
    "init": "cmd_init",
    "sign": "cmd_sign",
    "canonical": "cmd_canonical",
}


def cli() -> None:
    """Entry point for ``acsign``.

    When no arguments are given, prints usage information.
    """
    argv = sys.argv[1:]

    if not argv or argv[0] == "--help":
        print(_USAGE)
        sys.exit(0)

    if argv[0] not in _SUBCOMMANDS:
        print(f"acsign: unknown command '{argv[0]}'", file=sys.stderr)
        print(_USAGE, file=sys.stderr)
        sys.exit(2)

    command = argv[0]
    rest = argv[1:]

    # Look up handler by name so tests can mock individual commands.
    import acsign.cli as _self

    handler = getattr(_self, _DISPATCH[command])
    sys.exit(handler(rest))


#: Stub configuration template written by ``acsign init``.
_STUB_CONFIG = """\
# acsign configuration
#
# Values tagged !env are read from the environment (or from a .env file
# next to this one).

# signing:
#   algorithm: ACS3-HMAC-SHA256
#   header_prefix: x-acs-
#   endpoint: "ecs.{region}.aliyuncs.com"

default_profile: default

profiles:
  default:
    region: cn-hangzhou
    access_key_id: !env ALIBABA_CLOUD_ACCESS_KEY_ID
    access_key_secret: !env ALIBABA_CLOUD_ACCESS_KEY_SECRET
"""
