# Copyright (c) 2026 Pyry Haulos
#
# This software is released under the MIT License.
# https://opensource.org/licenses/MIT

"""Configuration for the ``acsign`` CLI.

Configuration is loaded from a YAML file.  The default location follows
the XDG Base Directory Specification:

    ``$XDG_CONFIG_HOME/acsign/acsign.yaml``
    (typically ``~/.config/acsign/acsign.yaml``)

``!env VAR_NAME`` tags resolve values from environment variables, after
``.env`` files have been loaded (see ``acsign.dotenv_loader``).  Example::

    signing:
      algorithm: ACS3-HMAC-SHA256
      header_prefix: x-acs-
      endpoint: "ecs.{region}.aliyuncs.com"

    default_profile: default

    profiles:
      default:
        region: cn-hangzhou
        access_key_id: !env ALIBABA_CLOUD_ACCESS_KEY_ID
        access_key_secret: !env ALIBABA_CLOUD_ACCESS_KEY_SECRET

When no config file exists, ``SignerConfig.load`` builds a single
``default`` profile from the ``ALIBABA_CLOUD_*`` environment variables.

The library itself never reads configuration; callers construct
``Credential`` and ``SigningScheme`` directly.
"""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path

import yaml
from platformdirs import user_config_path

from acsign.dotenv_loader import load_dotenv_once
from acsign.logging import register_credential
from acsign.types import (
    ACS3_SCHEME,
    DEFAULT_REGION,
    Credential,
    SigningScheme,
)


logger = logging.getLogger(__name__)

#: Application name for XDG path resolution.
_APP_NAME = "acsign"

#: Environment variables read when no config file exists.
ENV_ACCESS_KEY_ID = "ALIBABA_CLOUD_ACCESS_KEY_ID"
ENV_ACCESS_KEY_SECRET = "ALIBABA_CLOUD_ACCESS_KEY_SECRET"
ENV_REGION = "ALIBABA_CLOUD_REGION_ID"

DEFAULT_PROFILE = "default"


def get_config_path() -> Path:
    """Return the default config path (``~/.config/acsign/acsign.yaml``)."""
    return user_config_path(_APP_NAME) / "acsign.yaml"


def get_dotenv_path() -> Path:
    """Return the ``.env`` path inside the XDG config directory."""
    return user_config_path(_APP_NAME) / ".env"


class ConfigError(Exception):
    """Base exception for configuration errors."""


# ---------------------------------------------------------------------------
# YAML tag placeholders
# ---------------------------------------------------------------------------


class _EnvVar:
    """Placeholder for an unresolved ``!env VAR_NAME`` tag."""

    def __init__(self, var_name: str) -> None:
        self.var_name = var_name


def _env_constructor(loader: yaml.SafeLoader, node: yaml.Node) -> _EnvVar:
    """Handle ``!env VAR_NAME`` in YAML."""
    value = loader.construct_scalar(node)  # type: ignore[arg-type]
    return _EnvVar(str(value))


def _make_loader() -> type[yaml.SafeLoader]:
    """Create a YAML loader that understands ``!env``."""

    class EnvLoader(yaml.SafeLoader):
        pass

    EnvLoader.add_constructor("!env", _env_constructor)
    return EnvLoader


# ---------------------------------------------------------------------------
# Value resolution
# ---------------------------------------------------------------------------


def _raw_resolve(value: object) -> str | None:
    """Resolve an ``_EnvVar`` to its string value, or stringify literals.

    Returns None if the value is None or the env var is not set.
    """
    if isinstance(value, _EnvVar):
        return os.environ.get(value.var_name)
    if value is None:
        return None
    return str(value)


def _resolve(
    value: object, *, default: str | None = None, required: str = ""
) -> str | None:
    """Resolve a YAML value to a string.

    Args:
        value: Raw value from YAML (may be ``_EnvVar``, None, or literal).
        default: Returned when the value is absent and not required.
        required: Human-readable field name.  When set, a missing or empty
            value raises ``ConfigError``.

    Returns:
        Resolved string, or ``default``.
    """
    resolved = _raw_resolve(value)
    if resolved is None or (required and not resolved):
        if required:
            if isinstance(value, _EnvVar):
                raise ConfigError(
                    f"Required config '{required}': environment variable "
                    f"'{value.var_name}' is not set"
                )
            raise ConfigError(f"Required config '{required}' is missing")
        return default
    return resolved


def _mapping(raw: object, where: str) -> dict:
    if raw is None:
        return {}
    if not isinstance(raw, dict):
        raise ConfigError(f"'{where}' must be a YAML mapping")
    return raw


# ---------------------------------------------------------------------------
# Config objects
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Profile:
    """A named credential plus optional endpoint override.

    Attributes:
        name: Profile name (key under ``profiles``).
        credential: Access key pair and region.
        endpoint: Host used for requests that name none.  None means the
            scheme's regional endpoint.
    """

    name: str
    credential: Credential
    endpoint: str | None = None


@dataclass(frozen=True)
class SignerConfig:
    """Top-level CLI configuration.

    Attributes:
        scheme: Signing scheme built from the ``signing`` section.
        profiles: Profiles by name.
        default_profile: Profile used when none is requested.
    """

    scheme: SigningScheme = ACS3_SCHEME
    profiles: dict[str, Profile] = field(default_factory=dict)
    default_profile: str = DEFAULT_PROFILE

    def profile(self, name: str | None = None) -> Profile:
        """Return a profile by name (default profile when None).

        Raises:
            ConfigError: If the profile does not exist.
        """
        name = name or self.default_profile
        try:
            return self.profiles[name]
        except KeyError:
            known = ", ".join(sorted(self.profiles)) or "none"
            raise ConfigError(
                f"Unknown profile '{name}' (configured: {known})"
            ) from None

    @classmethod
    def load(cls, config_path: Path | None = None) -> "SignerConfig":
        """Load from YAML, or from the environment if the file is absent.

        An explicitly given path must exist.
        """
        if config_path is not None:
            return cls.from_yaml(config_path)
        default_path = get_config_path()
        if default_path.exists():
            return cls.from_yaml(default_path)
        logger.debug("No config at %s, using environment", default_path)
        return cls.from_env()

    @classmethod
    def from_yaml(cls, config_path: Path | None = None) -> "SignerConfig":
        """Load configuration from a YAML file.

        A ``.env`` file is loaded first if present, then ``!env`` tags are
        resolved.

        Args:
            config_path: Path to YAML config file.  Defaults to
                ``~/.config/acsign/acsign.yaml`` (XDG).

        Returns:
            SignerConfig instance.

        Raises:
            ConfigError: If the file is missing or values are invalid.
        """
        load_dotenv_once()

        if config_path is None:
            config_path = get_config_path()

        if not config_path.exists():
            raise ConfigError(f"Config file not found: {config_path}")

        with open(config_path) as f:
            try:
                raw = yaml.load(f, Loader=_make_loader())
            except yaml.YAMLError as e:
                raise ConfigError(f"Invalid YAML in {config_path}: {e}") from e

        if not isinstance(raw, dict):
            raise ConfigError(
                f"Config file must be a YAML mapping: {config_path}"
            )

        config = cls._from_raw(raw)
        logger.info(
            "Config loaded from %s: %d profile(s)",
            config_path,
            len(config.profiles),
        )
        return config

    @classmethod
    def from_env(cls) -> "SignerConfig":
        """Build a single default profile from ``ALIBABA_CLOUD_*`` variables.

        Raises:
            ConfigError: If the key ID or secret is not set.
        """
        load_dotenv_once()
        raw_profile = {
            "access_key_id": _EnvVar(ENV_ACCESS_KEY_ID),
            "access_key_secret": _EnvVar(ENV_ACCESS_KEY_SECRET),
            "region": _EnvVar(ENV_REGION),
        }
        profile = _parse_profile(DEFAULT_PROFILE, raw_profile)
        return cls(profiles={DEFAULT_PROFILE: profile})

    @classmethod
    def _from_raw(cls, raw: dict) -> "SignerConfig":
        """Build config from a parsed (but unresolved) YAML dict."""
        scheme = _parse_scheme(_mapping(raw.get("signing"), "signing"))

        raw_profiles = _mapping(raw.get("profiles"), "profiles")
        profiles: dict[str, Profile] = {}
        for name, profile_raw in raw_profiles.items():
            name = str(name)
            profiles[name] = _parse_profile(
                name, _mapping(profile_raw, f"profiles.{name}")
            )

        default_profile = _resolve(
            raw.get("default_profile"), default=DEFAULT_PROFILE
        )
        assert default_profile is not None
        if profiles and default_profile not in profiles:
            raise ConfigError(
                f"default_profile '{default_profile}' is not a configured "
                f"profile"
            )
        return cls(
            scheme=scheme, profiles=profiles, default_profile=default_profile
        )


def _parse_scheme(raw: dict) -> SigningScheme:
    """Parse the ``signing`` section into a SigningScheme."""
    algorithm = _resolve(raw.get("algorithm"), default=ACS3_SCHEME.algorithm)
    prefix = _resolve(
        raw.get("header_prefix"), default=ACS3_SCHEME.header_prefix
    )
    endpoint = _resolve(
        raw.get("endpoint"), default=ACS3_SCHEME.endpoint_template
    )
    assert algorithm is not None and prefix is not None
    assert endpoint is not None

    raw_extra = raw.get("signed_headers")
    if raw_extra is None:
        extra = ACS3_SCHEME.extra_signed_headers
    elif isinstance(raw_extra, list):
        extra = frozenset(str(name).lower() for name in raw_extra)
    else:
        raise ConfigError("'signing.signed_headers' must be a YAML list")

    if not prefix:
        raise ConfigError("'signing.header_prefix' must not be empty")
    try:
        endpoint.format(region=DEFAULT_REGION)
    except (KeyError, IndexError, ValueError) as e:
        raise ConfigError(
            f"'signing.endpoint' may only use the {{region}} placeholder: "
            f"{endpoint}"
        ) from e

    return SigningScheme(
        algorithm=algorithm,
        header_prefix=prefix.lower(),
        extra_signed_headers=extra,
        endpoint_template=endpoint,
    )


def _parse_profile(name: str, raw: dict) -> Profile:
    """Parse a single profile, registering its secret for log redaction."""
    access_key_id = _resolve(
        raw.get("access_key_id"), required=f"profiles.{name}.access_key_id"
    )
    access_key_secret = _resolve(
        raw.get("access_key_secret"),
        required=f"profiles.{name}.access_key_secret",
    )
    region = _resolve(raw.get("region")) or DEFAULT_REGION
    assert access_key_id is not None and access_key_secret is not None

    credential = Credential(
        access_key_id=access_key_id,
        access_key_secret=access_key_secret,
        region=region,
    )
    register_credential(credential)
    return Profile(
        name=name,
        credential=credential,
        endpoint=_resolve(raw.get("endpoint")),
    )
