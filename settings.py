"""Settings - loaded once from a dotenv file plus KPLC_* environment overrides"""
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from urllib.parse import urlparse

from dotenv import dotenv_values

from errors import ConfigError

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = "kplc-bill-alert.env"
ENV_PREFIX = "KPLC_"

DEFAULT_GRANT_TYPE = "client_credentials"
DEFAULT_PUSHOVER_API_URL = "https://api.pushover.net/1/messages.json"

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off", ""}


@dataclass(frozen=True)
class KPLCSettings:
    """
    Billing provider settings.

    Attributes:
        account_number: Account reference to fetch the bill for.
        basic_auth: Ready-made Authorization header value ("Basic <base64>").
        token_url: OAuth2 token endpoint.
        bill_url: Bill endpoint.
        token_grant_type: OAuth2 grant type.
        token_scope: OAuth2 scope.
    """
    account_number: str
    basic_auth: str = field(repr=False)
    token_url: str
    bill_url: str
    token_scope: str
    token_grant_type: str = DEFAULT_GRANT_TYPE


@dataclass(frozen=True)
class PushoverSettings:
    enabled: bool
    token: str = field(default="", repr=False)
    user_key: str = field(default="", repr=False)
    api_url: str = DEFAULT_PUSHOVER_API_URL


@dataclass(frozen=True)
class Settings:
    kplc: KPLCSettings
    pushover: PushoverSettings


def load_settings(config_path: str | None = DEFAULT_CONFIG_PATH, environ=None) -> Settings:
    """
    Load and validate settings.

    Values from the dotenv file are read first, then any KPLC_* variable
    in the environment overrides them.

    Args:
        config_path: dotenv file to read. A missing file is an error unless
            it is the default path. None skips the file entirely.
        environ: Mapping to read overrides from (default: os.environ)

    Raises:
        ConfigError: On any missing or malformed value.
    """
    values: dict[str, str] = {}

    if config_path is not None:
        if Path(config_path).is_file():
            logger.debug(f"Settings: Reading {config_path}")
            values.update({k: v for k, v in dotenv_values(config_path).items() if v is not None})
        elif config_path != DEFAULT_CONFIG_PATH:
            raise ConfigError(f"config file not found: {config_path}")

    env = os.environ if environ is None else environ
    values.update({k: v for k, v in env.items() if k.startswith(ENV_PREFIX)})

    kplc = KPLCSettings(
        account_number=_required(values, "ACCOUNT_NUMBER"),
        basic_auth=_required(values, "BASIC_AUTH"),
        token_url=_https_url("TOKEN_URL", _required(values, "TOKEN_URL")),
        bill_url=_https_url("BILL_URL", _required(values, "BILL_URL")),
        token_scope=_required(values, "TOKEN_SCOPE"),
        token_grant_type=_optional(values, "TOKEN_GRANT_TYPE") or DEFAULT_GRANT_TYPE
    )
    if not kplc.basic_auth.startswith("Basic "):
        raise ConfigError(f"{ENV_PREFIX}BASIC_AUTH must be a header value of the form 'Basic <base64>'")

    enabled = _boolean(values, "PUSHOVER_ENABLED")
    pushover = PushoverSettings(
        enabled=enabled,
        token=_optional(values, "PUSHOVER_TOKEN"),
        user_key=_optional(values, "PUSHOVER_USER_KEY"),
        api_url=_https_url(
            "PUSHOVER_API_URL",
            _optional(values, "PUSHOVER_API_URL") or DEFAULT_PUSHOVER_API_URL
        )
    )
    if enabled and not (pushover.token and pushover.user_key):
        raise ConfigError(
            f"Pushover is enabled but {ENV_PREFIX}PUSHOVER_TOKEN or "
            f"{ENV_PREFIX}PUSHOVER_USER_KEY is not configured"
        )

    return Settings(kplc=kplc, pushover=pushover)


def _optional(values: dict, key: str) -> str:
    return values.get(ENV_PREFIX + key, "").strip()


def _required(values: dict, key: str) -> str:
    value = _optional(values, key)
    if not value:
        raise ConfigError(f"{ENV_PREFIX}{key} not configured")
    return value


def _boolean(values: dict, key: str) -> bool:
    value = _optional(values, key).lower()
    if value in _TRUE_VALUES:
        return True
    if value in _FALSE_VALUES:
        return False
    raise ConfigError(f"{ENV_PREFIX}{key} must be a boolean, got {value!r}")


def _https_url(key: str, url: str) -> str:
    parsed = urlparse(url)
    if parsed.scheme != "https" or not parsed.netloc:
        raise ConfigError(f"{ENV_PREFIX}{key} must be an https:// URL, got {url!r}")
    return url
