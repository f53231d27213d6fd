"""Configuration loading for the AVN Cloud client."""

from __future__ import annotations

import json
import os
from dataclasses import dataclass, fields
from pathlib import Path

import keyring

from avncloud.constants import (
    ALPHA_URL,
    DEFAULT_HOST_ID,
    DEFAULT_TIMEOUT_SECONDS,
    PRODUCTION_URL,
)
from avncloud.models import Environment

SERVICE_NAME = "avncloud-device"
KEY_NAME = "device_jwt"
TOKEN_ENV_VAR = "AVNCLOUD_DEVICE_JWT"

DEFAULT_CONFIG_PATH = Path("config/avncloud.json")


def lookup_device_token() -> tuple[str | None, str | None]:
    """Find the device token and say where it came from.

    The system keyring is consulted first, then the ``AVNCLOUD_DEVICE_JWT``
    environment variable.

    Returns:
        ``(token, source)`` where source is ``"keyring"`` or ``"environment"``,
        or ``(None, None)`` if neither has one.
    """
    token = keyring.get_password(SERVICE_NAME, KEY_NAME)
    if token:
        return token, "keyring"
    token = os.environ.get(TOKEN_ENV_VAR)
    if token:
        return token, "environment"
    return None, None


def get_device_token() -> str | None:
    """Get the device token: system keyring first, then env var fallback."""
    return lookup_device_token()[0]


def store_device_token(token: str) -> None:
    """Save *token* in the system keyring.

    Raises:
        ValueError: If the token is empty or whitespace.
        KeyringError: If the keyring backend refuses the write.
    """
    token = token.strip()
    if not token:
        raise ValueError("Device token cannot be empty")
    keyring.set_password(SERVICE_NAME, KEY_NAME, token)


def clear_device_token() -> bool:
    """Remove the keyring copy of the device token.

    The environment variable is never touched.

    Returns:
        ``False`` if the keyring held no token.
    """
    if not keyring.get_password(SERVICE_NAME, KEY_NAME):
        return False
    keyring.delete_password(SERVICE_NAME, KEY_NAME)
    return True


@dataclass
class ClientConfig:
    """Settings shared by the upload pipeline and the analytics reporter."""

    environment: Environment = Environment.PRODUCTION
    production_url: str = PRODUCTION_URL
    alpha_url: str = ALPHA_URL
    host_id: str = DEFAULT_HOST_ID
    timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS
    device_properties_path: Path | None = None

    def __post_init__(self) -> None:
        """Normalise the environment and path fields."""
        self.environment = Environment.parse(self.environment)
        if isinstance(self.device_properties_path, str):
            self.device_properties_path = Path(self.device_properties_path)

    @property
    def endpoints(self) -> dict[Environment, str]:
        return {
            Environment.PRODUCTION: self.production_url,
            Environment.ALPHA: self.alpha_url,
        }


def load_client_config(config_path: Path | None = None) -> ClientConfig:
    """Load client configuration from JSON, falling back to defaults.

    Reads ``config/avncloud.json`` when *config_path* is ``None``. A missing
    file yields the defaults; unknown keys are ignored.

    Args:
        config_path: Optional explicit path to the config file.

    Returns:
        ClientConfig with values from file merged over defaults.

    Raises:
        ValueError: If the file names an unknown environment.
    """
    if config_path is None:
        config_path = DEFAULT_CONFIG_PATH

    data: dict = {}
    if config_path.exists():
        with open(config_path) as f:
            data = json.load(f)

    field_names = {f.name for f in fields(ClientConfig)}
    kwargs = {k: v for k, v in data.items() if k in field_names}
    return ClientConfig(**kwargs)
