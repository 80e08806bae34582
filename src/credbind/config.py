"""Application configuration.

Configuration is a pydantic model. It can be built in code or loaded from a
YAML file, with a few settings overridable from the environment.
"""

from __future__ import annotations

import os
from typing import Any, Awaitable, Callable, Optional

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from credbind.credentials import ClientCredential, ClientSecret
from credbind.exceptions import INVALID_CONFIGURATION, ConfigurationError

DEFAULT_AUTHORITY = "https://login.microsoftonline.com/common/"
DEFAULT_BINDING_KEY_NAME = "CredbindBindingKey"


class AppTokenProviderParameters(BaseModel):
    """Request details handed to a custom app token provider."""

    scopes: list[str]
    correlation_id: str
    claims: Optional[str] = None
    tenant_id: Optional[str] = None


AppTokenProvider = Callable[[AppTokenProviderParameters], Awaitable[dict[str, Any]]]


class ApplicationConfig(BaseModel):
    """Configuration of a confidential client application."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    client_id: str
    authority: str = DEFAULT_AUTHORITY
    client_credential: Optional[ClientCredential] = None
    app_token_provider: Optional[AppTokenProvider] = None
    client_capabilities: list[str] = Field(default_factory=list)
    experimental_features_enabled: bool = False
    managed_identity: bool = Field(
        default=False,
        description="Bind token requests to the process binding certificate",
    )
    binding_key_name: str = DEFAULT_BINDING_KEY_NAME

    @classmethod
    def from_yaml(cls, yaml_content: str) -> "ApplicationConfig":
        """Load configuration from YAML.

        A ``client_secret`` entry becomes a :class:`ClientSecret` credential.

        Raises:
            ConfigurationError: If the YAML or its fields are invalid.
        """
        try:
            data = yaml.safe_load(yaml_content) or {}
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid configuration YAML: {e}", INVALID_CONFIGURATION) from e
        if not isinstance(data, dict):
            raise ConfigurationError("Configuration must be a mapping", INVALID_CONFIGURATION)

        secret = data.pop("client_secret", None)
        if secret:
            data["client_credential"] = ClientSecret(secret)

        try:
            return cls(**data)
        except ValidationError as e:
            raise ConfigurationError(f"Invalid configuration: {e}", INVALID_CONFIGURATION) from e


def load_config(path: Optional[str] = None) -> ApplicationConfig:
    """Load configuration from a YAML file and the environment.

    Args:
        path: Optional path to config file. Falls back to the CREDBIND_CONFIG
            env variable or 'credbind.yaml' in the current directory.
    """
    config_path = path or os.getenv("CREDBIND_CONFIG", "credbind.yaml")
    content = ""
    if os.path.exists(config_path):
        with open(config_path) as f:
            content = f.read()
    elif path:
        raise ConfigurationError(f"Configuration file not found: {path}", INVALID_CONFIGURATION)

    data: dict[str, Any] = {}
    if content.strip():
        data = ApplicationConfig.from_yaml(content).model_dump(exclude_unset=True)

    env_client_id = os.getenv("CREDBIND_CLIENT_ID")
    if env_client_id:
        data["client_id"] = env_client_id
    env_authority = os.getenv("CREDBIND_AUTHORITY")
    if env_authority:
        data["authority"] = env_authority
    env_secret = os.getenv("CREDBIND_CLIENT_SECRET")
    if env_secret:
        data["client_credential"] = ClientSecret(env_secret)

    try:
        return ApplicationConfig(**data)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid configuration: {e}", INVALID_CONFIGURATION) from e
