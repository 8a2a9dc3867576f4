"""Provider configuration loading and management"""

import os
import yaml
from dataclasses import asdict
from pathlib import Path
from typing import Dict, Any, Optional, Tuple

from ..core.errors import ValidationError
from ..core.models import ProviderConfiguration
from ..utils.logger import setup_logger

# Each setting is resolved from the first environment variable that is set
ENVIRONMENT_VARIABLES: Dict[str, Tuple[str, str]] = {
    "subscription_id": ("AZURE_SUBSCRIPTION_ID", "ARM_SUBSCRIPTION_ID"),
    "client_id": ("AZURE_CLIENT_ID", "ARM_CLIENT_ID"),
    "client_secret": ("AZURE_CLIENT_SECRET", "ARM_CLIENT_SECRET"),
    "tenant_id": ("AZURE_TENANT_ID", "ARM_TENANT_ID"),
    "environment": ("AZURE_ENVIRONMENT", "ARM_ENVIRONMENT"),
}

ENVIRONMENT_ALIASES = {
    "public": "public",
    "azurepubliccloud": "public",
    "usgovernment": "usgovernment",
    "azureusgovernmentcloud": "usgovernment",
    "china": "china",
    "azurechinacloud": "china",
}


class ConfigurationLoader:
    """Load provider configuration from a YAML file, the environment and overrides"""

    def __init__(self):
        self.logger = setup_logger(self.__class__.__name__)

    def load_configuration(
        self,
        config_file: Optional[str] = None,
        file_config: Optional[Dict[str, Any]] = None,
        **overrides
    ) -> ProviderConfiguration:
        """Resolve settings: defaults, then file, then environment, then overrides

        ``file_config`` is an already decoded ``provider`` block; when given it
        takes the place of reading a configuration file.
        """

        config_dict = asdict(ProviderConfiguration())

        if file_config is not None:
            if not isinstance(file_config, dict):
                raise ValidationError("provider", "expected a mapping")
            self.logger.debug("Using provider block from the declarations")
        elif config_file:
            file_config = self._load_from_file(config_file)
        else:
            file_config = self._load_default_config()
        if file_config:
            config_dict.update({k: v for k, v in file_config.items() if k in config_dict})

        config_dict.update(self._load_from_environment())
        config_dict.update({k: v for k, v in overrides.items() if v is not None})

        config = ProviderConfiguration(**config_dict)
        self._validate_configuration(config)
        return config

    def _load_from_file(self, config_file: str) -> Optional[Dict[str, Any]]:
        """Read the ``provider`` block of a YAML file"""

        config_path = Path(config_file)
        if not config_path.exists():
            self.logger.warning(f"Configuration file not found: {config_file}")
            return None

        if config_path.suffix.lower() not in [".yml", ".yaml"]:
            raise ValidationError("config_file", f"unsupported config file format: {config_path.suffix}")

        with open(config_path, "r") as f:
            data = yaml.safe_load(f) or {}

        self.logger.info(f"Loaded configuration from: {config_file}")
        provider = data.get("provider", {}) if isinstance(data, dict) else {}
        if not isinstance(provider, dict):
            raise ValidationError("provider", "expected a mapping")
        return provider

    def _load_default_config(self) -> Optional[Dict[str, Any]]:
        """Try the default configuration locations"""

        default_locations = [
            "azurepreview.yml",
            "azurepreview.yaml",
            os.path.expanduser("~/.azurepreview.yml"),
            os.path.expanduser("~/.config/azurepreview/config.yml"),
        ]

        for location in default_locations:
            if os.path.exists(location):
                return self._load_from_file(location)

        return None

    def _load_from_environment(self) -> Dict[str, Any]:
        env_config = {}

        for config_key, env_vars in ENVIRONMENT_VARIABLES.items():
            for env_var in env_vars:
                value = os.getenv(env_var)
                if value:
                    env_config[config_key] = value
                    if config_key != "client_secret":
                        self.logger.debug(f"Loaded {config_key} from {env_var}")
                    break

        return env_config

    def _validate_configuration(self, config: ProviderConfiguration) -> None:
        for key in ("subscription_id", "client_id", "client_secret", "tenant_id"):
            value = getattr(config, key)
            if value is not None and not str(value).strip():
                raise ValidationError(key, "must not be empty")

        if config.tenant_id and not (config.client_id and config.client_secret):
            raise ValidationError("tenant_id", "requires client_id and client_secret to be set")

        if not config.environment:
            raise ValidationError("environment", "is required")
        config.environment = normalize_environment(config.environment)

        self.logger.debug("Configuration validation completed")


def normalize_environment(name: str) -> str:
    """Map a cloud name or alias to its canonical key"""
    canonical = ENVIRONMENT_ALIASES.get(name.strip().lower())
    if canonical is None:
        raise ValidationError(
            "environment", f"unknown environment {name!r}, expected one of {sorted(set(ENVIRONMENT_ALIASES.values()))}"
        )
    return canonical
