"""Configuration helpers for the OOTD stylist app."""

from dataclasses import dataclass
from pathlib import Path
import os
from typing import Optional

DEFAULT_TAGGING_MODEL = "gemini-1.5-flash"
DEFAULT_OUTFIT_MODEL = "gemini-1.5-pro"
_TRUTHY = {"1", "true", "yes", "on"}
# Attributes read from an environment variable that is not their upper-cased name.
_ENV_NAMES = {
    "weather_api_key": "OPENWEATHER_API_KEY",
    "google_credentials_path": "GOOGLE_APPLICATION_CREDENTIALS",
}


class MissingCredentialError(RuntimeError):
    """Raised when a required provider credential is not configured."""


@dataclass
class AppConfig:
    """Configuration values for the OOTD app.

    Provider credentials are optional at construction time. Each workflow
    checks for the credential it needs at the point of use so that a guest
    can still browse a local closet without any keys configured.
    """

    gemini_api_key: Optional[str] = None
    tagging_model: str = DEFAULT_TAGGING_MODEL
    outfit_model: str = DEFAULT_OUTFIT_MODEL
    replicate_api_token: Optional[str] = None
    storage_bucket: Optional[str] = None
    google_credentials_path: Optional[str] = None
    firestore_project: Optional[str] = None
    weather_api_key: Optional[str] = None
    local_storage_dir: str = "data/local_storage"
    testing_mode: bool = False
    environment: str | None = None

    @classmethod
    def from_env(cls) -> "AppConfig":
        """Build a config from environment variables or an environment YAML file.

        Environment specific YAML lives in ``config/environments/<env>.yaml`` by
        default and is merged with environment variables so that secrets can be
        injected by the runtime environment.
        """

        env_name = os.getenv("APP_ENV")
        config_path = os.getenv("APP_CONFIG_PATH")
        config_dir = Path(os.getenv("OOTD_CONFIG_DIR", "config/environments"))
        yaml_config: dict = {}

        if config_path:
            path = Path(config_path)
        elif env_name:
            path = config_dir / f"{env_name}.yaml"
        else:
            path = None

        if path and path.exists():
            yaml_config = cls._load_yaml_config(path)

        def get_value(key: str, default: Optional[str] = None) -> Optional[str]:
            env_key = key.upper()
            return os.getenv(env_key, yaml_config.get(key, default))

        testing_mode = str(get_value("testing_mode", "false")).strip().lower() in _TRUTHY

        return cls(
            gemini_api_key=get_value("gemini_api_key"),
            tagging_model=str(get_value("tagging_model") or DEFAULT_TAGGING_MODEL),
            outfit_model=str(get_value("outfit_model") or DEFAULT_OUTFIT_MODEL),
            replicate_api_token=get_value("replicate_api_token"),
            storage_bucket=get_value("storage_bucket"),
            google_credentials_path=get_value("google_application_credentials"),
            firestore_project=get_value("firestore_project"),
            weather_api_key=get_value("openweather_api_key"),
            local_storage_dir=str(get_value("local_storage_dir") or "data/local_storage"),
            testing_mode=testing_mode,
            environment=env_name,
        )

    def require(self, attribute: str) -> str:
        """Return a credential value or raise :class:`MissingCredentialError`."""

        value = getattr(self, attribute, None)
        if not value:
            env_name = _ENV_NAMES.get(attribute, attribute.upper())
            raise MissingCredentialError(f"No {attribute} configured. Please set {env_name} in your environment.")
        return str(value)

    @staticmethod
    def _load_yaml_config(path: Path) -> dict:
        """Parse a minimal YAML/INI-style config without external dependencies."""

        config: dict[str, str] = {}
        for line in path.read_text().splitlines():
            stripped = line.strip()
            if not stripped or stripped.startswith("#"):
                continue
            if ":" not in stripped:
                continue
            key, raw_value = stripped.split(":", 1)
            value = raw_value.strip()
            if (value.startswith("\"") and value.endswith("\"")) or (
                value.startswith("'") and value.endswith("'")
            ):
                value = value[1:-1]
            config[key.strip()] = value
        return config


__all__ = ["AppConfig", "MissingCredentialError", "DEFAULT_OUTFIT_MODEL", "DEFAULT_TAGGING_MODEL"]
