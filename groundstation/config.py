"""GroundStation — Configuration.

Configuration is loaded from (in order of increasing priority):
    1. Built-in defaults (this file)
    2. System config: /etc/groundstation/config.yaml
    3. User config:   ~/.groundstation/config.yaml
    4. An explicit config file passed to ``Settings.load()``
    5. Environment variables prefixed with GROUNDSTATION_

``Settings`` is the start-up snapshot.  Live values that may change while a
sequence runs are held by :class:`~groundstation.settings_store.ConfigurationStore`,
which is seeded from a ``Settings`` instance.

Secret fields (``smtp.password``, ``mqtt.username``, ``mqtt.password``) hold
Fernet ciphertext produced by ``groundstation secrets encrypt``.
"""

from __future__ import annotations

from pathlib import Path
from typing import Annotated, Literal

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource, SettingsConfigDict


# ---------------------------------------------------------------------------
# Sub-configuration blocks
# ---------------------------------------------------------------------------


class SmtpConfig(BaseModel):
    host_name: str = ""
    host_port: Annotated[int, Field(ge=0, le=65535)] = 587
    username: str = ""
    password: str = Field(default="", description="Fernet ciphertext of the SMTP password.")
    from_address: str = ""
    default_recipients: str = Field(
        default="",
        description="Comma-separated recipient list used for new email triggers.",
    )


class MqttConfig(BaseModel):
    broker_host: str = ""
    broker_port: Annotated[int, Field(ge=1, le=65535)] = 1883
    use_tls: bool = False
    username: str = Field(default="", description="Fernet ciphertext of the broker username.")
    password: str = Field(default="", description="Fernet ciphertext of the broker password.")
    client_id: str = "groundstation"
    default_topic: str = "groundstation/failures"


class Pwi3Config(BaseModel):
    ip_address: str = "127.0.0.1"
    port: Annotated[int, Field(ge=1, le=65535)] = 8220
    client_id: str = "groundstation"


class SecretsConfig(BaseModel):
    key: str | None = Field(
        default=None,
        description=(
            "Fernet key (urlsafe base64, 32 bytes) used to decrypt stored credentials. "
            "Generate with: groundstation secrets generate-key"
        ),
    )


class LoggingConfig(BaseModel):
    level: Literal["debug", "info", "warning", "error", "critical"] = "info"
    format: Literal["json", "console"] = "console"
    file: Path | None = None


# ---------------------------------------------------------------------------
# Root settings
# ---------------------------------------------------------------------------


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="GROUNDSTATION_",
        env_nested_delimiter="__",
        case_sensitive=False,
        extra="ignore",
    )

    smtp: SmtpConfig = Field(default_factory=SmtpConfig)
    mqtt: MqttConfig = Field(default_factory=MqttConfig)
    pwi3: Pwi3Config = Field(default_factory=Pwi3Config)
    secrets: SecretsConfig = Field(default_factory=SecretsConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        # Environment outranks the YAML values handed to the constructor.
        return env_settings, init_settings, dotenv_settings, file_secret_settings

    @classmethod
    def load(cls, config_file: Path | None = None) -> "Settings":
        """Load settings from file + environment variables."""
        data: dict[str, object] = {}

        candidates = [
            Path("/etc/groundstation/config.yaml"),
            Path.home() / ".groundstation" / "config.yaml",
        ]
        if config_file:
            candidates.append(config_file)

        for path in candidates:
            if path.exists():
                import yaml

                with path.open() as f:
                    loaded = yaml.safe_load(f) or {}
                    data.update(loaded)

        return cls(**data)

    def flatten(self) -> dict[str, object]:
        """Return the live-reloadable sections as flat ``<section>_<field>`` names."""
        flat: dict[str, object] = {}
        for section in ("smtp", "mqtt", "pwi3"):
            for key, value in getattr(self, section).model_dump().items():
                flat[f"{section}_{key}"] = value
        return flat


# Module-level singleton, replaced by ``Settings.load()`` at start-up.
_settings: Settings | None = None


def get_settings() -> Settings:
    global _settings
    if _settings is None:
        _settings = Settings.load()
    return _settings


def override_settings(settings: Settings) -> None:
    """Replace the module-level singleton. Used in tests."""
    global _settings
    _settings = settings
