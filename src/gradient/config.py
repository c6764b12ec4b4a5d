"""Configuration for the notebook inspection tooling."""

from pathlib import Path
from typing import Annotated, Self

import yaml
from pydantic import AliasChoices, Field, SecretStr
from pydantic.alias_generators import to_camel
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)
from safir.logging import LogLevel, Profile, configure_logging
from safir.slack.webhook import SlackWebhookClient
from structlog.stdlib import BoundLogger

from .constants import ENV_PREFIX, ROOT_LOGGER

__all__ = ["Config"]


def _setting(name: str) -> AliasChoices:
    """Accept a setting from its environment variable or its YAML key."""
    return AliasChoices(ENV_PREFIX + name.upper(), to_camel(name))


class Config(BaseSettings):
    """Configuration for the notebook inspection tooling.

    Settings are read from a YAML file with camel-case keys. Any of them can
    be overridden by an environment variable named after the setting with
    the ``GRADIENT_NOTEBOOK_`` prefix.
    """

    model_config = SettingsConfigDict(
        env_prefix=ENV_PREFIX, extra="forbid", validate_by_name=True
    )

    debug: Annotated[
        bool,
        Field(
            title="Debug logging",
            description="Log at debug level in human-readable form",
        ),
    ] = False

    log_profile: Annotated[
        Profile,
        Field(
            title="Logging profile", validation_alias=_setting("log_profile")
        ),
    ] = Profile.production

    log_level: Annotated[
        LogLevel,
        Field(title="Log level", validation_alias=_setting("log_level")),
    ] = LogLevel.INFO

    add_timestamp: Annotated[
        bool,
        Field(
            title="Timestamp log messages",
            validation_alias=_setting("add_timestamp"),
        ),
    ] = False

    alert_hook: Annotated[
        SecretStr | None,
        Field(
            title="Slack alert webhook",
            description=(
                "Slack incoming webhook to which failures of the tooling are"
                " reported. Alerts are disabled if not set."
            ),
            validation_alias=_setting("alert_hook"),
        ),
    ] = None

    alert_source: Annotated[
        str,
        Field(
            title="Alert source",
            description="Application name shown in Slack alerts",
            validation_alias=_setting("alert_source"),
        ),
    ] = "Gradient Notebook Status"

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        # Environment variables win over values loaded from the YAML file.
        return (env_settings, init_settings)

    @classmethod
    def from_file(cls, path: Path) -> Self:
        """Load the configuration from a YAML file and configure logging.

        Parameters
        ----------
        path
            Path to the configuration file. An empty file is allowed.

        Returns
        -------
        Config
            Loaded configuration.
        """
        with path.open("r") as f:
            config = cls.model_validate(yaml.safe_load(f) or {})
        config.configure_logging()
        return config

    def configure_logging(self) -> None:
        """Configure logging for the ``gradient`` logger."""
        configure_logging(
            profile=Profile.development if self.debug else self.log_profile,
            log_level=LogLevel.DEBUG if self.debug else self.log_level,
            add_timestamp=self.add_timestamp,
            name=ROOT_LOGGER,
        )

    def slack_client(self, logger: BoundLogger) -> SlackWebhookClient | None:
        """Create the client for Slack alerts, if alerts are configured."""
        if not self.alert_hook:
            return None
        hook = self.alert_hook.get_secret_value()
        return SlackWebhookClient(hook, self.alert_source, logger)
