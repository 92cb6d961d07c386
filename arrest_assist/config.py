"""
Configuration management with environment variable support and validation.

Design principles:
- Protocol intervals live in one place (AHA defaults, overridable per deployment)
- Validation at startup (fail fast)
- Type safety with Pydantic
"""

import logging
import os
from functools import lru_cache
from typing import Literal, cast

import structlog
from dotenv import load_dotenv
from pydantic import BaseModel, Field, model_validator

# Load environment variables from .env file
load_dotenv()


class ProtocolConfig(BaseModel):
    """Reminder intervals of the cardiac-arrest protocol, in seconds."""

    rhythm_check_interval_seconds: int = Field(
        default=120, gt=0, description="Interval between rhythm checks"
    )
    epinephrine_min_interval_seconds: int = Field(
        default=180, gt=0, description="Earliest time for the next epinephrine dose"
    )
    epinephrine_max_interval_seconds: int = Field(
        default=300, gt=0, description="Latest time for the next epinephrine dose"
    )
    antiarrhythmic_interval_seconds: int = Field(
        default=300, gt=0, description="Estimated interval between antiarrhythmic doses"
    )

    @model_validator(mode="after")
    def epinephrine_window_is_ordered(self) -> "ProtocolConfig":
        if self.epinephrine_max_interval_seconds <= self.epinephrine_min_interval_seconds:
            raise ValueError(
                "epinephrine_max_interval_seconds must be greater than "
                "epinephrine_min_interval_seconds"
            )
        return self


class ClockConfig(BaseModel):
    """Session clock configuration."""

    tick_interval_seconds: float = Field(
        default=1.0, gt=0.0, description="Wall-clock time between two ticks"
    )


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO", description="Logging level"
    )
    format: Literal["json", "console"] = Field(default="json", description="Logging format")


class AppConfig(BaseModel):
    """Main application configuration combining all subsystems."""

    environment: Literal["development", "staging", "production"] = Field(
        default="development", description="Environment"
    )
    debug: bool = Field(default=False, description="Enable debug mode")

    protocol: ProtocolConfig = Field(default_factory=ProtocolConfig)
    clock: ClockConfig = Field(default_factory=ClockConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @model_validator(mode="after")
    def debug_only_in_dev(self) -> "AppConfig":
        """Ensure debug mode is only allowed in development environment."""
        if self.debug and self.environment != "development":
            raise ValueError("debug mode is only allowed in development environment")
        return self


def load_config_from_env() -> AppConfig:
    """Load configuration from environment variables with validation."""

    def _env_to_literal(val: str) -> Literal["development", "staging", "production"]:
        v = val.strip().lower()
        if v in {"dev", "development"}:
            return "development"
        if v in {"stage", "staging"}:
            return "staging"
        return "production"

    def _level_to_literal(val: str) -> Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]:
        v = val.strip().upper()
        return cast(
            Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
            v if v in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"} else "INFO",
        )

    environment = _env_to_literal(os.getenv("ENVIRONMENT", "development"))
    debug = environment == "development"

    protocol_config = ProtocolConfig(
        rhythm_check_interval_seconds=int(os.getenv("RHYTHM_CHECK_INTERVAL_SECONDS", "120")),
        epinephrine_min_interval_seconds=int(
            os.getenv("EPINEPHRINE_MIN_INTERVAL_SECONDS", "180")
        ),
        epinephrine_max_interval_seconds=int(
            os.getenv("EPINEPHRINE_MAX_INTERVAL_SECONDS", "300")
        ),
        antiarrhythmic_interval_seconds=int(os.getenv("ANTIARRHYTHMIC_INTERVAL_SECONDS", "300")),
    )

    clock_config = ClockConfig(
        tick_interval_seconds=float(os.getenv("TICK_INTERVAL_SECONDS", "1.0")),
    )

    logging_config = LoggingConfig(
        level=_level_to_literal(os.getenv("LOG_LEVEL", "INFO")),
        format="console" if debug else "json",
    )

    return AppConfig(
        environment=environment,
        debug=debug,
        protocol=protocol_config,
        clock=clock_config,
        logging=logging_config,
    )


@lru_cache
def get_config() -> AppConfig:
    """Get cached application configuration."""
    return load_config_from_env()


def configure_logging(config: LoggingConfig) -> None:
    """Configure structlog for the whole process."""
    renderer = (
        structlog.dev.ConsoleRenderer()
        if config.format == "console"
        else structlog.processors.JSONRenderer()
    )
    logging.basicConfig(format="%(message)s", level=config.level)
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            renderer,
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )


# Development helpers
def print_config_summary() -> None:
    """Print configuration summary for debugging."""
    config = get_config()

    print("\nCONFIGURATION SUMMARY")
    print(f"Environment: {config.environment}")
    print(f"Debug Mode: {config.debug}")
    print(f"Log Level: {config.logging.level}")

    print("\nPROTOCOL")
    print(f"Rhythm check every: {config.protocol.rhythm_check_interval_seconds}s")
    print(
        "Epinephrine window: "
        f"{config.protocol.epinephrine_min_interval_seconds}s-"
        f"{config.protocol.epinephrine_max_interval_seconds}s"
    )
    print(f"Antiarrhythmic every: {config.protocol.antiarrhythmic_interval_seconds}s")

    print("\nCLOCK")
    print(f"Tick interval: {config.clock.tick_interval_seconds}s")


if __name__ == "__main__":
    print_config_summary()
