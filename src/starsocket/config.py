"""
Configuration Management for StarSocket Servers

Process-wide defaults for message body transformation, validation and
logging. Dispatchers receive an immutable ``DispatcherConfig`` at
construction; per-action and per-parameter options take precedence.
"""

import json
import logging
import logging.handlers
import os
from dataclasses import asdict, dataclass, field, replace
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Union


class Environment(Enum):
    """Application environments"""
    DEVELOPMENT = "development"
    TESTING = "testing"
    STAGING = "staging"
    PRODUCTION = "production"


@dataclass(frozen=True)
class DispatcherConfig:
    """
    Dispatcher behaviour shared by every controller.

    Attributes:
        use_transformer: Map message bodies onto model shapes and flatten
            results before emission
        plain_to_model_options: Default keyword options for inbound mapping
            (``model_validate`` keywords)
        model_to_plain_options: Default keyword options for outbound
            flattening (``model_dump`` keywords)
        validate: Validate mapped message bodies unless a parameter says otherwise
    """
    use_transformer: bool = True
    plain_to_model_options: Mapping[str, Any] = field(default_factory=dict)
    model_to_plain_options: Mapping[str, Any] = field(default_factory=dict)
    validate: bool = False

    def inbound_options(self, override: Optional[Mapping[str, Any]] = None) -> Mapping[str, Any]:
        return override if override is not None else self.plain_to_model_options

    def outbound_options(self, override: Optional[Mapping[str, Any]] = None) -> Mapping[str, Any]:
        return override if override is not None else self.model_to_plain_options

    def should_validate(self, override: Optional[bool] = None) -> bool:
        return override if override is not None else self.validate


@dataclass
class LoggingConfig:
    """Logging configuration"""
    level: str = "INFO"
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    file_path: Optional[str] = None
    max_file_size: int = 10 * 1024 * 1024  # 10MB
    backup_count: int = 5


@dataclass
class ApplicationConfig:
    """Complete application configuration"""
    environment: Environment = Environment.DEVELOPMENT
    dispatcher: DispatcherConfig = field(default_factory=DispatcherConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    @classmethod
    def for_environment(cls, environment: Environment) -> 'ApplicationConfig':
        """Create configuration for specific environment"""
        config = cls(environment=environment)

        if environment == Environment.DEVELOPMENT:
            config.logging.level = "DEBUG"
            config.dispatcher = replace(config.dispatcher, validate=True)

        elif environment == Environment.TESTING:
            config.logging.level = "WARNING"
            config.dispatcher = replace(config.dispatcher, validate=True)

        elif environment == Environment.PRODUCTION:
            config.logging.level = "INFO"

        return config

    @classmethod
    def from_dict(cls, config_dict: Dict[str, Any]) -> 'ApplicationConfig':
        """Create configuration from dictionary"""
        config = cls()

        if "environment" in config_dict:
            config = cls.for_environment(Environment(config_dict["environment"]))

        if "dispatcher" in config_dict:
            known = {k: v for k, v in config_dict["dispatcher"].items() if k in DispatcherConfig.__dataclass_fields__}
            config.dispatcher = replace(config.dispatcher, **known)

        if "logging" in config_dict:
            for key, value in config_dict["logging"].items():
                if hasattr(config.logging, key):
                    setattr(config.logging, key, value)

        return config

    @classmethod
    def from_file(cls, config_path: Union[str, Path]) -> 'ApplicationConfig':
        """Load configuration from a JSON file"""
        config_path = Path(config_path)

        if not config_path.exists():
            raise FileNotFoundError(f"Configuration file not found: {config_path}")

        if config_path.suffix != '.json':
            raise ValueError(f"Unsupported configuration file format: {config_path.suffix}")

        with open(config_path) as f:
            return cls.from_dict(json.load(f))

    @classmethod
    def from_environment(cls) -> 'ApplicationConfig':
        """Create configuration from environment variables"""
        environment = Environment(os.getenv('STARSOCKET_ENV', 'development'))
        config = cls.for_environment(environment)

        if os.getenv('STARSOCKET_USE_TRANSFORMER'):
            config.dispatcher = replace(
                config.dispatcher,
                use_transformer=os.getenv('STARSOCKET_USE_TRANSFORMER').lower() == 'true',
            )

        if os.getenv('STARSOCKET_VALIDATE'):
            config.dispatcher = replace(
                config.dispatcher,
                validate=os.getenv('STARSOCKET_VALIDATE').lower() == 'true',
            )

        if os.getenv('STARSOCKET_LOG_LEVEL'):
            config.logging.level = os.getenv('STARSOCKET_LOG_LEVEL').upper()

        if os.getenv('STARSOCKET_LOG_FILE'):
            config.logging.file_path = os.getenv('STARSOCKET_LOG_FILE')

        return config

    def to_dict(self) -> Dict[str, Any]:
        """Convert configuration to dictionary"""
        return {
            "environment": self.environment.value,
            "dispatcher": {
                "use_transformer": self.dispatcher.use_transformer,
                "plain_to_model_options": dict(self.dispatcher.plain_to_model_options),
                "model_to_plain_options": dict(self.dispatcher.model_to_plain_options),
                "validate": self.dispatcher.validate,
            },
            "logging": asdict(self.logging),
        }


def configure_logging(config: LoggingConfig, logger_name: str = "starsocket") -> logging.Logger:
    """Attach handlers for ``config`` to the package logger, replacing earlier ones."""
    logger = logging.getLogger(logger_name)
    logger.setLevel(config.level.upper())

    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    formatter = logging.Formatter(config.format)
    handlers = [logging.StreamHandler()]
    if config.file_path:
        handlers.append(logging.handlers.RotatingFileHandler(
            config.file_path,
            maxBytes=config.max_file_size,
            backupCount=config.backup_count,
        ))
    for handler in handlers:
        handler.setFormatter(formatter)
        logger.addHandler(handler)

    return logger


# Global configuration management
_current_config: Optional[ApplicationConfig] = None

def set_config(config: ApplicationConfig):
    """Set the global configuration"""
    global _current_config
    _current_config = config

def get_config() -> ApplicationConfig:
    """Get the current global configuration"""
    global _current_config

    if _current_config is None:
        _current_config = ApplicationConfig.from_environment()

    return _current_config


__all__ = [
    "Environment", "DispatcherConfig", "LoggingConfig", "ApplicationConfig",
    "configure_logging", "set_config", "get_config",
]
