"""
Configuration management for Vault Adapter

Loads settings from environment variables and .env file.
Includes logging configuration with rotating file output.
"""

import os
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, List

from dotenv import load_dotenv


def _load_env_file():
    """Load .env file from project root"""
    current = Path(__file__).parent.parent  # vault_adapter package parent
    env_file = current / ".env"

    if env_file.exists():
        load_dotenv(env_file)


# Load .env on module import
_load_env_file()


def _get_env(key: str, default: Optional[str] = "") -> Optional[str]:
    """Get environment variable with default"""
    value = os.getenv(key)
    if value is None:
        return default
    return value


def _get_env_float(key: str, default: float) -> float:
    """Get environment variable as float"""
    value = os.getenv(key)
    if value is None:
        return default
    try:
        return float(value)
    except ValueError:
        logging.getLogger(__name__).warning(
            f"Invalid float value for {key}='{value}', using default={default}"
        )
        return default


def _get_env_int(key: str, default: int) -> int:
    """Get environment variable as int"""
    value = os.getenv(key)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        logging.getLogger(__name__).warning(
            f"Invalid int value for {key}='{value}', using default={default}"
        )
        return default


def _get_env_bool(key: str, default: bool) -> bool:
    """Get environment variable as bool"""
    value = os.getenv(key)
    if value is None:
        return default
    return value.lower() in ("true", "1", "yes", "on")


@dataclass
class RpcConfig:
    """RPC client configuration"""
    url: str = field(default_factory=lambda: _get_env("SOLANA_RPC_URL", ""))
    timeout_seconds: float = field(default_factory=lambda: _get_env_float("RPC_TIMEOUT_SECONDS", 30.0))
    max_retries: int = field(default_factory=lambda: _get_env_int("RPC_MAX_RETRIES", 3))
    retry_delay_seconds: float = field(default_factory=lambda: _get_env_float("RPC_RETRY_DELAY_SECONDS", 0.5))
    commitment: str = field(default_factory=lambda: _get_env("RPC_COMMITMENT", "confirmed"))
    # getMultipleAccounts accepts at most 100 keys per request
    max_accounts_per_request: int = field(default_factory=lambda: _get_env_int("RPC_MAX_ACCOUNTS_PER_REQUEST", 100))


@dataclass
class VaultConfig:
    """Program addresses used to derive and address vault accounts"""
    program_id: str = field(default_factory=lambda: _get_env("VAULT_PROGRAM_ID", ""))
    whirlpool_program_id: str = field(default_factory=lambda: _get_env(
        "WHIRLPOOL_PROGRAM_ID", "whirLbMiicVdio4qvUfM5KAg6Ct8VwpYzGff3uctyCc"
    ))
    dao_treasury_owner: str = field(default_factory=lambda: _get_env(
        "DAO_TREASURY_OWNER", "8XhNoDjjNoLP5Rys1pBJKGdE8acEC1HJsWGkfkMt6JP1"
    ))


def _get_default_log_path() -> str:
    """Get default log file path under vault_adapter/log/ with UTC timestamp"""
    from datetime import datetime, timezone
    timestamp = datetime.now(timezone.utc).strftime("%Y%m%d_%H%M%S")
    log_dir = Path(__file__).parent / "log"
    return str(log_dir / f"vault_adapter_{timestamp}.log")


@dataclass
class LoggingConfig:
    """
    Logging configuration with file output.

    Default log location: vault_adapter/log/vault_adapter_<timestamp>.log

    Environment variables:
        LOG_FILE: Path to log file (overrides default, empty disables file output)
        LOG_LEVEL: DEBUG, INFO, WARNING, ERROR, CRITICAL (default: INFO)
        LOG_FORMAT: Custom log format string
        LOG_CONSOLE: Enable console output (default: true)
        LOG_MAX_BYTES: Max log file size before rotation (default: 10MB)
        LOG_BACKUP_COUNT: Number of backup files to keep (default: 5)
    """
    log_file: str = field(default_factory=lambda: _get_env("LOG_FILE", _get_default_log_path()))
    log_level: str = field(default_factory=lambda: _get_env("LOG_LEVEL", "INFO"))
    log_format: str = field(default_factory=lambda: _get_env(
        "LOG_FORMAT",
        "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    ))
    console_output: bool = field(default_factory=lambda: _get_env_bool("LOG_CONSOLE", True))
    max_bytes: int = field(default_factory=lambda: _get_env_int("LOG_MAX_BYTES", 10 * 1024 * 1024))  # 10MB
    backup_count: int = field(default_factory=lambda: _get_env_int("LOG_BACKUP_COUNT", 5))

    @property
    def level(self) -> int:
        """Get numeric log level"""
        return getattr(logging, self.log_level.upper(), logging.INFO)


@dataclass
class Config:
    """
    Main configuration container

    Usage:
        from vault_adapter.config import config

        print(config.rpc.url)
        print(config.vault.program_id)
    """
    rpc: RpcConfig = field(default_factory=RpcConfig)
    vault: VaultConfig = field(default_factory=VaultConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    @classmethod
    def reload(cls) -> "Config":
        """Reload configuration from environment"""
        _load_env_file()
        return cls()


# Global config instance
config = Config()


def get_config() -> Config:
    """Get global configuration instance"""
    return config


def reload_config() -> Config:
    """Reload and return new configuration"""
    global config
    config = Config.reload()
    return config


def setup_logging(
    log_config: Optional[LoggingConfig] = None,
    logger_name: str = "vault_adapter",
) -> logging.Logger:
    """
    Set up logging based on configuration.

    Creates handlers for file and/or console output with rotation.
    The log file directory is created automatically if it doesn't exist.

    Args:
        log_config: Logging configuration (uses global config if None)
        logger_name: Name of the logger to configure (default: vault_adapter)

    Returns:
        Configured logger instance
    """
    if log_config is None:
        log_config = config.logging

    logger = logging.getLogger(logger_name)
    logger.setLevel(log_config.level)

    # Close before removing to flush buffers and release file handles
    for handler in logger.handlers[:]:
        handler.close()
        logger.removeHandler(handler)

    formatter = logging.Formatter(log_config.log_format)

    handlers: List[logging.Handler] = []

    if log_config.log_file:
        from logging.handlers import RotatingFileHandler

        log_path = Path(log_config.log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)

        file_handler = RotatingFileHandler(
            log_config.log_file,
            maxBytes=log_config.max_bytes,
            backupCount=log_config.backup_count,
            encoding='utf-8',
        )
        file_handler.setLevel(log_config.level)
        file_handler.setFormatter(formatter)
        handlers.append(file_handler)

    if log_config.console_output:
        console_handler = logging.StreamHandler()
        console_handler.setLevel(log_config.level)
        console_handler.setFormatter(formatter)
        handlers.append(console_handler)

    for handler in handlers:
        logger.addHandler(handler)

    if log_config.log_file:
        logger.info(f"Logging initialized: file={log_config.log_file}, level={log_config.log_level}")

    return logger
