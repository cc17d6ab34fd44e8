"""
Configuration management for the Whirlpool swap client

Loads settings from environment variables and .env file.
Includes logging configuration with file output and correlation ID support.
"""

import os
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, List

from dotenv import load_dotenv


def _load_env_file():
    """Load .env file from the working directory or the project root"""
    for env_file in (Path.cwd() / ".env", Path(__file__).parent.parent / ".env"):
        if env_file.exists():
            load_dotenv(env_file)
            return


# Load .env on module import
_load_env_file()


def _get_env(key: str, default: Optional[str] = "", fallback_key: Optional[str] = None) -> Optional[str]:
    """Get environment variable with an optional fallback variable and default"""
    value = os.getenv(key)
    if value is None and fallback_key:
        value = os.getenv(fallback_key)
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
    # ANCHOR_PROVIDER_URL is honoured so Anchor-style environments work unchanged
    url: str = field(default_factory=lambda: _get_env("SOLANA_RPC_URL", "", fallback_key="ANCHOR_PROVIDER_URL"))
    timeout_seconds: float = field(default_factory=lambda: _get_env_float("RPC_TIMEOUT_SECONDS", 30.0))
    max_retries: int = field(default_factory=lambda: _get_env_int("RPC_MAX_RETRIES", 3))
    retry_delay_seconds: float = field(default_factory=lambda: _get_env_float("RPC_RETRY_DELAY_SECONDS", 1.0))
    commitment: str = field(default_factory=lambda: _get_env("RPC_COMMITMENT", "confirmed"))


@dataclass
class SignerConfig:
    """Signer configuration for local keypair signing"""
    keypair_path: str = field(default_factory=lambda: _get_env("SOLANA_KEYPAIR_PATH", "", fallback_key="ANCHOR_WALLET"))


@dataclass
class TxConfig:
    """Transaction configuration"""
    compute_units: int = field(default_factory=lambda: _get_env_int("TX_COMPUTE_UNITS", 400_000))
    # Priority fee in microlamports per CU (0 disables the instruction)
    compute_unit_price: int = field(default_factory=lambda: _get_env_int("TX_COMPUTE_UNIT_PRICE", 1_000))
    confirmation_timeout: float = field(default_factory=lambda: _get_env_float("TX_CONFIRMATION_TIMEOUT", 60.0))
    poll_interval: float = field(default_factory=lambda: _get_env_float("TX_POLL_INTERVAL", 1.0))
    skip_preflight: bool = field(default_factory=lambda: _get_env_bool("TX_SKIP_PREFLIGHT", False))
    preflight_commitment: str = field(default_factory=lambda: _get_env("TX_PREFLIGHT_COMMITMENT", "confirmed"))
    # Commitment the confirmation poll waits for
    confirm_commitment: str = field(default_factory=lambda: _get_env("TX_CONFIRM_COMMITMENT", "confirmed"))
    # Rebroadcast attempts performed by the RPC node, not by this client (-1 = node default)
    node_max_retries: int = field(default_factory=lambda: _get_env_int("TX_NODE_MAX_RETRIES", -1))


@dataclass
class WhirlpoolConfig:
    """Whirlpool program addresses"""
    program_id: str = field(default_factory=lambda: _get_env(
        "WHIRLPOOL_PROGRAM_ID", "whirLbMiicVdio4qvUfM5KAg6Ct8VwpYzGff3uctyCc"
    ))
    config_id: str = field(default_factory=lambda: _get_env(
        "WHIRLPOOLS_CONFIG", "FcrweFY1G9HJAHG5inkGB6pKg1HZ6x9UC2WioAfWrGkR"
    ))
    # Comma separated address lookup table accounts offered to the router
    lookup_tables: List[str] = field(default_factory=lambda: [
        a.strip() for a in _get_env("WHIRLPOOL_LOOKUP_TABLES", "").split(",") if a.strip()
    ])


@dataclass
class CacheConfig:
    """Account cache configuration (only consulted when a caller passes use_cache=True)"""
    ttl_seconds: float = field(default_factory=lambda: _get_env_float("ACCOUNT_CACHE_TTL_SECONDS", 30.0))
    max_entries: int = field(default_factory=lambda: _get_env_int("ACCOUNT_CACHE_MAX_ENTRIES", 10_000))


@dataclass
class RouterConfig:
    """Default route search parameters"""
    percent_increment: int = field(default_factory=lambda: _get_env_int("ROUTER_PERCENT_INCREMENT", 20))
    num_top_routes: int = field(default_factory=lambda: _get_env_int("ROUTER_NUM_TOP_ROUTES", 50))
    num_top_partial_quotes: int = field(default_factory=lambda: _get_env_int("ROUTER_NUM_TOP_PARTIAL_QUOTES", 10))
    max_splits: int = field(default_factory=lambda: _get_env_int("ROUTER_MAX_SPLITS", 3))
    max_hops: int = field(default_factory=lambda: _get_env_int("ROUTER_MAX_HOPS", 2))


@dataclass
class TradingConfig:
    """Default trading parameters"""
    # 100 bps = 1%
    default_slippage_bps: int = field(default_factory=lambda: _get_env_int("DEFAULT_SLIPPAGE_BPS", 100))


def _get_default_log_path() -> str:
    """Get default log file path under ./log/ with UTC timestamp"""
    from datetime import datetime, timezone
    timestamp = datetime.now(timezone.utc).strftime("%Y%m%d_%H%M%S")
    return str(Path.cwd() / "log" / f"whirlpool_client_{timestamp}.log")


@dataclass
class LoggingConfig:
    """
    Logging configuration with file output and correlation ID support.

    Environment variables:
        LOG_FILE: Path to log file (empty string disables file logging)
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

    Loads all settings from environment variables and .env file.

    Usage:
        from whirlpool_client.config import config

        print(config.rpc.url)
        print(config.whirlpool.program_id)
    """
    rpc: RpcConfig = field(default_factory=RpcConfig)
    signer: SignerConfig = field(default_factory=SignerConfig)
    tx: TxConfig = field(default_factory=TxConfig)
    whirlpool: WhirlpoolConfig = field(default_factory=WhirlpoolConfig)
    cache: CacheConfig = field(default_factory=CacheConfig)
    router: RouterConfig = field(default_factory=RouterConfig)
    trading: TradingConfig = field(default_factory=TradingConfig)
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
    logger_name: str = "whirlpool_client",
) -> logging.Logger:
    """
    Set up logging based on configuration.

    Creates handlers for file and/or console output with optional rotation.
    The log file directory is created automatically if it doesn't exist.

    Args:
        log_config: Logging configuration (uses global config if None)
        logger_name: Name of the logger to configure

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
