from typing import Any, Dict, List, Optional
from dataclasses import dataclass, field
from urllib.parse import urlparse
import os
from dotenv import load_dotenv
from web3 import Web3

from .exceptions import ConfigurationError

@dataclass
class DatabaseConfig:
    """Database configuration settings"""
    host: str = "localhost"
    port: int = 5432
    user: str = "user"
    password: str = "password"
    database: str = "seawatch"
    schema: str = "seawatch"
    pool_size: int = 20
    max_overflow: int = 30
    pool_timeout: int = 30
    pool_recycle: int = 1800
    echo: bool = False
    auto_create: bool = False
    dialect: str = "postgresql"
    driver: str = "asyncpg"

    def __post_init__(self) -> None:
        """Validate database configuration"""
        if self.dialect not in ("postgresql", "sqlite"):
            raise ConfigurationError(f"Unsupported database dialect '{self.dialect}'")
        if not self.database:
            raise ConfigurationError("Database name must be specified")
        if self.pool_size <= 0:
            raise ConfigurationError("Pool size must be positive")

    @property
    def is_sqlite(self) -> bool:
        return self.dialect == "sqlite"

    @property
    def url(self) -> str:
        """Get database URL"""
        if self.is_sqlite:
            return f"{self.dialect}+{self.driver}:///{self.database}"
        return f"{self.dialect}+{self.driver}://{self.user}:{self.password}@{self.host}:{self.port}/{self.database}"

    def get_engine_options(self) -> Dict[str, Any]:
        """Get SQLAlchemy engine options"""
        if self.is_sqlite:
            return {'echo': self.echo}
        return {
            'pool_pre_ping': True,
            'pool_size': self.pool_size,
            'max_overflow': self.max_overflow,
            'pool_timeout': self.pool_timeout,
            'pool_recycle': self.pool_recycle,
            'echo': self.echo
        }

@dataclass
class ChainConfig:
    """Ledger node connection settings"""
    ws_url: str
    contract_address: str
    max_block_range: int = 2000
    connect_retries: int = 5

    def __post_init__(self) -> None:
        """Validate chain configuration and normalize the contract address"""
        scheme = urlparse(self.ws_url).scheme if self.ws_url else ""
        if scheme not in ("ws", "wss", "http", "https"):
            raise ConfigurationError(f"Unsupported node URL '{self.ws_url}'")
        if not self.contract_address or not Web3.is_address(self.contract_address):
            raise ConfigurationError(f"Invalid contract address '{self.contract_address}'")
        self.contract_address = Web3.to_checksum_address(self.contract_address)
        if self.max_block_range <= 0:
            raise ConfigurationError("Max block range must be positive")
        if self.connect_retries <= 0:
            raise ConfigurationError("Connect retries must be positive")

    @property
    def is_websocket(self) -> bool:
        return urlparse(self.ws_url).scheme in ("ws", "wss")

@dataclass
class ReplayConfig:
    """Replay loop settings for one tracked contract"""
    start_block: int = 0
    confirmations: int = 1
    interval: int = 1           # seconds
    source_name: str = "seaport"

    def __post_init__(self) -> None:
        """Validate replay configuration, zero values fall back to defaults"""
        if self.start_block < 0:
            raise ConfigurationError("Start block cannot be negative")
        if self.confirmations < 0 or self.interval < 0:
            raise ConfigurationError("Confirmations and interval cannot be negative")
        self.confirmations = self.confirmations or 1
        self.interval = self.interval or 1
        if not self.source_name:
            raise ConfigurationError("Sync source name must be specified")

@dataclass
class APIConfig:
    """HTTP server configuration"""
    port: int = 8080
    cors_origins: List[str] = field(default_factory=lambda: ["*"])

@dataclass
class LogConfig:
    """Logging configuration"""
    log_dir: str = "/app/logs"
    max_size: int = 10 * 1024 * 1024  # 10MB
    backup_count: int = 5

class Config:
    """Application configuration"""

    def __init__(self, env_file: Optional[str] = None):
        # Load environment variables
        load_dotenv(env_file)

        # Initialize components
        self.database = self._init_database_config()
        self.chain = self._init_chain_config()
        self.replay = self._init_replay_config()
        self.api = self._init_api_config()
        self.logging = self._init_log_config()

    def _init_database_config(self) -> DatabaseConfig:
        """Initialize database configuration"""
        try:
            return DatabaseConfig(
                host=os.getenv('DB_HOST', 'localhost'),
                port=int(os.getenv('DB_PORT', '5432')),
                user=os.getenv('DB_USER', 'user'),
                password=os.getenv('DB_PASSWORD', 'password'),
                database=os.getenv('DB_NAME', 'seawatch'),
                schema=os.getenv('DB_SCHEMA', 'seawatch'),
                pool_size=int(os.getenv('DB_POOL_SIZE', '20')),
                max_overflow=int(os.getenv('DB_MAX_OVERFLOW', '30')),
                pool_timeout=int(os.getenv('DB_POOL_TIMEOUT', '30')),
                pool_recycle=int(os.getenv('DB_POOL_RECYCLE', '1800')),
                echo=bool(os.getenv('DB_ECHO', 'False').lower() == 'true'),
                auto_create=bool(os.getenv('DB_AUTO_CREATE', 'False').lower() == 'true'),
                dialect=os.getenv('DB_DIALECT', 'postgresql'),
                driver=os.getenv('DB_DRIVER', 'asyncpg')
            )
        except ConfigurationError:
            raise
        except Exception as e:
            raise ConfigurationError(f"Invalid database configuration: {e}")

    def _init_chain_config(self) -> ChainConfig:
        """Initialize ledger node configuration"""
        try:
            return ChainConfig(
                ws_url=os.getenv('WS_URL', ''),
                contract_address=os.getenv('CONTRACT_ADDRESS', ''),
                max_block_range=int(os.getenv('MAX_BLOCK_RANGE', '2000')),
                connect_retries=int(os.getenv('CONNECT_RETRIES', '5'))
            )
        except ConfigurationError:
            raise
        except Exception as e:
            raise ConfigurationError(f"Invalid chain configuration: {e}")

    def _init_replay_config(self) -> ReplayConfig:
        """Initialize replay configuration"""
        try:
            return ReplayConfig(
                start_block=int(os.getenv('START_BLOCK') or '0'),
                confirmations=int(os.getenv('CONFIRMATIONS') or '1'),
                interval=int(os.getenv('INTERVAL') or '1'),
                source_name=os.getenv('SYNC_SOURCE', 'seaport')
            )
        except ConfigurationError:
            raise
        except Exception as e:
            raise ConfigurationError(f"Invalid replay configuration: {e}")

    def _init_api_config(self) -> APIConfig:
        """Initialize API configuration"""
        return self.load_api_config()

    @staticmethod
    def load_api_config() -> APIConfig:
        """API settings alone, read before the app object is built"""
        try:
            return APIConfig(
                port=int(os.getenv('API_PORT', '8080')),
                cors_origins=os.getenv('API_CORS_ORIGINS', '*').split(',')
            )
        except Exception as e:
            raise ConfigurationError(f"Invalid API configuration: {e}")

    def _init_log_config(self) -> LogConfig:
        """Initialize logging configuration"""
        return LogConfig(log_dir=os.getenv('LOG_DIR', '/app/logs'))
