"""
Centralized application configuration management.
Provides type-safe configuration with environment variable support.
"""

import os
from dataclasses import dataclass, field
from typing import Dict, Optional
from pathlib import Path
from dotenv import load_dotenv

from config.constants import ManagementConstants
from core.exceptions import ConfigurationError

@dataclass
class DatabaseConfig:
    """Database configuration settings."""
    path: str = "/var/lib/vpn-server-api/db.sqlite"
    pool_size: int = 10

@dataclass
class SecurityConfig:
    """API consumer credentials, consumer id -> shared secret."""
    api_consumers: Dict[str, str] = field(default_factory=dict)

@dataclass
class ServerConfig:
    """Server configuration settings."""
    host: str = "127.0.0.1"
    port: int = 8080
    threads: int = 4

@dataclass
class VpnConfig:
    """VPN daemon integration settings."""
    profiles_file: str = "/etc/vpn-server-api/profiles.json"
    use_vpn_daemon: bool = False
    management_timeout: float = ManagementConstants.DEFAULT_TIMEOUT

@dataclass
class MonitoringConfig:
    """Monitoring configuration settings."""
    log_level: str = "INFO"

@dataclass
class AppConfig:
    """Main application configuration."""
    database: DatabaseConfig = field(default_factory=DatabaseConfig)
    security: SecurityConfig = field(default_factory=SecurityConfig)
    server: ServerConfig = field(default_factory=ServerConfig)
    vpn: VpnConfig = field(default_factory=VpnConfig)
    monitoring: MonitoringConfig = field(default_factory=MonitoringConfig)

    @classmethod
    def from_env(cls, env_file: Optional[str] = None) -> 'AppConfig':
        """Load configuration from environment variables."""
        if env_file and os.path.exists(env_file):
            load_dotenv(env_file)

        return cls(
            database=DatabaseConfig(
                path=os.getenv("DATABASE_FILE", "/var/lib/vpn-server-api/db.sqlite"),
                pool_size=int(os.getenv("DB_POOL_SIZE", "10"))
            ),
            security=SecurityConfig(
                api_consumers=parse_api_consumers(os.getenv("API_CONSUMERS", ""))
            ),
            server=ServerConfig(
                host=os.getenv("SERVER_HOST", "127.0.0.1"),
                port=int(os.getenv("API_PORT", "8080")),
                threads=int(os.getenv("SERVER_THREADS", "4"))
            ),
            vpn=VpnConfig(
                profiles_file=os.getenv("PROFILES_FILE", "/etc/vpn-server-api/profiles.json"),
                use_vpn_daemon=os.getenv("USE_VPN_DAEMON", "false").lower() == "true",
                management_timeout=float(os.getenv("MANAGEMENT_TIMEOUT", str(ManagementConstants.DEFAULT_TIMEOUT)))
            ),
            monitoring=MonitoringConfig(
                log_level=os.getenv("LOG_LEVEL", "INFO")
            )
        )

    def validate(self) -> None:
        """Validate configuration settings."""
        if not self.security.api_consumers:
            raise ConfigurationError("API_CONSUMERS is required")
        if self.database.pool_size < 1:
            raise ConfigurationError("DB_POOL_SIZE must be at least 1")
        if self.vpn.management_timeout <= 0:
            raise ConfigurationError("MANAGEMENT_TIMEOUT must be positive")

        # Ensure database directory exists
        db_path = Path(self.database.path)
        db_path.parent.mkdir(parents=True, exist_ok=True)


def parse_api_consumers(value: str) -> Dict[str, str]:
    """Parse ``name:secret,name:secret`` into a mapping."""
    consumers: Dict[str, str] = {}
    for item in value.split(','):
        item = item.strip()
        if not item:
            continue
        if ':' not in item:
            raise ConfigurationError(f"Invalid API consumer entry '{item}', expected name:secret")
        name, secret = item.split(':', 1)
        if not name.strip() or not secret.strip():
            raise ConfigurationError(f"Invalid API consumer entry '{item}', expected name:secret")
        consumers[name.strip()] = secret.strip()
    return consumers

# Global configuration instance
_config: Optional[AppConfig] = None

def get_config() -> AppConfig:
    """Get the global configuration instance."""
    global _config
    if _config is None:
        env_file = os.getenv("VPN_SERVER_API_ENV", "/etc/vpn-server-api/.env")
        _config = AppConfig.from_env(env_file)
        _config.validate()
    return _config

def set_config(config: AppConfig) -> None:
    """Set the global configuration instance."""
    global _config
    _config = config
