import base64
import os
import sys
from datetime import datetime, timezone
from unittest.mock import Mock

import pytest

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from config.app_config import AppConfig, DatabaseConfig, SecurityConfig
from config.profile_config import parse_profiles
from core.clock import FixedClock, format_datetime
from core.server_manager import ServerManager
from data.db import Database
from data.certificate_repository import CertificateRepository
from data.connection_repository import ConnectionRepository
from data.message_repository import MessageRepository
from data.user_repository import UserRepository

NOW = datetime(2019, 1, 1, 12, 0, 0, tzinfo=timezone.utc)
NOW_TIMESTAMP = 1546344000

COMMON_NAME = "12345678901234567890123456789012"
OTHER_COMMON_NAME = "abcdefabcdefabcdefabcdefabcdef01"

API_CONSUMERS = {
    "vpn-server-node": "node-secret",
    "vpn-user-portal": "user-portal-secret",
    "vpn-admin-portal": "admin-portal-secret",
}

PROFILES_DOCUMENT = {
    "vpnProfiles": {
        "internet": {
            "profileNumber": 1,
            "displayName": "Internet Access",
            "range": "10.0.0.0/24",
            "range6": "fd00:4242:4242:4242::/64",
            "vpnProtoPorts": ["udp/1194"],
        },
        "office": {
            "profileNumber": 2,
            "displayName": "Office",
            "range": "10.1.0.0/24",
            "range6": "fd00:4242:4242:4243::/64",
            "vpnProtoPorts": ["udp/1195", "tcp/1195"],
            "enableAcl": True,
            "aclPermissionList": ["staff", "admin"],
        },
        "admin": {
            "profileNumber": 3,
            "range": "10.2.0.0/24",
            "vpnProtoPorts": ["udp/1196"],
            "enableAcl": True,
            "aclPermissionList": ["admin"],
        },
    }
}


def basic_auth(consumer: str, secret: str = None) -> dict:
    if secret is None:
        secret = API_CONSUMERS[consumer]
    token = base64.b64encode(f"{consumer}:{secret}".encode()).decode()
    return {"Authorization": f"Basic {token}"}


def add_totp_entry(database, user_id: str, totp_key: str, date_time: datetime) -> bool:
    """Writes a totp_log row the way the user portal does, False when the key was used."""
    database.execute_update("INSERT OR IGNORE INTO users (user_id) VALUES (?)", (user_id,))
    rows = database.execute_update(
        "INSERT OR IGNORE INTO totp_log (user_id, totp_key, date_time) VALUES (?, ?, ?)",
        (user_id, totp_key, format_datetime(date_time))
    )
    return rows > 0


@pytest.fixture
def profiles():
    return parse_profiles(PROFILES_DOCUMENT)


@pytest.fixture
def clock():
    return FixedClock(NOW)


@pytest.fixture
def database(tmp_path):
    db = Database(str(tmp_path / "db.sqlite"), pool_size=2)
    db.initialize_schema()
    yield db
    db.cleanup_pool()


@pytest.fixture
def user_repo(database):
    return UserRepository(database)


@pytest.fixture
def certificate_repo(database):
    return CertificateRepository(database)


@pytest.fixture
def connection_repo(database):
    return ConnectionRepository(database)


@pytest.fixture
def message_repo(database):
    return MessageRepository(database)


@pytest.fixture
def server_manager():
    manager = Mock(spec=ServerManager)
    manager.kill.return_value = 0
    return manager


@pytest.fixture
def app_config(tmp_path):
    return AppConfig(
        database=DatabaseConfig(path=str(tmp_path / "api.sqlite"), pool_size=2),
        security=SecurityConfig(api_consumers=dict(API_CONSUMERS)),
    )
