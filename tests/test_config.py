import json
import os
import sys
from unittest.mock import patch

import pytest

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from conftest import PROFILES_DOCUMENT
from config.app_config import AppConfig, parse_api_consumers
from config.profile_config import ProfileConfig, load_profiles, parse_profiles
from core.exceptions import ConfigurationError


def test_parse_profiles(profiles):
    office = profiles["office"]

    assert office.profile_number == 2
    assert office.vpn_proto_ports == (("udp", 1195), ("tcp", 1195))
    assert office.enable_acl
    assert office.acl_permission_list == ("staff", "admin")
    assert office.management_port(0) == 11956
    assert office.management_port(1) == 11957
    assert profiles["admin"].display_name == "admin"


def test_load_profiles(tmp_path):
    path = tmp_path / "profiles.json"
    path.write_text(json.dumps(PROFILES_DOCUMENT))

    assert list(load_profiles(str(path))) == ["internet", "office", "admin"]


def test_load_profiles_missing_file(tmp_path):
    with pytest.raises(ConfigurationError):
        load_profiles(str(tmp_path / "missing.json"))


@pytest.mark.parametrize("section", [
    {"range": "10.0.0.0/24", "vpnProtoPorts": ["udp/1194"]},
    {"profileNumber": 1, "range": "10.0.0.0/33", "vpnProtoPorts": ["udp/1194"]},
    {"profileNumber": 1, "range": "10.0.0.0/24", "vpnProtoPorts": ["sctp/1194"]},
    {"profileNumber": 1, "range": "10.0.0.0/24", "vpnProtoPorts": ["udp/70000"]},
    {"profileNumber": 0, "range": "10.0.0.0/24", "vpnProtoPorts": ["udp/1194"]},
])
def test_invalid_profile(section):
    with pytest.raises(ConfigurationError):
        ProfileConfig.from_dict("internet", section)


def test_duplicate_profile_number():
    section = {"profileNumber": 1, "range": "10.0.0.0/24", "vpnProtoPorts": ["udp/1194"]}
    with pytest.raises(ConfigurationError):
        parse_profiles({"vpnProfiles": {"a": section, "b": section}})


def test_parse_api_consumers():
    assert parse_api_consumers("vpn-server-node:abc, vpn-user-portal:d:e,") == {
        "vpn-server-node": "abc",
        "vpn-user-portal": "d:e",
    }
    with pytest.raises(ConfigurationError):
        parse_api_consumers("vpn-server-node")


def test_app_config_from_env(tmp_path):
    env = {
        "DATABASE_FILE": str(tmp_path / "db.sqlite"),
        "API_CONSUMERS": "vpn-server-node:abc",
        "API_PORT": "41194",
        "USE_VPN_DAEMON": "true",
        "MANAGEMENT_TIMEOUT": "2.5",
    }
    with patch.dict(os.environ, env):
        config = AppConfig.from_env()
    config.validate()

    assert config.database.path == env["DATABASE_FILE"]
    assert config.security.api_consumers == {"vpn-server-node": "abc"}
    assert config.server.port == 41194
    assert config.vpn.use_vpn_daemon is True
    assert config.vpn.management_timeout == 2.5


def test_app_config_requires_consumers():
    with pytest.raises(ConfigurationError):
        AppConfig().validate()


def test_containers_are_independent(app_config, clock):
    from core import dependency_container

    first = dependency_container.create_container(app_config, clock=clock)
    second = dependency_container.create_container(app_config)

    assert first.get("clock") is clock
    assert second.get("clock") is not clock
    assert first.get("message_service").clock is clock
    assert not hasattr(dependency_container, "get_container")

    first.cleanup()
