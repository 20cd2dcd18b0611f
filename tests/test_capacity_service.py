import os
import sys
from typing import get_type_hints
from unittest.mock import Mock

import pytest

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from conftest import COMMON_NAME, NOW, OTHER_COMMON_NAME
from config.profile_config import ProfileConfig, parse_profiles
from core.clock import Clock
from core.types import ConnectionInfo
from service.capacity_service import (
    CapacityReporter,
    ConnectionSource,
    StorageConnectionSource,
    compute_capacity,
    format_report,
)
from service.message_service import MessageService
from service.policy_service import PolicyEvaluator


def _profile(range_, ports, profile_id="p", number=1):
    return ProfileConfig.from_dict(profile_id, {
        "profileNumber": number,
        "range": range_,
        "vpnProtoPorts": ports,
    })


def _connection(n, common_name=COMMON_NAME):
    return ConnectionInfo(common_name=common_name, virtual_address=[f"10.0.0.{n}", f"fd00::{n}"])


@pytest.mark.parametrize("range_,ports,expected", [
    ("10.0.0.0/24", ["udp/1194"], 253),
    ("10.0.0.0/24", ["udp/1194", "tcp/1194"], 250),
    ("10.0.0.0/16", ["udp/1194", "udp/1195", "tcp/1194", "tcp/1195"], 65524),
    ("10.0.0.0/30", ["udp/1194"], 1),
])
def test_compute_capacity(range_, ports, expected):
    assert compute_capacity(_profile(range_, ports)) == expected


def test_report_utilization():
    profiles = {"internet": _profile("10.0.0.0/24", ["udp/1194"], "internet")}
    source = Mock()
    source.get_connection_list.return_value = {"internet": [_connection(2), _connection(3), _connection(4)]}

    report = CapacityReporter(profiles, source).report()

    assert len(report) == 1
    assert report[0].active_count == 3
    assert report[0].capacity == 253
    assert report[0].utilization_percent == 1
    assert format_report(report) == "internet,3,253,1%\n"


def test_utilization_rounds_down():
    profiles = {"small": _profile("10.0.0.0/28", ["udp/1194"], "small")}
    source = Mock()
    source.get_connection_list.return_value = {"small": [_connection(n) for n in range(2, 4)]}

    report = CapacityReporter(profiles, source).report()

    # 200 / 13 = 15.38
    assert report[0].capacity == 13
    assert report[0].utilization_percent == 15


def test_misconfigured_profile_does_not_affect_others():
    profiles = {
        "tiny": _profile("10.0.0.0/30", ["udp/1194", "tcp/1194"], "tiny", 1),
        "internet": _profile("10.1.0.0/24", ["udp/1195"], "internet", 2),
    }
    source = Mock()
    source.get_connection_list.return_value = {"tiny": [], "internet": [_connection(2)]}

    report = CapacityReporter(profiles, source).report()

    assert report[0].is_misconfigured
    assert report[0].utilization_percent is None
    assert report[1].utilization_percent == 0
    assert format_report(report) == "tiny,0,-2,misconfigured\ninternet,1,253,0%\n"


def test_verbose_report_uses_each_profiles_own_connections():
    profiles = {
        "a": _profile("10.0.0.0/24", ["udp/1194"], "a", 1),
        "b": _profile("10.1.0.0/24", ["udp/1195"], "b", 2),
    }
    source = Mock()
    source.get_connection_list.return_value = {
        "a": [_connection(2, COMMON_NAME)],
        "b": [],
    }

    output = format_report(CapacityReporter(profiles, source).report(), verbose=True)

    assert output == (
        "a,1,253,0%\n"
        f"a\t{COMMON_NAME}\t10.0.0.2, fd00::2\n"
        "b,0,253,0%\n"
    )


def test_report_profile_filter():
    profiles = {
        "a": _profile("10.0.0.0/24", ["udp/1194"], "a", 1),
        "b": _profile("10.1.0.0/24", ["udp/1195"], "b", 2),
    }
    source = Mock()
    source.get_connection_list.return_value = {"b": []}

    report = CapacityReporter(profiles, source).report("b")

    source.get_connection_list.assert_called_once_with("b", None)
    assert [row.profile_id for row in report] == ["b"]


def test_storage_connection_source(profiles, connection_repo, certificate_repo):
    certificate_repo.add_certificate("foo", COMMON_NAME, "Laptop")
    connection_repo.client_connect("internet", COMMON_NAME, "10.0.0.2", "fd00::2", NOW)
    connection_repo.client_connect("office", OTHER_COMMON_NAME, "10.1.0.2", "fd00::3", NOW)
    connection_repo.client_connect("removed", OTHER_COMMON_NAME, "10.9.0.2", "fd00::4", NOW)

    connection_list = StorageConnectionSource(profiles, connection_repo).get_connection_list()

    assert set(connection_list) == {"internet", "office", "admin"}
    assert connection_list["admin"] == []
    assert connection_list["internet"][0].user_id == "foo"
    assert connection_list["internet"][0].virtual_address == ["10.0.0.2", "fd00::2"]
    assert connection_list["office"][0].user_id is None


def test_storage_connection_source_filters(profiles, connection_repo):
    connection_repo.client_connect("internet", COMMON_NAME, "10.0.0.2", "fd00::2", NOW)
    connection_repo.client_connect("internet", OTHER_COMMON_NAME, "10.0.0.3", "fd00::3", NOW)

    source = StorageConnectionSource(profiles, connection_repo)
    connection_list = source.get_connection_list("internet", OTHER_COMMON_NAME)

    assert list(connection_list) == ["internet"]
    assert [c.common_name for c in connection_list["internet"]] == [OTHER_COMMON_NAME]


def test_report_from_storage(connection_repo):
    profiles = parse_profiles({"vpnProfiles": {
        "internet": {"profileNumber": 1, "range": "10.0.0.0/24", "vpnProtoPorts": ["udp/1194"]},
    }})
    for n in range(2, 29):
        connection_repo.client_connect("internet", COMMON_NAME, f"10.0.0.{n}", f"fd00::{n}", NOW)

    report = CapacityReporter(profiles, StorageConnectionSource(profiles, connection_repo)).report()

    # 27 of 253
    assert format_report(report) == "internet,27,253,10%\n"


def test_injected_collaborators_are_typed():
    assert get_type_hints(CapacityReporter.__init__)["connection_source"] is ConnectionSource
    assert get_type_hints(PolicyEvaluator.__init__)["clock"] is Clock
    assert get_type_hints(MessageService.__init__)["clock"] is Clock
