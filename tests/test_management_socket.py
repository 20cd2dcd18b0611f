import os
import socket
import sys
import threading
from unittest.mock import Mock

import pytest

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from conftest import COMMON_NAME, OTHER_COMMON_NAME
from core.exceptions import ManagementSocketError
from core.management_socket import ManagementSocket, parse_client_list, parse_kill_response
from core.server_manager import ServerManager
from core.types import ConnectionInfo

STATUS_OUTPUT = [
    "TITLE,OpenVPN 2.4.6 x86_64-redhat-linux-gnu",
    "TIME,Tue Jan  1 12:00:00 2019,1546344000",
    "HEADER,CLIENT_LIST,Common Name,Real Address,Virtual Address,Virtual IPv6 Address,"
    "Bytes Received,Bytes Sent,Connected Since,Connected Since (time_t),Username,Client ID,Peer ID",
    f"CLIENT_LIST,{COMMON_NAME},192.0.2.1:51234,10.0.0.2,fd00:4242:4242:4242::1000,"
    "3217,3105,Tue Jan  1 11:59:00 2019,1546343940,UNDEF,0,0",
    f"CLIENT_LIST,{OTHER_COMMON_NAME},192.0.2.2:51235,10.0.0.3,,100,200,Tue Jan  1 11:59:30 2019,1546343970,UNDEF,1,1",
    "CLIENT_LIST,UNDEF,192.0.2.3:51236,,,0,0,Tue Jan  1 11:59:50 2019,1546343990,UNDEF,2,2",
    "HEADER,ROUTING_TABLE,Virtual Address,Common Name,Real Address,Last Ref,Last Ref (time_t)",
    f"ROUTING_TABLE,10.0.0.2,{COMMON_NAME},192.0.2.1:51234,Tue Jan  1 12:00:00 2019,1546344000",
    "GLOBAL_STATS,Max bcast/mcast queue length,0",
]


def test_parse_client_list():
    clients = parse_client_list(STATUS_OUTPUT)

    assert clients == [
        ConnectionInfo(common_name=COMMON_NAME, virtual_address=["10.0.0.2", "fd00:4242:4242:4242::1000"]),
        ConnectionInfo(common_name=OTHER_COMMON_NAME, virtual_address=["10.0.0.3"]),
    ]


def test_parse_kill_response():
    assert parse_kill_response(f"SUCCESS: common name '{COMMON_NAME}' found, 2 client(s) killed") == 2
    assert parse_kill_response(f"ERROR: common name '{COMMON_NAME}' not found") == 0


def _serve_once(responses):
    """Fake management interface answering a single session."""
    server = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    server.bind(("127.0.0.1", 0))
    server.listen(1)
    received = []

    def handle():
        conn, _ = server.accept()
        with conn:
            handle_file = conn.makefile("rwb", buffering=0)
            handle_file.write(b">INFO:OpenVPN Management Interface Version 1 -- type 'help' for more info\n")
            received.append(handle_file.readline().decode().strip())
            handle_file.write(b">BYTECOUNT:1,2\n")
            for line in responses:
                handle_file.write(f"{line}\n".encode())
            received.append(handle_file.readline().decode().strip())
            handle_file.close()
        server.close()

    thread = threading.Thread(target=handle, daemon=True)
    thread.start()
    return server.getsockname()[1], received, thread


def test_client_list_over_socket():
    port, received, thread = _serve_once(STATUS_OUTPUT + ["END"])

    clients = ManagementSocket("127.0.0.1", port, timeout=2).client_list()
    thread.join(timeout=2)

    assert received == ["status 2", "quit"]
    assert [c.common_name for c in clients] == [COMMON_NAME, OTHER_COMMON_NAME]


def test_kill_over_socket():
    port, received, thread = _serve_once([f"SUCCESS: common name '{COMMON_NAME}' found, 1 client(s) killed"])

    killed = ManagementSocket("127.0.0.1", port, timeout=2).kill(COMMON_NAME)
    thread.join(timeout=2)

    assert killed == 1
    assert received[0] == f"kill {COMMON_NAME}"


def test_unreachable_process_raises():
    with socket.socket() as probe:
        probe.bind(("127.0.0.1", 0))
        port = probe.getsockname()[1]

    with pytest.raises(ManagementSocketError):
        ManagementSocket("127.0.0.1", port, timeout=1).client_list()


def _socket_factory(clients_by_port, failing_ports=()):
    def factory(host, port, timeout):
        management_socket = Mock(spec=ManagementSocket)
        if port in failing_ports:
            management_socket.client_list.side_effect = ManagementSocketError(f"{host}:{port}", "refused")
            management_socket.kill.side_effect = ManagementSocketError(f"{host}:{port}", "refused")
        else:
            management_socket.client_list.return_value = clients_by_port.get(port, [])
            management_socket.kill.return_value = len(clients_by_port.get(port, []))
        return management_socket
    return factory


def test_server_manager_queries_every_process(profiles):
    clients = {
        11940: [ConnectionInfo(COMMON_NAME, ["10.0.0.2", "fd00::2"])],
        11956: [ConnectionInfo(OTHER_COMMON_NAME, ["10.1.0.2", "fd00::3"])],
        11957: [ConnectionInfo(COMMON_NAME, ["10.1.0.130", "fd00::4"])],
    }
    manager = ServerManager(profiles, socket_factory=_socket_factory(clients))

    connection_list = manager.get_connection_list()

    assert set(connection_list) == {"internet", "office", "admin"}
    assert [c.common_name for c in connection_list["internet"]] == [COMMON_NAME]
    assert len(connection_list["office"]) == 2
    assert connection_list["admin"] == []


def test_server_manager_filters(profiles):
    clients = {
        11956: [ConnectionInfo(OTHER_COMMON_NAME, ["10.1.0.2"])],
        11957: [ConnectionInfo(COMMON_NAME, ["10.1.0.130"])],
    }
    manager = ServerManager(profiles, socket_factory=_socket_factory(clients))

    connection_list = manager.get_connection_list("office", COMMON_NAME)

    assert list(connection_list) == ["office"]
    assert [c.common_name for c in connection_list["office"]] == [COMMON_NAME]


def test_server_manager_tolerates_down_process(profiles):
    clients = {11940: [ConnectionInfo(COMMON_NAME, ["10.0.0.2"])]}
    manager = ServerManager(profiles, socket_factory=_socket_factory(clients, failing_ports={11956}))

    connection_list = manager.get_connection_list()

    assert len(connection_list["internet"]) == 1
    assert connection_list["office"] == []


def test_server_manager_kill(profiles):
    clients = {
        11940: [ConnectionInfo(COMMON_NAME, ["10.0.0.2"])],
        11957: [ConnectionInfo(COMMON_NAME, ["10.1.0.130"])],
    }
    manager = ServerManager(profiles, socket_factory=_socket_factory(clients, failing_ports={11972}))

    assert manager.kill(COMMON_NAME) == 2
