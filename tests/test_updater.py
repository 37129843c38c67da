"""Tests for the OpenVPN endpoint updater."""

from __future__ import annotations

from ipaddress import ip_address
from unittest.mock import MagicMock, call

import pytest

from ovpn_ip_updater.config import VPNConfig
from ovpn_ip_updater.models import UpdateOutcome
from ovpn_ip_updater.routeros import CommandFault, Sentence, Session
from ovpn_ip_updater.updater import (
    PRINT_COMMAND,
    SET_COMMAND,
    UpdaterError,
    check_and_update,
    get_ovpn_client,
    set_connect_to,
)

DONE = Sentence(command="!done")


def client_sentence(running: str = "false", connect_to: str = "10.0.0.5") -> Sentence:
    """An ``!re`` sentence as returned by /interface/ovpn-client/print."""
    return Sentence(
        command="!re",
        attributes={
            "=.id": "*3",
            "=name": "ovpn-out1",
            "=running": running,
            "=connect-to": connect_to,
        },
    )


@pytest.fixture
def session():
    """A mocked, connected router session."""
    return MagicMock(spec=Session)


@pytest.fixture
def vpn_config():
    return VPNConfig(host="vpn.example.com")


class TestGetOvpnClient:
    """Tests for get_ovpn_client."""

    def test_first_interface(self, session):
        session.run_command.return_value = [client_sentence(), DONE]
        assert get_ovpn_client(session) == client_sentence()
        session.run_command.assert_called_once_with(PRINT_COMMAND, None)

    def test_named_interface(self, session):
        session.run_command.return_value = [client_sentence(), DONE]
        get_ovpn_client(session, "ovpn-out1")
        session.run_command.assert_called_once_with(
            PRINT_COMMAND,
            {"?name": "ovpn-out1"},
        )

    def test_no_interface(self, session):
        session.run_command.return_value = [DONE]
        with pytest.raises(UpdaterError, match="No OpenVPN client"):
            get_ovpn_client(session)

    def test_named_interface_missing(self, session):
        session.run_command.return_value = [DONE]
        with pytest.raises(UpdaterError, match='"ovpn-out9" not found'):
            get_ovpn_client(session, "ovpn-out9")


class TestSetConnectTo:
    """Tests for set_connect_to."""

    def test_set_command(self, session):
        session.run_command.return_value = [DONE]
        set_connect_to(session, "*3", ip_address("203.0.113.9"))
        session.run_command.assert_called_once_with(
            SET_COMMAND,
            {"=.id": "*3", "=connect-to": "203.0.113.9"},
        )

    def test_trap_propagates(self, session):
        trap = Sentence(command="!trap", attributes={"=message": "no such item"})
        session.run_command.side_effect = CommandFault("no such item", [trap, DONE])
        with pytest.raises(CommandFault, match="no such item"):
            set_connect_to(session, "*9", ip_address("203.0.113.9"))


class TestCheckAndUpdate:
    """Tests for check_and_update."""

    def test_running_vpn_is_left_alone(self, session, vpn_config):
        session.run_command.return_value = [client_sentence(running="true"), DONE]
        resolve = MagicMock()

        result = check_and_update(session, vpn_config, resolve=resolve)

        assert result.outcome == UpdateOutcome.RUNNING
        assert result.previous_endpoint == "10.0.0.5"
        resolve.assert_not_called()
        assert session.run_command.call_count == 1

    def test_matching_address_is_unchanged(self, session, vpn_config):
        session.run_command.return_value = [client_sentence(), DONE]
        resolve = MagicMock(return_value=ip_address("10.0.0.5"))

        result = check_and_update(session, vpn_config, resolve=resolve)

        assert result.outcome == UpdateOutcome.UNCHANGED
        assert result.resolved_address == "10.0.0.5"
        resolve.assert_called_once_with("vpn.example.com", False)
        assert session.run_command.call_count == 1

    def test_stale_address_is_updated(self, session, vpn_config):
        session.run_command.side_effect = [[client_sentence(), DONE], [DONE]]
        resolve = MagicMock(return_value=ip_address("203.0.113.9"))

        result = check_and_update(session, vpn_config, resolve=resolve)

        assert result.outcome == UpdateOutcome.UPDATED
        assert result.interface_id == "*3"
        assert result.previous_endpoint == "10.0.0.5"
        assert result.resolved_address == "203.0.113.9"
        assert session.run_command.call_args_list == [
            call(PRINT_COMMAND, None),
            call(SET_COMMAND, {"=.id": "*3", "=connect-to": "203.0.113.9"}),
        ]

    def test_hostname_endpoint_is_replaced(self, session, vpn_config):
        session.run_command.side_effect = [
            [client_sentence(connect_to="vpn.example.com"), DONE],
            [DONE],
        ]
        resolve = MagicMock(return_value=ip_address("203.0.113.9"))

        result = check_and_update(session, vpn_config, resolve=resolve)
        assert result.outcome == UpdateOutcome.UPDATED

    def test_ipv6_preference_is_passed(self, session):
        session.run_command.side_effect = [[client_sentence(), DONE], [DONE]]
        resolve = MagicMock(return_value=ip_address("2001:db8::5"))
        config = VPNConfig(host="vpn.example.com", prefer_ipv6=True, interface="ovpn-out1")

        result = check_and_update(session, config, resolve=resolve)

        resolve.assert_called_once_with("vpn.example.com", True)
        assert result.resolved_address == "2001:db8::5"
        assert session.run_command.call_args_list[0] == call(
            PRINT_COMMAND,
            {"?name": "ovpn-out1"},
        )

    def test_missing_interface_id(self, session, vpn_config):
        sentence = Sentence(command="!re", attributes={"=running": "false"})
        session.run_command.return_value = [sentence, DONE]
        resolve = MagicMock(return_value=ip_address("203.0.113.9"))

        with pytest.raises(UpdaterError, match="no id"):
            check_and_update(session, vpn_config, resolve=resolve)
