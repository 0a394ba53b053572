"""Tests for pbi_sessions/dispatcher.py - one command, one connection."""

import logging
from unittest.mock import patch

import pytest

from pbi_sessions.dispatcher import execute
from pbi_sessions.errors import (
    ClientLibraryMissing,
    CommandError,
    EngineConnectionError,
)
from pbi_sessions.models import ResultSet, Session


class TestExecute:

    def test_returns_result_and_closes(self, fabrikam, fake_client_cls, make_factory):
        expected = ResultSet(columns=["Sales[Amount]"], rows=[(10.5,), (20.0,)])
        client = fake_client_cls(result=expected)

        result = execute(fabrikam, "EVALUATE Sales", client_factory=make_factory(client))

        assert result is expected
        assert client.commands == ["EVALUATE Sales"]
        assert client.opened and client.closed

    def test_connection_string_uses_data_source(self, fabrikam, fake_client_cls, make_factory):
        client = fake_client_cls()
        execute(fabrikam, "EVALUATE {1}", client_factory=make_factory(client))
        assert client.connection_string == "Provider=MSOLAP;Data Source=localhost:51125;"

    def test_command_text_is_sent_verbatim(self, fabrikam, fake_client_cls, make_factory):
        client = fake_client_cls()
        command = "EVALUATE ('O'Brien')  -- not escaped"

        execute(fabrikam, command, client_factory=make_factory(client))

        assert client.commands == [command]

    def test_open_failure_raises_connection_error(self, fabrikam, fake_client_cls, make_factory):
        client = fake_client_cls(open_error=OSError("connection refused"))

        with pytest.raises(EngineConnectionError) as exc:
            execute(fabrikam, "EVALUATE {1}", client_factory=make_factory(client))

        message = str(exc.value)
        assert "localhost:51125" in message
        assert "Fabrikam Processes" in message
        assert "connection refused" in message
        assert exc.value.kind == "connection_error"
        assert client.commands == []

    def test_command_failure_raises_command_error_and_closes(self, fabrikam, fake_client_cls, make_factory):
        client = fake_client_cls(query_error=ValueError("Syntax error near 'EVALUTE'"))

        with pytest.raises(CommandError) as exc:
            execute(fabrikam, "EVALUTE Sales", client_factory=make_factory(client))

        assert exc.value.command == "EVALUTE Sales"
        assert "EVALUTE Sales" in str(exc.value)
        assert isinstance(exc.value.__cause__, ValueError)
        assert client.closed

    def test_close_failure_does_not_hide_result(self, fabrikam, fake_client_cls, make_factory, caplog):
        client = fake_client_cls(close_error=OSError("socket reset"))

        with caplog.at_level(logging.WARNING, logger="pbi_sessions"):
            result = execute(fabrikam, "EVALUATE {1}", client_factory=make_factory(client))

        assert result.rows == [(1,)]
        assert "socket reset" in caplog.text

    def test_missing_client_library_propagates_unchanged(self, fabrikam, fake_client_cls, make_factory):
        client = fake_client_cls(open_error=ClientLibraryMissing("ADOMD.NET not installed"))

        with pytest.raises(ClientLibraryMissing):
            execute(fabrikam, "EVALUATE {1}", client_factory=make_factory(client))

    def test_classified_error_from_query_is_not_rewrapped(self, fabrikam, fake_client_cls, make_factory):
        client = fake_client_cls(query_error=ClientLibraryMissing("ADOMD.NET unloaded"))

        with pytest.raises(ClientLibraryMissing):
            execute(fabrikam, "EVALUATE {1}", client_factory=make_factory(client))

        assert client.closed

    def test_session_without_port_is_rejected_before_connecting(self, fake_client_cls, make_factory):
        session = Session(id=1, title="Loading")
        client = fake_client_cls()

        with pytest.raises(EngineConnectionError) as exc:
            execute(session, "EVALUATE {1}", client_factory=make_factory(client))

        assert "Loading" in str(exc.value)
        assert client.connection_string is None

    @patch("pbi_sessions.dispatcher.adomd_factory")
    def test_default_factory_uses_configured_adomd_dir(self, mock_factory, fabrikam, config, fake_client_cls):
        client = fake_client_cls()
        mock_factory.return_value = lambda conn_str: client

        execute(fabrikam, "EVALUATE {1}", config=config)

        assert mock_factory.call_args[0][0] == config.adomd_dir
        assert client.closed
