"""Shared fixtures for the pbi_sessions test suite."""

from pathlib import Path

import pytest

from pbi_sessions.config import Config
from pbi_sessions.models import ProcessRow, ResultSet, Session, TcpRow


# ---------------------------------------------------------------------------
# Config
# ---------------------------------------------------------------------------

@pytest.fixture
def config(tmp_path):
    return Config(
        process_name="PBIDesktop.exe",
        title_suffix=" - Power BI Desktop",
        engine_host="localhost",
        adomd_dir=Path(tmp_path),
    )


# ---------------------------------------------------------------------------
# OS snapshot fixtures
# ---------------------------------------------------------------------------

def make_process(pid, title, name="PBIDesktop.exe"):
    return ProcessRow(pid=pid, name=name, window_title=title)


def make_tcp(owner, port, address="::1", status="ESTABLISHED"):
    return TcpRow(
        owner=owner,
        status=status,
        local_address=address,
        remote_address=address,
        remote_port=port,
    )


@pytest.fixture
def two_processes():
    """Two open reports, in OS enumeration order."""
    return [
        make_process(84096, "Fabrikam Processes - Power BI Desktop"),
        make_process(84664, "Northwind Sales Monitoring - Power BI Desktop"),
    ]


@pytest.fixture
def two_connections():
    return [
        make_tcp(84096, 51125),
        make_tcp(84664, 61248),
    ]


@pytest.fixture
def fabrikam():
    return Session(
        id=84096,
        title="Fabrikam Processes",
        address="::1",
        port=51125,
        data_source="localhost:51125",
    )


@pytest.fixture
def northwind():
    return Session(
        id=84664,
        title="Northwind Sales Monitoring",
        address="::1",
        port=61248,
        data_source="localhost:61248",
    )


# ---------------------------------------------------------------------------
# Engine client fakes
# ---------------------------------------------------------------------------

class FakeClient:
    """In-memory EngineClient that records how the dispatcher drives it."""

    def __init__(self, result=None, open_error=None, query_error=None, close_error=None):
        self.result = result or ResultSet(columns=["Value"], rows=[(1,)])
        self.open_error = open_error
        self.query_error = query_error
        self.close_error = close_error
        self.connection_string = None
        self.commands = []
        self.opened = False
        self.closed = False

    def open(self):
        if self.open_error:
            raise self.open_error
        self.opened = True

    def query(self, command):
        self.commands.append(command)
        if self.query_error:
            raise self.query_error
        return self.result

    def close(self):
        self.closed = True
        if self.close_error:
            raise self.close_error


@pytest.fixture
def fake_client_cls():
    return FakeClient


@pytest.fixture
def make_factory():
    """Wrap a FakeClient in a connection-string factory."""
    def _make(client):
        def _factory(conn_str):
            client.connection_string = conn_str
            return client
        return _factory
    return _make
