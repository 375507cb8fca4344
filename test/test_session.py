from unittest.mock import Mock

import hvac
import pytest

from vaultauth.config import SessionConfig
from vaultauth.err import ConfigurationErr, ConnectionErr
from vaultauth.session import Session


class TestSession:
    def test_open(self):
        session = Session.open(SessionConfig(address="http://127.0.0.1:8200", token="s.token"))

        assert isinstance(session.handle(), hvac.Client)
        assert session.token == "s.token"
        session.close()

    def test_open_from_env(self, monkeypatch):
        monkeypatch.setenv("VAULT_ADDR", "http://vault.local:8200")
        monkeypatch.setenv("VAULT_TOKEN", "s.from-env")

        with Session.open() as session:
            assert session.handle().token == "s.from-env"

        assert session.closed is True

    def test_open_invalid_address(self):
        with pytest.raises(ConfigurationErr):
            Session.open(SessionConfig(address="vault.local:8200"))

    def test_open_client_failure(self, monkeypatch):
        def failing_client(**kwargs):
            raise ValueError("broken transport")

        monkeypatch.setattr("vaultauth.session.hvac.Client", failing_client)

        with pytest.raises(ConnectionErr):
            Session.open(SessionConfig(address="http://127.0.0.1:8200"))

    def test_set_token(self):
        session = Session.open(SessionConfig(address="http://127.0.0.1:8200", token="s.old"))

        session.set_token("s.new")

        assert session.token == "s.new"
        assert session.handle().token == "s.new"
        session.close()

    def test_handle_after_close(self):
        client = Mock(spec=hvac.Client)
        session = Session(client)

        session.close()
        session.close()

        client.adapter.close.assert_called_once()
        with pytest.raises(ConnectionErr):
            session.handle()
