from unittest.mock import Mock

import hvac
import pytest
import requests

from vaultauth.err import AuthenticationErr, ConnectionErr, NotFoundErr, VaultAuthErr
from vaultauth.kv import KVStore
from vaultauth.session import Session


def in_memory_client():
    """
    A client whose KV v2 engine keeps the secrets in a dictionary.
    """
    secrets = {}
    client = Mock(spec=hvac.Client)
    kv = client.secrets.kv.v2

    def create_or_update_secret(path, secret, mount_point):
        secrets[(mount_point, path)] = dict(secret)
        return {"data": {"version": 1}}

    def read_secret_version(path, mount_point, raise_on_deleted_version=None):
        if (mount_point, path) not in secrets:
            raise hvac.exceptions.InvalidPath("not found")
        return {"data": {"data": dict(secrets[(mount_point, path)]), "metadata": {"version": 1}}}

    def delete_latest_version_of_secret(path, mount_point):
        secrets.pop((mount_point, path), None)

    kv.create_or_update_secret.side_effect = create_or_update_secret
    kv.read_secret_version.side_effect = read_secret_version
    kv.delete_latest_version_of_secret.side_effect = delete_latest_version_of_secret

    return client


class TestKVStore:
    def test_write_then_read(self):
        store = KVStore(Session(in_memory_client()))
        data = {
            "test1": "test5",
            "test2": "test4",
            "test3": "test3",
        }

        store.write("chainsmart", "test/vault-manager-read", data)

        assert store.read("chainsmart", "test/vault-manager-read") == data

    def test_read_not_found(self):
        store = KVStore(Session(in_memory_client()))

        with pytest.raises(NotFoundErr) as excinfo:
            store.read("chainsmart", "test/vault-manager-not-found")

        assert excinfo.value.data is not None
        assert excinfo.value.data == {}
        assert isinstance(excinfo.value.__cause__, hvac.exceptions.InvalidPath)

    def test_read_missing_ok(self):
        store = KVStore(Session(in_memory_client()))

        assert store.read("chainsmart", "test/missing", missing_ok=True) == {}

    def test_delete(self):
        store = KVStore(Session(in_memory_client()))
        store.write("chainsmart", "test/vault-manager-write", {"key": "value"})

        store.delete("chainsmart", "test/vault-manager-write")

        with pytest.raises(NotFoundErr):
            store.read("chainsmart", "test/vault-manager-write")

    def test_mounts_are_separate(self):
        store = KVStore(Session(in_memory_client()))
        store.write("one", "app", {"key": "one"})
        store.write("two", "app", {"key": "two"})

        assert store.read("one", "app") == {"key": "one"}
        assert store.read("two", "app") == {"key": "two"}

    def test_read_permission_denied(self):
        client = Mock(spec=hvac.Client)
        client.secrets.kv.v2.read_secret_version.side_effect = hvac.exceptions.Forbidden("permission denied")

        with pytest.raises(AuthenticationErr):
            KVStore(Session(client)).read("chainsmart", "test/secret", missing_ok=True)

    def test_write_unreachable(self):
        client = Mock(spec=hvac.Client)
        client.secrets.kv.v2.create_or_update_secret.side_effect = requests.exceptions.ConnectionError("refused")

        with pytest.raises(ConnectionErr):
            KVStore(Session(client)).write("chainsmart", "test/secret", {"key": "value"})

    def test_delete_server_error(self):
        client = Mock(spec=hvac.Client)
        client.secrets.kv.v2.delete_latest_version_of_secret.side_effect = \
            hvac.exceptions.InternalServerError("internal error")

        with pytest.raises(VaultAuthErr) as excinfo:
            KVStore(Session(client)).delete("chainsmart", "test/secret")

        assert not isinstance(excinfo.value, (NotFoundErr, AuthenticationErr, ConnectionErr))

    def test_list(self):
        client = Mock(spec=hvac.Client)
        client.list.return_value = {"data": {"keys": ["app", "db/"]}}

        assert KVStore(Session(client)).list("chainsmart/metadata/test") == ["app", "db/"]
        client.list.assert_called_once_with("chainsmart/metadata/test")

    def test_list_without_children(self):
        client = Mock(spec=hvac.Client)
        client.list.side_effect = hvac.exceptions.InvalidPath("not found")

        assert KVStore(Session(client)).list("chainsmart/metadata/empty") == []

    def test_uses_renewed_token(self):
        client = in_memory_client()
        session = Session(client)
        store = KVStore(session)

        session.set_token("s.renewed")
        store.write("chainsmart", "app", {"key": "value"})

        assert client.token == "s.renewed"

    def test_closed_session(self):
        client = in_memory_client()
        session = Session(client)
        session.close()

        with pytest.raises(ConnectionErr) as excinfo:
            KVStore(session).read("chainsmart", "app")

        assert excinfo.value.__cause__ is not excinfo.value
        client.secrets.kv.v2.read_secret_version.assert_not_called()
