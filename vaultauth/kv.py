import logging
from typing import Any, Dict, List, Mapping

from vaultauth.err import NotFoundErr, classify_error
from vaultauth.session import Session

logger = logging.getLogger(__name__)


'''
Key-value operations on a KV version 2 secrets engine. Every call reads the session's current client, so a
token renewed by the token manager is used by the next call.
'''
class KVStore:
    def __init__(self, session: Session):
        self._session = session

    def write(self, mount: str, path: str, data: Mapping[str, Any]) -> None:
        client = self._session.handle()
        try:
            client.secrets.kv.v2.create_or_update_secret(
                path=path,
                secret=dict(data),
                mount_point=mount,
            )
        except Exception as e:
            raise classify_error(e) from e

        logger.debug("Wrote secret %s/%s", mount, path)

    def read(self, mount: str, path: str, missing_ok: bool = False) -> Dict[str, Any]:
        """
        Reads the latest version of a secret.

        :param missing_ok: return an empty mapping instead of raising NotFoundErr
        :return: the secret's key-value pairs
        """
        client = self._session.handle()
        try:
            response = client.secrets.kv.v2.read_secret_version(
                path=path,
                mount_point=mount,
                raise_on_deleted_version=True,
            )
        except Exception as e:
            error = classify_error(e)
            if isinstance(error, NotFoundErr) and missing_ok:
                return {}
            raise error from e

        data = ((response or {}).get("data") or {}).get("data")
        if data is None:
            if missing_ok:
                return {}
            raise NotFoundErr("Secret {}/{} has no data".format(mount, path))

        return dict(data)

    def delete(self, mount: str, path: str) -> None:
        """
        Deletes the latest version of a secret. Older versions stay readable by version.
        """
        client = self._session.handle()
        try:
            client.secrets.kv.v2.delete_latest_version_of_secret(
                path=path,
                mount_point=mount,
            )
        except Exception as e:
            raise classify_error(e) from e

        logger.debug("Deleted secret %s/%s", mount, path)

    def list(self, path: str) -> List[str]:
        """
        Lists the children of a path, e.g. 'secret/metadata/app'. A path without children results in an
        empty list.

        :return: List[str]
        """
        client = self._session.handle()
        try:
            response = client.list(path)
        except Exception as e:
            error = classify_error(e)
            if isinstance(error, NotFoundErr):
                return []
            raise error from e

        return list(((response or {}).get("data") or {}).get("keys") or [])
