import logging
import threading
from typing import Optional

import hvac

from vaultauth.config import SessionConfig
from vaultauth.err import ConnectionErr

logger = logging.getLogger(__name__)


'''
A session owns the client that talks to the secrets store. The token manager and the key-value operations
share the same session, whereby only the token manager replaces the token.
'''
class Session:
    def __init__(self, client: hvac.Client):
        self._client = client
        self._lock = threading.Lock()
        self._closed = False

    @classmethod
    def open(cls, config: Optional[SessionConfig] = None) -> "Session":
        """
        Validates the configuration and creates the client. No request is sent to the store, so an
        invalid token is only detected by the first operation.

        :param config: connection settings, read from the environment if omitted
        :return: Session
        """
        if config is None:
            config = SessionConfig.from_env()

        config.validate()

        try:
            client = hvac.Client(
                url=config.address,
                token=config.token,
                cert=config.get_cert(),
                verify=config.get_verify(),
                timeout=config.timeout,
                namespace=config.namespace,
            )
        except Exception as e:
            raise ConnectionErr("Can't initialize the client for {}".format(config.address)) from e

        logger.debug("Opened vault session for %s", config.address)
        return cls(client)

    def handle(self) -> hvac.Client:
        """
        The client to use for requests. It always carries the most recently published token.

        :return: hvac.Client
        """
        if self._closed:
            raise ConnectionErr("The session is closed")

        return self._client

    @property
    def token(self) -> Optional[str]:
        with self._lock:
            return self._client.token

    def set_token(self, token: str) -> None:
        with self._lock:
            self._client.token = token

    @property
    def closed(self) -> bool:
        return self._closed

    def close(self) -> None:
        if self._closed:
            return

        self._closed = True
        adapter = getattr(self._client, "adapter", None)
        if adapter is not None:
            adapter.close()
        logger.debug("Closed vault session")

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
