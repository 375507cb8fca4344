import os
import re
from typing import Optional, Tuple, Union
from urllib.parse import urlparse

from vaultauth.err import ConfigurationErr

DEFAULT_ADDRESS = "https://127.0.0.1:8200"
DEFAULT_TIMEOUT = 60.0

_DURATION = re.compile(r"^\s*(\d+(?:\.\d+)?)\s*([smh]?)\s*$")
_UNITS = {"": 1, "s": 1, "m": 60, "h": 3600}
_TRUE = ("1", "t", "true", "yes", "y", "on")


def parse_duration(value: Union[str, int, float]) -> float:
    """
    Parses a timeout like '30', '30s', '5m' or '1h' into seconds.

    :return: float
    """
    if isinstance(value, (int, float)):
        return float(value)

    match = _DURATION.match(value or "")
    if match is None:
        raise ConfigurationErr("Invalid duration '{}'".format(value))

    return float(match.group(1)) * _UNITS[match.group(2)]


class SessionConfig:
    """
    Connection settings of a session. Everything that isn't passed explicitly falls back to None,
    use 'from_env' to follow the conventions of the vault CLI.
    """
    def __init__(
            self,
            address: str = DEFAULT_ADDRESS,
            token: Optional[str] = None,
            ca_cert: Optional[str] = None,
            ca_path: Optional[str] = None,
            client_cert: Optional[str] = None,
            client_key: Optional[str] = None,
            skip_verify: bool = False,
            timeout: float = DEFAULT_TIMEOUT,
            namespace: Optional[str] = None,
    ):
        self.address = address
        self.token = token
        self.ca_cert = ca_cert
        self.ca_path = ca_path
        self.client_cert = client_cert
        self.client_key = client_key
        self.skip_verify = skip_verify
        self.timeout = timeout
        self.namespace = namespace

    @classmethod
    def from_env(cls, environ=None) -> "SessionConfig":
        """
        Reads VAULT_ADDR, VAULT_TOKEN, VAULT_CACERT, VAULT_CAPATH, VAULT_CLIENT_CERT, VAULT_CLIENT_KEY,
        VAULT_SKIP_VERIFY, VAULT_CLIENT_TIMEOUT and VAULT_NAMESPACE.

        :param environ: mapping to read from, defaults to os.environ
        :return: SessionConfig
        """
        env = os.environ if environ is None else environ

        timeout = env.get("VAULT_CLIENT_TIMEOUT")

        return cls(
            address=env.get("VAULT_ADDR") or DEFAULT_ADDRESS,
            token=env.get("VAULT_TOKEN") or None,
            ca_cert=env.get("VAULT_CACERT") or None,
            ca_path=env.get("VAULT_CAPATH") or None,
            client_cert=env.get("VAULT_CLIENT_CERT") or None,
            client_key=env.get("VAULT_CLIENT_KEY") or None,
            skip_verify=env.get("VAULT_SKIP_VERIFY", "").strip().lower() in _TRUE,
            timeout=parse_duration(timeout) if timeout else DEFAULT_TIMEOUT,
            namespace=env.get("VAULT_NAMESPACE") or None,
        )

    def validate(self) -> None:
        parsed = urlparse(self.address or "")
        if parsed.scheme not in ("http", "https") or not parsed.hostname:
            raise ConfigurationErr("Invalid vault address '{}'".format(self.address))

        try:
            # Accessing the port validates it
            parsed.port
        except ValueError as e:
            raise ConfigurationErr("Invalid vault address '{}'".format(self.address)) from e

        if bool(self.client_cert) != bool(self.client_key):
            raise ConfigurationErr("A client certificate and a client key must be configured together")

        for path in (self.ca_cert, self.client_cert, self.client_key):
            if path and not os.path.isfile(path):
                raise ConfigurationErr("TLS file '{}' doesn't exist".format(path))

        if self.ca_path and not os.path.isdir(self.ca_path):
            raise ConfigurationErr("TLS directory '{}' doesn't exist".format(self.ca_path))

        if not isinstance(self.timeout, (int, float)) or self.timeout <= 0:
            raise ConfigurationErr("The timeout must be a positive number of seconds")

    def get_verify(self) -> Union[bool, str]:
        """
        The value requests expects for certificate verification: False, a CA bundle or a CA directory.

        :return: Union[bool, str]
        """
        if self.skip_verify:
            return False

        return self.ca_cert or self.ca_path or True

    def get_cert(self) -> Optional[Tuple[str, str]]:
        if self.client_cert and self.client_key:
            return self.client_cert, self.client_key

        return None
