import hvac.exceptions
import requests

'''
Errors raised by the session, the key-value operations and the token manager. Callers only need to
know these classes, the transport exceptions are translated by 'classify_error'.
'''


class VaultAuthErr(Exception):
    def __init__(self, *args):
        super().__init__(*args)


class ConfigurationErr(VaultAuthErr):
    """
    Exception thrown when the connection settings are malformed.
    """


class ConnectionErr(VaultAuthErr):
    """
    Exception thrown when the transport can't be initialized or the store can't be reached.
    """


class AuthenticationErr(VaultAuthErr):
    """
    Exception thrown when the token is invalid, revoked or its lookup was rejected.
    """


class NotFoundErr(VaultAuthErr):
    """
    Exception thrown when a secret path doesn't exist. The 'data' attribute is always an empty mapping
    so that absence can be handled like an empty secret.
    """
    def __init__(self, *args):
        super().__init__(*args)
        self.data = {}


class TokenRenewalErr(VaultAuthErr):
    """
    Exception thrown when the token couldn't be renewed.
    """


class ErrInvalidTokenMgrConfig(ConfigurationErr):
    def __init__(self, reason: str = None):
        message = "This token manager configuration can't be used."
        if reason:
            message = "{} {}".format(message, reason)
        super().__init__(message)


_NOT_FOUND = (hvac.exceptions.InvalidPath,)
_AUTHENTICATION = (hvac.exceptions.Unauthorized, hvac.exceptions.Forbidden)
_CONNECTION = (
    hvac.exceptions.VaultDown,
    hvac.exceptions.BadGateway,
    requests.exceptions.ConnectionError,
    requests.exceptions.Timeout,
)


def classify_error(error: Exception) -> VaultAuthErr:
    """
    Translates an exception raised by hvac or requests into one of our error classes.
    The original exception is kept as the cause.

    :param error: exception raised by the transport
    :return: VaultAuthErr
    """
    if isinstance(error, VaultAuthErr):
        return error

    if isinstance(error, _NOT_FOUND):
        classified = NotFoundErr(str(error) or "secret not found")
    elif isinstance(error, _AUTHENTICATION):
        classified = AuthenticationErr(str(error) or "permission denied")
    elif isinstance(error, _CONNECTION):
        classified = ConnectionErr(str(error) or "vault is unreachable")
    else:
        classified = VaultAuthErr(str(error) or type(error).__name__)

    classified.__cause__ = error
    return classified
