import logging
import threading
from enum import Enum
from typing import Callable, Optional

from vaultauth.err import (
    AuthenticationErr,
    ConnectionErr,
    ErrInvalidTokenMgrConfig,
    TokenRenewalErr,
    VaultAuthErr,
    classify_error,
)
from vaultauth.session import Session
from vaultauth.token import TokenDescriptor

logger = logging.getLogger(__name__)

ONE_HOUR = 3600.0


class LifecycleState(Enum):
    INSPECTING = "inspecting"
    IDLE_NOT_RENEWABLE = "idle-not-renewable"
    WAITING = "waiting"
    RENEWING = "renewing"
    TERMINATED = "terminated"


class RenewalIncrement(Enum):
    """
    The increment requested from the store when renewing.

    TTL - the time to live observed before the renewal
    HALF_TTL - half of the observed time to live
    SERVER_DEFAULT - no increment, the store applies the token's default
    """
    TTL = "ttl"
    HALF_TTL = "half-ttl"
    SERVER_DEFAULT = "server-default"


class CredentialsListener:
    """
    Listeners that will be notified on events related to the token lifecycle.
    """
    def __init__(
            self,
            on_next: Optional[Callable[[TokenDescriptor], None]] = None,
            on_error: Optional[Callable[[Exception], None]] = None,
    ):
        self.on_next = on_next
        self.on_error = on_error


class RetryPolicy:
    def __init__(self, max_attempts: int = 0, delay_in_ms: float = 1000):
        self.max_attempts = max_attempts
        self.delay_in_ms = delay_in_ms

    def get_max_attempts(self) -> int:
        """
        Retry attempts for a renewal that failed to reach the store before the error is raised.
        Only connection errors are retried, a rejected renewal never is.

        :return: int
        """
        return self.max_attempts

    def get_delay_in_ms(self) -> float:
        """
        Delay between retries in milliseconds.

        :return: float
        """
        return self.delay_in_ms


class TokenManagerConfig:
    def __init__(
            self,
            renewal_threshold: float = ONE_HOUR,
            max_renewal_delay: float = ONE_HOUR,
            renewal_increment: RenewalIncrement = RenewalIncrement.TTL,
            retry_policy: Optional[RetryPolicy] = None,
    ):
        if renewal_threshold <= 0 or max_renewal_delay <= 0:
            raise ErrInvalidTokenMgrConfig("The threshold and the delay must be positive.")

        # A delay above the threshold could reach the ttl of a token that lives just a bit longer
        if max_renewal_delay > renewal_threshold:
            raise ErrInvalidTokenMgrConfig("The maximum delay can't exceed the renewal threshold.")

        self._renewal_threshold = renewal_threshold
        self._max_renewal_delay = max_renewal_delay
        self._renewal_increment = RenewalIncrement(renewal_increment)
        self._retry_policy = retry_policy or RetryPolicy()

    def get_renewal_threshold(self) -> float:
        """
        Tokens with a time to live up to this many seconds are renewed at the midpoint of their
        remaining life.

        :return: float
        """
        return self._renewal_threshold

    def get_max_renewal_delay(self) -> float:
        """
        The longest time in seconds to wait between two renewals, whatever the time to live is.

        :return: float
        """
        return self._max_renewal_delay

    def get_renewal_increment(self) -> RenewalIncrement:
        return self._renewal_increment

    def get_retry_policy(self) -> RetryPolicy:
        return self._retry_policy


def calculate_renewal_delay(
        ttl: float,
        renewal_threshold: float = ONE_HOUR,
        max_renewal_delay: float = ONE_HOUR,
) -> float:
    """
    Seconds to wait before the next renewal of a token that has 'ttl' seconds left.

    :return: float
    """
    if ttl <= 0:
        return 0.0

    if ttl <= renewal_threshold:
        return ttl / 2

    return max_renewal_delay


def calculate_renewal_increment(ttl: float, policy: RenewalIncrement) -> Optional[int]:
    """
    The increment in seconds to request, None lets the store decide.

    :return: Optional[int]
    """
    if policy is RenewalIncrement.SERVER_DEFAULT:
        return None

    if policy is RenewalIncrement.HALF_TTL:
        ttl = ttl / 2

    return max(int(ttl), 1)


class TokenManager:
    """
    Keeps the token of a session alive by renewing it before it expires.

    The manager stops on its own when the token can't be renewed, and raises when the lookup or a
    renewal fails. Being stopped is not an error.
    """
    def __init__(
            self,
            session: Session,
            config: Optional[TokenManagerConfig] = None,
            listener: Optional[CredentialsListener] = None,
    ):
        self._session = session
        self._config = config or TokenManagerConfig()
        self._listener = listener or CredentialsListener()
        self._stop_event = threading.Event()
        self._thread = None
        self._error = None
        self._state = LifecycleState.INSPECTING
        self._renewals = 0

    @property
    def state(self) -> LifecycleState:
        return self._state

    @property
    def renewals(self) -> int:
        return self._renewals

    @property
    def error(self) -> Optional[Exception]:
        return self._error

    def start(self) -> Callable[[], None]:
        """
        Runs the lifecycle loop on a daemon thread.

        :return: the function that stops the manager
        """
        if self._thread is not None:
            raise RuntimeError("The token manager was already started")

        self._thread = threading.Thread(
            target=self._run_in_background,
            name="vault-token-manager",
            daemon=True,
        )
        self._thread.start()
        logger.info("Started vault token manager")

        return self.stop

    def stop(self, timeout: Optional[float] = None) -> None:
        self._stop_event.set()

        if self._thread is not None and self._thread is not threading.current_thread():
            self._thread.join(timeout)

    def wait(self, timeout: Optional[float] = None) -> bool:
        """
        Blocks until the background loop has terminated and raises the error it terminated with.

        :return: False if the loop is still running when the timeout expires, True otherwise
        """
        if self._thread is not None:
            self._thread.join(timeout)
            if self._thread.is_alive():
                return False

        if self._error is not None:
            raise self._error

        return True

    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def _run_in_background(self):
        try:
            self.run(self._stop_event)
        except VaultAuthErr:
            # Already stored and reported by run
            pass

    def run(self, stop_event: Optional[threading.Event] = None) -> None:
        """
        Blocking lifecycle loop: look the token up, wait until it should be renewed, renew it and
        start over. Returns when 'stop_event' is set or the token isn't renewable.

        :param stop_event: cancellation signal, the manager's own event if omitted
        """
        stop = self._stop_event if stop_event is None else stop_event

        try:
            while not stop.is_set():
                self._state = LifecycleState.INSPECTING
                descriptor = self._lookup()

                if not descriptor.renewable:
                    self._state = LifecycleState.IDLE_NOT_RENEWABLE
                    logger.info("Vault token is not renewable, nothing to manage")
                    break

                if descriptor.is_expired():
                    raise TokenRenewalErr("Vault token is expired")

                delay = calculate_renewal_delay(
                    descriptor.ttl,
                    self._config.get_renewal_threshold(),
                    self._config.get_max_renewal_delay(),
                )
                logger.debug("Vault token ttl = %.1fs, renewing in %.1fs", descriptor.ttl, delay)

                self._state = LifecycleState.WAITING
                if stop.wait(delay):
                    break

                self._state = LifecycleState.RENEWING
                renewed = self._renew(descriptor.ttl, stop)
                if renewed is None:
                    break

                self._on_renewed(renewed)
        except VaultAuthErr as e:
            self._error = e
            self._state = LifecycleState.TERMINATED
            if self._listener.on_error is not None:
                self._listener.on_error(e)
            raise

        self._state = LifecycleState.TERMINATED
        logger.info("Vault token manager terminated")

    def _lookup(self) -> TokenDescriptor:
        client = self._session.handle()
        try:
            response = client.auth.token.lookup_self()
        except Exception as e:
            error = classify_error(e)
            logger.error("Error vault lookup self: %s", error)
            if isinstance(error, ConnectionErr):
                raise error from e
            raise AuthenticationErr("Vault token lookup failed: {}".format(error)) from e

        return TokenDescriptor.from_response(response)

    def _renew(self, ttl: float, stop: threading.Event) -> Optional[TokenDescriptor]:
        """
        Renews the token, retrying connection errors according to the retry policy.

        :return: the new descriptor, or None if the manager was stopped while retrying
        """
        increment = calculate_renewal_increment(ttl, self._config.get_renewal_increment())
        retry_policy = self._config.get_retry_policy()
        attempts = 0

        while True:
            logger.debug("Renewing vault token, increment = %s", increment)
            try:
                response = self._session.handle().auth.token.renew_self(increment=increment)
                return TokenDescriptor.from_response(response)
            except Exception as e:
                error = classify_error(e)

                if isinstance(error, ConnectionErr) and attempts < retry_policy.get_max_attempts():
                    attempts += 1
                    logger.warning(
                        "Vault token renewal failed (%d/%d): %s",
                        attempts, retry_policy.get_max_attempts(), error,
                    )
                    if stop.wait(retry_policy.get_delay_in_ms() / 1000):
                        return None
                    continue

                logger.error("Error renew vault token: %s", error)
                raise TokenRenewalErr("Vault token renewal failed: {}".format(error)) from error

    def _on_renewed(self, descriptor: TokenDescriptor) -> None:
        if descriptor.client_token:
            self._session.set_token(descriptor.client_token)

        self._renewals += 1
        logger.debug("Vault token renewed, ttl = %.1fs", descriptor.ttl)

        if self._listener.on_next is None:
            return

        try:
            self._listener.on_next(descriptor)
        except Exception as e:
            raise TokenRenewalErr("Renewal listener failed: {}".format(e)) from e
