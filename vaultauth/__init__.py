from vaultauth.config import SessionConfig
from vaultauth.err import (
    AuthenticationErr,
    ConfigurationErr,
    ConnectionErr,
    ErrInvalidTokenMgrConfig,
    NotFoundErr,
    TokenRenewalErr,
    VaultAuthErr,
)
from vaultauth.kv import KVStore
from vaultauth.session import Session
from vaultauth.token import TokenDescriptor
from vaultauth.token_manager import (
    CredentialsListener,
    LifecycleState,
    RenewalIncrement,
    RetryPolicy,
    TokenManager,
    TokenManagerConfig,
    calculate_renewal_delay,
)
