from typing import Any, Mapping, Optional, Tuple

'''
A token descriptor is a snapshot of what the store told us about the token:

- If it can be renewed
- How long it still has to live (in seconds)

It is never updated, each lookup or renewal response results in a new descriptor.
'''


class TokenDescriptor:
    def __init__(
            self,
            renewable: bool,
            ttl: float,
            client_token: Optional[str] = None,
            accessor: Optional[str] = None,
            policies: Tuple[str, ...] = (),
    ) -> None:
        self._renewable = bool(renewable)
        self._ttl = float(ttl)
        self._client_token = client_token
        self._accessor = accessor
        self._policies = tuple(policies)

    @classmethod
    def from_response(cls, response: Mapping[str, Any]) -> "TokenDescriptor":
        """
        Builds a descriptor from a lookup-self or a renew-self response. The 'auth' section of a renewal
        response wins over the 'data' section of a lookup response.

        :param response: JSON body returned by the store
        :return: TokenDescriptor
        """
        auth = (response or {}).get("auth") or {}
        if auth:
            return cls(
                auth.get("renewable", False),
                auth.get("lease_duration") or 0,
                client_token=auth.get("client_token"),
                accessor=auth.get("accessor"),
                policies=auth.get("policies") or (),
            )

        data = (response or {}).get("data") or {}
        return cls(
            data.get("renewable", False),
            data.get("ttl") or 0,
            client_token=data.get("id"),
            accessor=data.get("accessor"),
            policies=data.get("policies") or (),
        )

    @property
    def renewable(self) -> bool:
        return self._renewable

    @property
    def ttl(self) -> float:
        return self._ttl

    @property
    def client_token(self) -> Optional[str]:
        return self._client_token

    @property
    def accessor(self) -> Optional[str]:
        return self._accessor

    @property
    def policies(self) -> Tuple[str, ...]:
        return self._policies

    def is_expired(self) -> bool:
        return self._ttl <= 0

    def __repr__(self):
        return "TokenDescriptor(renewable={}, ttl={}, accessor={!r})".format(
            self._renewable, self._ttl, self._accessor
        )
