"""Player session interface used by the submission and query services.

Account registration itself lives outside this package. Anything that
looks like PlayerSession can be passed in.
"""

from typing import Protocol, runtime_checkable


@runtime_checkable
class PlayerSession(Protocol):
    """The current player's login state and bearer token."""

    @property
    def token(self) -> str: ...

    def is_logged_in(self) -> bool: ...

    async def register_guest(self) -> bool: ...


class StaticSession:
    """A session with a fixed token. Guest registration always fails."""

    def __init__(self, token: str = "") -> None:
        self._token = token

    @property
    def token(self) -> str:
        return self._token

    def is_logged_in(self) -> bool:
        return bool(self._token)

    async def register_guest(self) -> bool:
        return False
