"""
Identity provider abstract interface.
"""

from abc import ABC, abstractmethod

from .types import UserIdentity


class IdentityProvider(ABC):
    """Resolves the signed-in account.

    Implementations wrap whatever authentication backend the host
    application uses and expose it as a signed-in / signed-out input.
    """

    @abstractmethod
    async def get_current_identity(self) -> UserIdentity | None:
        """Return the signed-in identity, or None when signed out."""
        ...

    @abstractmethod
    async def sign_out(self) -> None:
        """Forget the current identity."""
        ...
