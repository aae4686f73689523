"""
Identity module.

Supplies the signed-in account to the sync coordinator.
"""

from .config_provider import ConfigFileIdentityProvider
from .provider import IdentityProvider
from .types import UserIdentity

__all__ = [
    "ConfigFileIdentityProvider",
    "IdentityProvider",
    "UserIdentity",
]
