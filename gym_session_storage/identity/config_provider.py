"""
Config file identity provider.

Reads the signed-in account from the local settings file, for the
command line and for headless devices.
"""

from pathlib import Path

from ..config import DEFAULT_SETTINGS_PATH, read_settings
from .provider import IdentityProvider
from .types import UserIdentity


class ConfigFileIdentityProvider(IdentityProvider):
    """Identity provider that reads from local config.

    Configuration in ~/.gym-tracker/settings.yaml:

    ```yaml
    identity:
      user_id: "4f1c2a9e-..."
      email: "me@example.com"
      display_name: "Me"
    ```

    A missing or empty ``identity`` section means signed out.
    """

    def __init__(self, config_path: Path | None = None):
        self.config_path = config_path or DEFAULT_SETTINGS_PATH
        self._identity: UserIdentity | None = None
        self._signed_out = False

    async def get_current_identity(self) -> UserIdentity | None:
        if self._signed_out:
            return None
        if self._identity is not None:
            return self._identity

        identity_config = read_settings(self.config_path).get("identity") or {}
        user_id = identity_config.get("user_id")
        if not user_id:
            return None

        self._identity = UserIdentity(
            user_id=str(user_id),
            email=identity_config.get("email"),
            display_name=identity_config.get("display_name"),
        )
        return self._identity

    async def sign_out(self) -> None:
        self._identity = None
        self._signed_out = True
