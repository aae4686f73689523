"""Tests for identity module."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta
from pathlib import Path

import pytest
import yaml

from gym_session_storage.identity import ConfigFileIdentityProvider, UserIdentity


class TestUserIdentity:
    """Tests for UserIdentity dataclass."""

    def test_is_authenticated_without_token(self) -> None:
        """Test that config identities are always authenticated."""
        identity = UserIdentity(user_id="user-123")

        assert identity.is_authenticated() is True

    def test_is_authenticated_with_valid_token(self) -> None:
        """Test a token that has not expired."""
        identity = UserIdentity(
            user_id="user-123",
            auth_token="valid-token",
            token_expiry=datetime.now(UTC) + timedelta(hours=1),
        )

        assert identity.is_authenticated() is True

    def test_is_authenticated_with_expired_token(self) -> None:
        """Test a token past its expiry."""
        identity = UserIdentity(
            user_id="user-123",
            auth_token="expired-token",
            token_expiry=datetime.now(UTC) - timedelta(hours=1),
        )

        assert identity.is_authenticated() is False

    def test_empty_user_id_is_not_authenticated(self) -> None:
        """Test that an empty user id is never authenticated."""
        assert UserIdentity(user_id="").is_authenticated() is False

    def test_to_dict_excludes_token(self) -> None:
        """Test that auth_token is excluded from serialization."""
        identity = UserIdentity(user_id="user-123", auth_token="super-secret-token")

        data = identity.to_dict()

        assert "auth_token" not in data
        assert data["user_id"] == "user-123"

    def test_roundtrip(self) -> None:
        """Test serialization to and from a dictionary."""
        now = datetime.now(UTC)
        original = UserIdentity(
            user_id="user-123", email="me@example.com", display_name="Me", token_expiry=now
        )

        restored = UserIdentity.from_dict(original.to_dict())

        assert restored.user_id == original.user_id
        assert restored.email == original.email
        assert restored.token_expiry == now


class TestConfigFileIdentityProvider:
    """Tests for ConfigFileIdentityProvider."""

    @pytest.mark.asyncio
    async def test_reads_identity_section(self, temp_dir: Path) -> None:
        """Test reading the identity section of the settings file."""
        path = temp_dir / "settings.yaml"
        path.write_text(
            yaml.safe_dump({"identity": {"user_id": "user-9", "email": "nine@example.com"}}),
            encoding="utf-8",
        )
        provider = ConfigFileIdentityProvider(path)

        identity = await provider.get_current_identity()

        assert identity is not None
        assert identity.user_id == "user-9"
        assert identity.email == "nine@example.com"

    @pytest.mark.asyncio
    async def test_missing_file_is_signed_out(self, temp_dir: Path) -> None:
        """Test that no settings file means no identity."""
        provider = ConfigFileIdentityProvider(temp_dir / "missing.yaml")

        assert await provider.get_current_identity() is None

    @pytest.mark.asyncio
    async def test_sign_out(self, temp_dir: Path) -> None:
        """Test that sign-out forgets the cached identity."""
        path = temp_dir / "settings.yaml"
        path.write_text(yaml.safe_dump({"identity": {"user_id": "user-9"}}), encoding="utf-8")
        provider = ConfigFileIdentityProvider(path)
        assert await provider.get_current_identity() is not None

        await provider.sign_out()

        assert await provider.get_current_identity() is None
