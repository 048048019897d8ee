"""Tests for session entities."""

import pytest

from keycloak_session.core.exceptions import AuthenticationError
from keycloak_session.features.session.entities.keycloak_user import KeycloakUser
from keycloak_session.features.session.entities.session_record import SessionRecord, SessionStatus
from keycloak_session.features.session.entities.stored_tokens import StoredTokens


class TestStoredTokens:
    """Test persisted token snapshot layout."""

    def test_aliases(self):
        tokens = StoredTokens.from_json('{"token": "a", "refreshToken": "r", "idToken": "i"}')

        assert tokens.access_token == "a"
        assert tokens.refresh_token == "r"
        assert tokens.id_token == "i"

    def test_to_json_uses_aliases(self):
        tokens = StoredTokens(access_token="a", refresh_token="r")

        assert tokens.to_json() == '{"token":"a","refreshToken":"r"}'

    def test_is_empty(self):
        assert StoredTokens().is_empty
        assert not StoredTokens(refresh_token="r").is_empty


class TestKeycloakUser:
    """Test profile claims."""

    def test_from_claims_keeps_unknown_claims(self):
        user = KeycloakUser.from_claims(
            {
                "sub": "user-1",
                "name": "Jane Doe",
                "given_name": "Jane",
                "family_name": "Doe",
                "preferred_username": "jdoe",
                "tenant": "acme",
            }
        )

        assert user.preferred_username == "jdoe"
        assert user.given_name == "Jane"
        assert user.model_extra["tenant"] == "acme"

    def test_all_roles_merges_claims(self):
        user = KeycloakUser(role=["admin"], roles=["admin", "editor"], groups=["staff"])

        assert user.all_roles == ["admin", "editor", "staff"]

    def test_all_roles_empty(self):
        assert KeycloakUser(sub="user-1").all_roles == []


class TestSessionRecord:
    """Test record helpers."""

    def test_derived_flags(self):
        record = SessionRecord(
            configuration_name="default",
            status=SessionStatus.AUTH_ERROR,
            is_loading=False,
            last_error=AuthenticationError("denied"),
        )

        assert record.has_error
        assert not record.is_authenticated
        assert not record.session_lost

    def test_repr_hides_tokens(self):
        record = SessionRecord(
            configuration_name="default",
            status=SessionStatus.AUTHENTICATED,
            is_loading=False,
            access_token="secret-access-token",
        )

        assert "secret-access-token" not in repr(record)
        assert "has_token=True" in repr(record)

    def test_configuration_name_required(self):
        with pytest.raises(ValueError):
            SessionRecord(configuration_name="")
