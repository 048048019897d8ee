"""Keycloak user profile entity."""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict


class KeycloakUser(BaseModel):
    """Profile claims resolved from the userinfo endpoint.

    Realms expose roles under different claim names, so all of ``role``,
    ``roles``, ``relation`` and ``groups`` are optional. Unknown claims are kept.
    """

    model_config = ConfigDict(frozen=True, extra="allow")

    sub: Optional[str] = None
    name: Optional[str] = None
    family_name: Optional[str] = None
    given_name: Optional[str] = None
    preferred_username: Optional[str] = None
    email: Optional[str] = None

    role: Optional[List[str]] = None
    roles: Optional[List[str]] = None
    relation: Optional[List[str]] = None
    groups: Optional[List[str]] = None

    @property
    def all_roles(self) -> List[str]:
        """Roles gathered from whichever claim the realm uses."""
        collected: List[str] = []
        for claim in (self.role, self.roles, self.relation, self.groups):
            for value in claim or []:
                if value not in collected:
                    collected.append(value)
        return collected

    @classmethod
    def from_claims(cls, claims: Dict[str, Any]) -> "KeycloakUser":
        """Create a profile from a raw userinfo response."""
        return cls.model_validate(claims)
