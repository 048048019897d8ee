"""Token snapshot persisted across the login redirect."""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class StoredTokens(BaseModel):
    """Serialized ``{token, refreshToken, idToken}`` record.

    Field aliases keep the persisted layout stable for hosts that read the
    same storage from other clients.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    access_token: Optional[str] = Field(default=None, alias="token")
    refresh_token: Optional[str] = Field(default=None, alias="refreshToken")
    id_token: Optional[str] = Field(default=None, alias="idToken")

    @property
    def is_empty(self) -> bool:
        return not (self.access_token or self.refresh_token or self.id_token)

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True, exclude_none=True)

    @classmethod
    def from_json(cls, payload: str) -> "StoredTokens":
        return cls.model_validate_json(payload)
