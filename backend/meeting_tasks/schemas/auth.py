from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class PasswordCredentials(BaseModel):
    email: str = Field(..., min_length=1, max_length=320)
    password: str = Field(..., min_length=1)


class FederatedCredentials(BaseModel):
    # An absent token means the user closed the provider's consent screen
    provider_token: Optional[str] = None


class IdentityRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    uid: str
    email: Optional[str] = None
    display_name: Optional[str] = None


class SessionOut(BaseModel):
    token: str
    identity: IdentityRead
