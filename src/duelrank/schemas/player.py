# src/duelrank/schemas/player.py

"""Pydantic schemas for the Player resource."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


# ===============================================
# Create Schemas: one per player variant
# ===============================================
class RegisteredPlayerCreate(BaseModel):
    """Properties to receive via API when registering a player.

    Field contents are checked by ``duelrank.validation`` in the service
    layer so that configured rules apply; only shape is enforced here.
    """

    username: str
    email: str | None = None
    password_hash: str | None = Field(
        default=None,
        description="Hash produced by the auth service; never a raw password",
    )


class AnonymousPlayerCreate(BaseModel):
    """Anonymous players carry no identity fields."""

    model_config = ConfigDict(extra="forbid")


# ===============================================
# Read Schema: Defines attributes for returning data
# ===============================================
class PlayerRead(BaseModel):
    """Properties to return to the client.

    The password hash is never exposed.
    """

    id: int
    username: str | None = None
    email: str | None = None
    is_anonymous: bool = False
    is_active: bool = True
    created_at: datetime
    last_login: datetime | None = None

    # Enable ORM mode for this schema
    model_config = ConfigDict(from_attributes=True)
