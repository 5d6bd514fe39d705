"""
Authentication Models

This module defines the identity model used after JWT verification.
"""

from typing import Optional
from pydantic import BaseModel, Field, ConfigDict


class UserContext(BaseModel):
    """
    Signed-in user derived from a verified identity token.

    Only used to attribute file ownership; the TEI parsing core never
    consults it.
    """

    user_id: str = Field(
        ...,
        min_length=1,
        description="Stable user identifier (the token's 'sub' claim).",
    )

    display_name: Optional[str] = Field(
        default=None,
        description="Human-readable name, when the auth provider supplies one.",
    )

    email: Optional[str] = Field(
        default=None,
        description="Account e-mail address, when present in the token.",
    )

    model_config = ConfigDict(
        frozen=True,
        arbitrary_types_allowed=False,
        extra="forbid",             # Prevents claim injection via unexpected fields
    )
