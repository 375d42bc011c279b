"""
Authentication schemas.
"""
from pydantic import BaseModel, ConfigDict, field_serializer


class SessionInfo(BaseModel):
    """Issued session, including the bearer token the client must keep."""
    model_config = ConfigDict(from_attributes=True)

    id: int
    token: int
    user_id: int

    @field_serializer("token")
    def serialize_token(self, token: int) -> str:
        # 64-bit tokens do not survive a round trip through an IEEE double.
        return str(token)


class SessionCreatedResponse(BaseModel):
    """Body of a successful OAuth callback."""
    message: str = "You've successfully created a session"
    session: SessionInfo


class UserProfile(BaseModel):
    """Public view of a user."""
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    email: str
