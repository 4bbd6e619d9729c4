from pydantic import BaseModel, Field

from app.joyeria.core.enums import UserRole


class LoginRequest(BaseModel):
    model_config = {
        "json_schema_extra": {
            "example": {"username": "caja1", "password": "********"},
        }
    }

    username: str = Field(min_length=1, max_length=150)
    password: str = Field(min_length=1)


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    expires_in: int
    role: UserRole
    trace_id: str


class UserResponse(BaseModel):
    id: str
    username: str
    full_name: str
    role: UserRole
    is_active: bool
