
from datetime import datetime
from pydantic import BaseModel, ConfigDict, EmailStr, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class RegisterIn(CamelModel):
    name: str = Field(min_length=2, max_length=100)
    email: EmailStr
    password: str = Field(min_length=6, max_length=255)

class LoginIn(CamelModel):
    email: EmailStr
    password: str = Field(min_length=1)

class ProfileUpdate(CamelModel):
    name: str | None = Field(default=None, min_length=2, max_length=100)
    email: EmailStr | None = None

class ChangePasswordIn(CamelModel):
    current_password: str = Field(min_length=1)
    new_password: str = Field(min_length=6, max_length=255)

class DeleteAccountIn(CamelModel):
    password: str = Field(min_length=1)


class UserOut(CamelModel):
    """Outward view of a user. Deliberately has no password field."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)

    id: str
    name: str
    email: str
    role: str
    is_active: bool
    last_login: datetime | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

class AuthOut(CamelModel):
    message: str
    user: UserOut
    token: str

class UserEnvelope(CamelModel):
    user: UserOut

class ProfileOut(CamelModel):
    message: str
    user: UserOut

class MessageOut(CamelModel):
    message: str
