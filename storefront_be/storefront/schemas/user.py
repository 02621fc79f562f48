from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from storefront.models.user import Role


class RegisterSchema(BaseModel):
    email: EmailStr
    password: str = Field(min_length=1)
    name: str = Field(min_length=1)
    role: Role

    @field_validator("password")
    @classmethod
    def check_password_length(cls, v: str) -> str:
        # bcrypt only looks at the first 72 bytes
        if len(v.encode("utf-8")) > 72:
            raise ValueError("password must be at most 72 bytes")
        return v

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("name must not be blank")
        return v

    @field_validator("role", mode="before")
    @classmethod
    def normalize_role(cls, v):
        return v.strip().upper() if isinstance(v, str) else v


class LoginSchema(BaseModel):
    email: EmailStr
    password: str = Field(min_length=1)


class UserOut(BaseModel):
    id: int
    email: str
    name: str
    role: Role

    model_config = ConfigDict(from_attributes=True)


class AuthOut(BaseModel):
    token: str
    user: UserOut
