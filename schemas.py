from pydantic import BaseModel, ConfigDict, Field, EmailStr, field_validator
from typing import Literal, Optional

DEFAULT_CATEGORY = "Gemstone Jewelry"

Role = Literal["customer", "admin"]


def _strip(value):
    if isinstance(value, str):
        return value.strip()
    return value


# Stored records

class User(BaseModel):
    name: str = Field(..., min_length=1, description="Display name")
    email: EmailStr
    password_hash: str = Field(..., description="Salted password hash")
    role: Role = Field("customer", description="user role: admin | customer")


class Product(BaseModel):
    name: str = Field(..., min_length=1)
    description: str = ""
    price: float = Field(..., ge=0)
    imageUrl: str
    stock: int = Field(0, ge=0)
    category: str = DEFAULT_CATEGORY

    @field_validator("name", "description", "category", mode="before")
    @classmethod
    def strip_text(cls, value):
        return _strip(value)


# Request bodies

class Credentials(BaseModel):
    """Setup and registration body.

    Fields are optional here so a missing one surfaces as MissingFields
    rather than a generic validation failure.
    """
    name: Optional[str] = None
    email: Optional[EmailStr] = None
    password: Optional[str] = None

    @field_validator("name", "email", "password", mode="before")
    @classmethod
    def blank_as_missing(cls, value):
        if isinstance(value, str) and not value.strip():
            return None
        return value

    def missing(self) -> bool:
        return not (self.name and self.email and self.password)


class LoginRequest(BaseModel):
    email: EmailStr
    password: str


class UserUpdateRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    name: Optional[str] = Field(None, min_length=1)
    email: Optional[EmailStr] = None
    role: Optional[Role] = None


class ProductUpdateRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    name: Optional[str] = Field(None, min_length=1)
    description: Optional[str] = None
    price: Optional[float] = Field(None, ge=0)
    imageUrl: Optional[str] = None
    stock: Optional[int] = Field(None, ge=0)
    category: Optional[str] = None

    @field_validator("name", "description", "category", mode="before")
    @classmethod
    def strip_text(cls, value):
        return _strip(value)

    def changes(self) -> dict:
        return {k: v for k, v in self.model_dump().items() if v is not None}
