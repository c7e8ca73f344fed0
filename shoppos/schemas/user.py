from datetime import datetime

from pydantic import BaseModel, Field

from shoppos.models.user import UserRole


class UserOut(BaseModel):
    id: int
    username: str
    name: str | None
    role: UserRole
    shop_id: int | None
    is_active: bool
    created_at: datetime

    model_config = {"from_attributes": True}


class UserCreate(BaseModel):
    username: str = Field(min_length=3, max_length=50, pattern=r"^[a-zA-Z0-9_.]+$")
    password: str = Field(min_length=6, max_length=128)
    name: str | None = Field(default=None, max_length=120)
    role: UserRole = UserRole.BUSINESS_OWNER
    shop_id: int | None = None


class UserUpdate(BaseModel):
    password: str | None = Field(default=None, min_length=6, max_length=128)
    name: str | None = Field(default=None, max_length=120)
    role: UserRole | None = None
    shop_id: int | None = None
    is_active: bool | None = None
