from pydantic import BaseModel, EmailStr, Field

from classroom.models.user import UserRole


class UserCreate(BaseModel):
    email: EmailStr
    password: str = Field(min_length=8, max_length=72)
    full_name: str | None = None
    role: UserRole = UserRole.student


class UserRead(BaseModel):
    id: int
    email: EmailStr
    full_name: str | None = None
    role: UserRole

    class Config:
        from_attributes = True
