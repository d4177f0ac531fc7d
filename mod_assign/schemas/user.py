from pydantic import BaseModel, EmailStr, Field


class UserCreate(BaseModel):
    email: EmailStr
    password: str = Field(min_length=8, max_length=72)
    first_name: str = Field(default="", max_length=100)
    last_name: str = Field(default="", max_length=100)
    mail_html: bool = True


class UserRead(BaseModel):
    id: int
    email: EmailStr
    first_name: str
    last_name: str
    full_name: str
    role: str

    class Config:
        from_attributes = True
