from datetime import datetime
from typing import Literal

from pydantic import BaseModel


class EnrollmentCreate(BaseModel):
    course_id: int


class EnrolUser(BaseModel):
    course_id: int
    user_id: int
    role: Literal["student", "teacher", "editingteacher"] = "student"


class EnrollmentOut(BaseModel):
    id: int
    user_id: int
    course_id: int
    role: str
    created_at: datetime

    class Config:
        from_attributes = True
