from typing import Literal, Optional

from pydantic import BaseModel, Field

from mod_assign.core.config import DEFAULT_PER_PAGE, MAX_PER_PAGE
from mod_assign.schemas.submission import FileUpload

GradingFilter = Literal["", "submitted", "require_grading"]


class GradeSave(BaseModel):
    grade: Optional[float] = Field(default=None, allow_inf_nan=False)
    feedback: str = ""
    feedback_format: Optional[int] = None
    feedback_files: Optional[list[FileUpload]] = None


class GradeRead(BaseModel):
    id: int
    assignment_id: int
    user_id: int
    grader_id: Optional[int]
    grade: float
    feedback_text: str
    feedback_format: int
    num_feedback_files: int
    locked: bool
    time_created: int
    time_modified: int

    class Config:
        from_attributes = True


class GradingRowRead(BaseModel):
    row_number: int
    user_id: int
    fullname: str
    email: str
    submission_id: Optional[int] = None
    grade: Optional[float] = None
    grade: Optional[float] = Field(default=None, allow_inf_nan=False)
    grade_display: str
    final_grade: str
    locked: bool
    comment: str
    feedback: str
    num_files: int
    num_feedback_files: int
    time_submitted: Optional[int] = None
    time_marked: Optional[int] = None
    can_lock: bool
    can_unlock: bool
    can_revert: bool

    class Config:
        from_attributes = True


class GradingPage(BaseModel):
    assignment_id: int
    filter: str
    sort: str
    direction: str
    page: int
    per_page: int
    total: int
    pages: int
    rows: list[GradingRowRead]


class GradingOptions(BaseModel):
    per_page: int = Field(default=DEFAULT_PER_PAGE, ge=1, le=MAX_PER_PAGE)
    filter: GradingFilter = ""


class GradingSummary(BaseModel):
    assignment_id: int
    participants: int
    drafts: Optional[int] = None
    submitted: int
    due_date: Optional[int] = None
    time_remaining: Optional[int] = None


class RowUser(BaseModel):
    row_number: int
    user_id: Optional[int] = None
