from typing import Optional

from pydantic import BaseModel


class GradebookRow(BaseModel):
    user_id: int
    user_email: str
    fullname: str

    assignment_id: int
    item_name: str

    raw_grade: Optional[float] = None
    final_grade: Optional[float] = None
    display_grade: str = "-"
    feedback: Optional[str] = None

    date_submitted: Optional[int] = None
    date_graded: Optional[int] = None
    status: str  # "missing" | "submitted" | "graded"
