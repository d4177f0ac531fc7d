from typing import Optional

from pydantic import Base64Bytes, BaseModel, Field


class EditorContent(BaseModel):
    text: str = ""
    format: Optional[int] = None


class FileUpload(BaseModel):
    filename: str = Field(min_length=1, max_length=255)
    content: Base64Bytes
    filepath: str = "/"
    mimetype: Optional[str] = None


class SubmissionSave(BaseModel):
    onlinetext: Optional[EditorContent] = None
    comment: Optional[EditorContent] = None
    files: Optional[list[FileUpload]] = None


class SubmissionRead(BaseModel):
    id: int
    assignment_id: int
    user_id: int
    status: str
    time_created: int
    time_modified: int
    online_text: str
    online_format: int
    comment_text: str
    comment_format: int
    num_files: int

    class Config:
        from_attributes = True


class FileInfo(BaseModel):
    filepath: str
    filename: str
    filesize: int
    mimetype: Optional[str] = None


class SubmissionStatus(BaseModel):
    assignment_id: int
    user_id: int
    status: str  # "nosubmission" | "draft" | "submitted"
    locked: bool
    can_edit: bool
    can_submit: bool
    time_modified: Optional[int] = None
    due_date: Optional[int] = None
    time_remaining: Optional[int] = None
    online_text_words: int = 0
    num_files: int = 0
    files: list[FileInfo] = []

    grade: Optional[str] = None
    feedback: Optional[str] = None
    grader_id: Optional[int] = None
    time_graded: Optional[int] = None
