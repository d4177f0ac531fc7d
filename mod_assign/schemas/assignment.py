from typing import Any, Optional

from pydantic import BaseModel, Field


class AssignmentBase(BaseModel):
    intro: Optional[str] = None
    # > 0 points, 0 feedback only, < 0 negated scale id
    grade: Optional[int] = None
    due_date: Optional[int] = Field(default=None, ge=0)
    allow_submissions_from_date: Optional[int] = Field(default=None, ge=0)
    prevent_late_submissions: Optional[bool] = None
    submission_drafts: Optional[bool] = None
    online_text_submission: Optional[bool] = None
    submission_comments: Optional[bool] = None
    send_notifications: Optional[bool] = None
    # {"file": {"enabled": 1, "maxfilesubmissions": 3}}
    plugin_settings: dict[str, dict[str, Any]] = Field(default_factory=dict)


class AssignmentCreate(AssignmentBase):
    name: str = Field(min_length=1, max_length=255)


class AssignmentUpdate(AssignmentBase):
    name: Optional[str] = Field(default=None, min_length=1, max_length=255)


class PluginConfigRead(BaseModel):
    id: int
    plugin: str
    subtype: str
    name: str
    value: Optional[str]

    class Config:
        from_attributes = True


class AssignmentRead(BaseModel):
    id: int
    course_id: int
    name: str
    intro: Optional[str]
    grade: int
    due_date: int
    allow_submissions_from_date: int
    prevent_late_submissions: bool
    submission_drafts: bool
    online_text_submission: bool
    submission_comments: bool
    send_notifications: bool
    time_modified: int
    configs: list[PluginConfigRead] = []

    class Config:
        from_attributes = True


class PluginSetting(BaseModel):
    type: str
    name: str
    description: str
    options: dict[str, Any] = {}
    default: Any = None


class PluginInfo(BaseModel):
    name: str
    display_name: str
    enabled: bool
    settings: list[PluginSetting]


class FormSection(BaseModel):
    plugin: str
    header: str
    elements: list[PluginSetting]
