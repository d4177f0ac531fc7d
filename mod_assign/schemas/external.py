from typing import Literal, Optional

from pydantic import BaseModel, Field


class ExternalWarning(BaseModel):
    item: str
    itemid: int
    warningcode: str  # "1" no access, "2" not enrolled, "3" nothing found
    message: str


class PluginConfigItem(BaseModel):
    id: int
    assignment: int
    plugin: str
    subtype: str
    name: str
    value: Optional[str] = None


class AssignmentItem(BaseModel):
    id: int
    course: int
    name: str
    preventlatesubmissions: int
    submissiondrafts: int
    sendnotifications: int
    duedate: int
    allowsubmissionsfromdate: int
    grade: int
    timemodified: int
    configs: list[PluginConfigItem]


class CourseItem(BaseModel):
    id: int
    fullname: str
    shortname: str
    timemodified: int
    assignments: list[AssignmentItem]


class GetAssignmentsRequest(BaseModel):
    courseids: list[int] = []
    capabilities: list[str] = []


class GetAssignmentsResponse(BaseModel):
    courses: list[CourseItem]
    warnings: list[ExternalWarning]


class SubmittedFile(BaseModel):
    filepath: str
    filename: str
    mimetype: Optional[str] = None
    filesize: int


class OnlineText(BaseModel):
    text: str
    format: int
    wordcount: int


class SubmissionItem(BaseModel):
    id: int
    userid: int
    status: str
    timecreated: int
    timemodified: int
    files: list[SubmittedFile]
    onlinetexts: list[OnlineText]


class AssignmentSubmissions(BaseModel):
    assignmentid: int
    submissions: list[SubmissionItem]


class GetSubmissionsRequest(BaseModel):
    assignmentids: list[int] = Field(min_length=1)
    status: Literal["", "draft", "submitted"] = ""
    since: int = Field(default=0, ge=0)
    before: int = Field(default=0, ge=0)


class GetSubmissionsResponse(BaseModel):
    assignments: list[AssignmentSubmissions]
    warnings: list[ExternalWarning]
