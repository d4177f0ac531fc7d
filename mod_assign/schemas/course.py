from pydantic import BaseModel, Field


class CourseCreate(BaseModel):
    fullname: str = Field(min_length=1, max_length=255)
    shortname: str = Field(min_length=1, max_length=100)
    summary: str | None = None


class CourseRead(BaseModel):
    id: int
    fullname: str
    shortname: str
    summary: str | None = None
    time_modified: int

    class Config:
        from_attributes = True
