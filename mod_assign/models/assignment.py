from sqlalchemy import Boolean, Column, ForeignKey, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import relationship

from mod_assign.db.base_class import Base


class Assignment(Base):
    __tablename__ = "assignments"

    id = Column(Integer, primary_key=True, index=True)
    course_id = Column(Integer, ForeignKey("courses.id", ondelete="CASCADE"), nullable=False, index=True)

    name = Column(String(255), nullable=False)
    intro = Column(Text, nullable=True)

    # > 0 max points, < 0 scale id, 0 no numeric grading
    grade = Column(Integer, nullable=False, default=100)

    # unix timestamps, 0 means "not set"
    due_date = Column(Integer, nullable=False, default=0)
    allow_submissions_from_date = Column(Integer, nullable=False, default=0)

    prevent_late_submissions = Column(Boolean, nullable=False, default=False)
    submission_drafts = Column(Boolean, nullable=False, default=False)
    online_text_submission = Column(Boolean, nullable=False, default=True)
    submission_comments = Column(Boolean, nullable=False, default=False)
    send_notifications = Column(Boolean, nullable=False, default=False)

    time_modified = Column(Integer, nullable=False, default=0)

    course = relationship("Course", back_populates="assignments")

    submissions = relationship("Submission", back_populates="assignment", cascade="all, delete-orphan")
    grades = relationship("Grade", back_populates="assignment", cascade="all, delete-orphan")
    configs = relationship("AssignPluginConfig", back_populates="assignment", cascade="all, delete-orphan")


class AssignPluginConfig(Base):
    __tablename__ = "assign_plugin_config"

    id = Column(Integer, primary_key=True, index=True)
    assignment_id = Column(Integer, ForeignKey("assignments.id", ondelete="CASCADE"), nullable=False, index=True)
    plugin = Column(String(50), nullable=False)
    subtype = Column(String(50), nullable=False, default="submission")
    name = Column(String(100), nullable=False)
    value = Column(Text, nullable=True)

    __table_args__ = (
        UniqueConstraint("assignment_id", "plugin", "subtype", "name", name="uq_plugin_config"),
    )

    assignment = relationship("Assignment", back_populates="configs")
