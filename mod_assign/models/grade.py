from sqlalchemy import Boolean, Column, Float, ForeignKey, Integer, Text, UniqueConstraint
from sqlalchemy.orm import relationship

from mod_assign.db.base_class import Base

UNGRADED = -1


class Grade(Base):
    __tablename__ = "assign_grades"

    id = Column(Integer, primary_key=True, index=True)

    assignment_id = Column(Integer, ForeignKey("assignments.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    grader_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)

    grade = Column(Float, nullable=False, default=UNGRADED)

    feedback_text = Column(Text, nullable=False, default="")
    feedback_format = Column(Integer, nullable=False, default=1)
    num_feedback_files = Column(Integer, nullable=False, default=0)

    locked = Column(Boolean, nullable=False, default=False)

    time_created = Column(Integer, nullable=False, default=0)
    time_modified = Column(Integer, nullable=False, default=0)

    __table_args__ = (
        UniqueConstraint("assignment_id", "user_id", name="uq_grade_assignment_user"),
    )

    assignment = relationship("Assignment", back_populates="grades")
