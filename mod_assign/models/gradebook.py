from sqlalchemy import Column, Float, ForeignKey, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import relationship

from mod_assign.db.base_class import Base

GRADE_TYPE_VALUE = 1
GRADE_TYPE_SCALE = 2
GRADE_TYPE_TEXT = 3


class GradeItem(Base):
    __tablename__ = "grade_items"

    id = Column(Integer, primary_key=True, index=True)
    course_id = Column(Integer, ForeignKey("courses.id", ondelete="CASCADE"), nullable=False, index=True)
    item_module = Column(String(30), nullable=False, default="assign")
    item_instance = Column(Integer, nullable=False)
    item_name = Column(String(255), nullable=False)
    grade_type = Column(Integer, nullable=False, default=GRADE_TYPE_VALUE)
    grade_max = Column(Float, nullable=False, default=100)
    grade_min = Column(Float, nullable=False, default=0)
    scale_id = Column(Integer, nullable=True)

    __table_args__ = (
        UniqueConstraint("item_module", "item_instance", name="uq_grade_item_instance"),
    )

    grades = relationship("GradebookGrade", back_populates="item", cascade="all, delete-orphan")


class GradebookGrade(Base):
    __tablename__ = "grade_grades"

    id = Column(Integer, primary_key=True, index=True)
    item_id = Column(Integer, ForeignKey("grade_items.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    raw_grade = Column(Float, nullable=True)
    final_grade = Column(Float, nullable=True)
    feedback = Column(Text, nullable=True)
    feedback_format = Column(Integer, nullable=False, default=0)
    user_modified = Column(Integer, nullable=True)
    date_submitted = Column(Integer, nullable=True)
    date_graded = Column(Integer, nullable=True)

    __table_args__ = (
        UniqueConstraint("item_id", "user_id", name="uq_grade_grades_item_user"),
    )

    item = relationship("GradeItem", back_populates="grades")
