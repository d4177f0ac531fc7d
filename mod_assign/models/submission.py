from sqlalchemy import Column, Integer, ForeignKey, Text, String, UniqueConstraint
from sqlalchemy.orm import relationship

from mod_assign.db.base_class import Base

STATUS_DRAFT = "draft"  # student thinks it is a draft
STATUS_SUBMITTED = "submitted"  # student thinks it is finished


class Submission(Base):
    __tablename__ = "assign_submissions"

    id = Column(Integer, primary_key=True, index=True)

    assignment_id = Column(Integer, ForeignKey("assignments.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)

    time_created = Column(Integer, nullable=False, default=0)
    time_modified = Column(Integer, nullable=False, default=0)

    status = Column(String(20), nullable=False, default=STATUS_DRAFT)

    online_text = Column(Text, nullable=False, default="")
    online_format = Column(Integer, nullable=False, default=1)

    comment_text = Column(Text, nullable=False, default="")
    comment_format = Column(Integer, nullable=False, default=1)

    num_files = Column(Integer, nullable=False, default=0)

    __table_args__ = (
        UniqueConstraint("assignment_id", "user_id", name="uq_submission_assignment_user"),
    )

    assignment = relationship("Assignment", back_populates="submissions")
    user = relationship("User")
