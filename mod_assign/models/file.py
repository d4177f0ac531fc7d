from sqlalchemy import Column, ForeignKey, Integer, LargeBinary, String, UniqueConstraint

from mod_assign.db.base_class import Base

COMPONENT = "mod_assign"
FILEAREA_SUBMISSION_FILES = "submission_files"
FILEAREA_SUBMISSION_FEEDBACK = "feedback_files"
FILEAREA_SUBMISSION_ONLINETEXT = "submissions_onlinetext"


class StoredFile(Base):
    __tablename__ = "files"

    id = Column(Integer, primary_key=True, index=True)
    assignment_id = Column(Integer, ForeignKey("assignments.id", ondelete="CASCADE"), nullable=False, index=True)
    component = Column(String(100), nullable=False, default=COMPONENT)
    filearea = Column(String(50), nullable=False)
    item_id = Column(Integer, nullable=False)
    filepath = Column(String(255), nullable=False, default="/")
    filename = Column(String(255), nullable=False)
    mimetype = Column(String(100), nullable=True)
    filesize = Column(Integer, nullable=False, default=0)
    content = Column(LargeBinary, nullable=False)
    time_created = Column(Integer, nullable=False, default=0)

    __table_args__ = (
        UniqueConstraint(
            "assignment_id", "component", "filearea", "item_id", "filepath", "filename",
            name="uq_file_path",
        ),
    )
