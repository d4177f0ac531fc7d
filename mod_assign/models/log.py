from sqlalchemy import Column, Integer, String

from mod_assign.db.base_class import Base


class LogEntry(Base):
    __tablename__ = "log"

    id = Column(Integer, primary_key=True, index=True)
    time = Column(Integer, nullable=False, index=True)
    user_id = Column(Integer, nullable=False, index=True)
    course_id = Column(Integer, nullable=False)
    assignment_id = Column(Integer, nullable=False, index=True)
    module = Column(String(20), nullable=False, default="assign")
    action = Column(String(40), nullable=False)
    url = Column(String(100), nullable=False, default="")
    info = Column(String(255), nullable=False, default="")
