from sqlalchemy import Column, ForeignKey, Integer, String, Text

from mod_assign.db.base_class import Base


class Message(Base):
    """Notification outbox. Delivery is left to the host platform."""

    __tablename__ = "messages"

    id = Column(Integer, primary_key=True, index=True)
    component = Column(String(100), nullable=False, default="mod_assign")
    name = Column(String(100), nullable=False, default="assign_updates")
    user_from_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    user_to_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    subject = Column(String(255), nullable=False)
    full_message = Column(Text, nullable=False)
    full_message_html = Column(Text, nullable=False, default="")
    small_message = Column(String(255), nullable=False, default="")
    context_url = Column(String(255), nullable=False, default="")
    context_url_name = Column(String(255), nullable=False, default="")
    time_created = Column(Integer, nullable=False, default=0)
