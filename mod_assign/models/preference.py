from sqlalchemy import Column, ForeignKey, Integer, String, UniqueConstraint

from mod_assign.db.base_class import Base


class UserPreference(Base):
    __tablename__ = "user_preferences"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String(100), nullable=False)
    value = Column(String(255), nullable=False, default="")

    __table_args__ = (
        UniqueConstraint("user_id", "name", name="uq_user_preference"),
    )
