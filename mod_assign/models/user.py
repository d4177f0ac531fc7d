from sqlalchemy import Boolean, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from mod_assign.db.base_class import Base


class User(Base):
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    email: Mapped[str] = mapped_column(
        String(255), unique=True, index=True, nullable=False
    )
    first_name: Mapped[str] = mapped_column(String(100), nullable=False, default="")
    last_name: Mapped[str] = mapped_column(String(100), nullable=False, default="", index=True)
    hashed_password: Mapped[str] = mapped_column(String(255), nullable=False)
    # global role: "user" or "admin"; course roles live on Enrollment
    role: Mapped[str] = mapped_column(String(50), nullable=False, default="user")
    mail_html: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    enrollments = relationship(
        "Enrollment", back_populates="user", cascade="all, delete-orphan"
    )

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()
