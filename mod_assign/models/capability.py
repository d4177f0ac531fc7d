from sqlalchemy import Boolean, Column, ForeignKey, Integer, String, UniqueConstraint

from mod_assign.db.base_class import Base


class CapabilityOverride(Base):
    """Allow/prohibit a capability for a role in a course or a single assignment."""

    __tablename__ = "capability_overrides"

    id = Column(Integer, primary_key=True, index=True)
    role = Column(String(50), nullable=False)
    course_id = Column(Integer, ForeignKey("courses.id", ondelete="CASCADE"), nullable=False, index=True)
    # NULL means the override applies to the whole course
    assignment_id = Column(Integer, ForeignKey("assignments.id", ondelete="CASCADE"), nullable=True, index=True)
    capability = Column(String(100), nullable=False)
    allow = Column(Boolean, nullable=False, default=False)

    __table_args__ = (
        UniqueConstraint(
            "role", "course_id", "assignment_id", "capability", name="uq_capability_override"
        ),
    )
