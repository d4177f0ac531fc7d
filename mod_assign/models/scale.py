from sqlalchemy import Column, ForeignKey, Integer, String, Text

from mod_assign.db.base_class import Base


class Scale(Base):
    __tablename__ = "scales"

    id = Column(Integer, primary_key=True, index=True)
    course_id = Column(Integer, ForeignKey("courses.id", ondelete="CASCADE"), nullable=True)
    name = Column(String(255), nullable=False)
    # comma separated, lowest first: "Poor,Fair,Good"
    scale = Column(Text, nullable=False)

    @property
    def items(self) -> list[str]:
        return [item.strip() for item in self.scale.split(",") if item.strip()]
