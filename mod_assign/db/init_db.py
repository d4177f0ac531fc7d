from mod_assign.db.base import Base
from mod_assign.db.session import engine


def init_db() -> None:
    Base.metadata.create_all(bind=engine)
