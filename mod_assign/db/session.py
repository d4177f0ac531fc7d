from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from mod_assign.core.config import settings

engine = create_engine(
    settings.DATABASE_URL,
    connect_args={"check_same_thread": False}
)

SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine,
)
