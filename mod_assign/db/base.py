# Import all models here so Base.metadata knows every table (used by init_db and alembic)
from mod_assign.db.base_class import Base  # noqa: F401
from mod_assign.models import (  # noqa: F401
    assignment,
    capability,
    course,
    enrollment,
    file,
    grade,
    gradebook,
    log,
    message,
    preference,
    scale,
    submission,
    user,
)
