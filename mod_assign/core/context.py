import time
from dataclasses import dataclass, field
from typing import Callable

from sqlalchemy.orm import Session

from mod_assign.core.config import settings
from mod_assign.models.user import User


def system_clock() -> int:
    return int(time.time())


@dataclass
class RequestContext:
    """Everything a request-scoped operation needs, passed explicitly."""

    db: Session
    actor: User
    clock: Callable[[], int] = field(default=system_clock)
    preferred_format: int = field(default_factory=lambda: settings.DEFAULT_FORMAT)
    lang: str = "en"

    @property
    def actor_id(self) -> int:
        return self.actor.id

    def now(self) -> int:
        return self.clock()
