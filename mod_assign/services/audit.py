import logging

from mod_assign.core.config import LOG_INFO_MAX_LENGTH
from mod_assign.core.context import RequestContext
from mod_assign.models.assignment import Assignment
from mod_assign.models.log import LogEntry

logger = logging.getLogger(__name__)


def add_to_log(ctx: RequestContext, assignment: Assignment, action: str, info: str = "", url: str = "") -> LogEntry:
    full_url = f"view.php?id={assignment.id}"
    if url:
        full_url += "&" + url

    entry = LogEntry(
        time=ctx.now(),
        user_id=ctx.actor_id,
        course_id=assignment.course_id,
        assignment_id=assignment.id,
        module="assign",
        action=action[:40],
        url=full_url[:100],
        info=info[:LOG_INFO_MAX_LENGTH],
    )
    ctx.db.add(entry)
    ctx.db.commit()
    logger.info("assign %s: user %s %s", assignment.id, ctx.actor_id, action)
    return entry
