import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from mod_assign.core.exceptions import AssignError
from mod_assign.core.logging_middleware import LoggingMiddleware
from mod_assign.db.init_db import init_db
from mod_assign.routers.assignments import router as assignments_router
from mod_assign.routers.auth import router as auth_router
from mod_assign.routers.courses import router as courses_router
from mod_assign.routers.enrollments import router as enrollments_router
from mod_assign.routers.external import router as external_router
from mod_assign.routers.grading import router as grading_router
from mod_assign.routers.submissions import router as submissions_router
from mod_assign.services.plugins import default_registry

logging.basicConfig(level=logging.INFO)

logger = logging.getLogger(__name__)

app = FastAPI(title="mod_assign")

# Middleware
app.add_middleware(LoggingMiddleware)


@app.exception_handler(AssignError)
async def assign_error_handler(request: Request, exc: AssignError):
    logger.info("%s %s refused: %s", request.method, request.url.path, exc.message)
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.message, "errorcode": exc.errorcode},
    )


# Health check
@app.get("/health")
def health():
    return {"status": "ok"}


# Startup event
@app.on_event("startup")
def on_startup():
    init_db()
    app.state.registry = default_registry()


# Include routers
app.include_router(auth_router, prefix="/auth", tags=["auth"])
app.include_router(courses_router, prefix="/courses", tags=["courses"])
app.include_router(enrollments_router, prefix="/enrollments", tags=["enrollments"])
app.include_router(assignments_router, tags=["assignments"])
app.include_router(submissions_router, tags=["submissions"])
app.include_router(grading_router, tags=["grading"])
app.include_router(external_router, prefix="/webservice", tags=["webservice"])
