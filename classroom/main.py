import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from classroom.core.errors import LifecycleError
from classroom.core.logging_middleware import LoggingMiddleware
from classroom.db.init_db import init_db
from classroom.routers.assignments import router as assignments_router
from classroom.routers.auth import router as auth_router
from classroom.routers.courses import router as courses_router
from classroom.routers.enrollments import router as enrollments_router
from classroom.routers.quizzes import router as quizzes_router
from classroom.routers.submissions import router as submissions_router

logging.basicConfig(level=logging.INFO)

logger = logging.getLogger(__name__)

app = FastAPI(title="Classroom")

# Middleware
app.add_middleware(LoggingMiddleware)


@app.exception_handler(LifecycleError)
async def lifecycle_error_handler(request: Request, exc: LifecycleError):
    logger.warning("%s %s rejected: %s", request.method, request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


# Health check
@app.get("/health")
def health():
    return {"status": "ok"}


# Startup event
@app.on_event("startup")
def on_startup():
    init_db()


# Include routers
app.include_router(auth_router, prefix="/auth", tags=["auth"])
app.include_router(courses_router, prefix="/courses", tags=["courses"])
app.include_router(enrollments_router, prefix="/enrollments", tags=["enrollments"])
app.include_router(assignments_router, tags=["assignments"])
app.include_router(submissions_router, tags=["submissions"])
app.include_router(quizzes_router, tags=["quizzes"])
