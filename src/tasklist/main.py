from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .errors import NotFoundError, TaskImportError, TaskStoreError, ValidationError
from .logging_setup import setup_logging
from .routers import app_state as app_state_router
from .routers import tasks as tasks_router
from .settings import get_settings

openapi_tags = [
    {"name": "health", "description": "Service health and status endpoints."},
    {
        "name": "tasks",
        "description": "Create, read, update, delete, import and export task records.",
    },
    {
        "name": "app",
        "description": "User intents driving the task list controller; each returns the new UI state.",
    },
]

_settings = get_settings()
setup_logging(_settings.log_level)

app = FastAPI(
    title="Task List",
    description="Single-user to-do list backed by one JSON slot in a key-value store.",
    version="0.1.0",
    openapi_tags=openapi_tags,
)

allow_all = (_settings.cors_allow_origins == ["*"]) or (len(_settings.cors_allow_origins) == 0)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"] if allow_all else _settings.cors_allow_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

_STORE_ERROR_STATUS = {
    ValidationError: 422,
    NotFoundError: 404,
    TaskImportError: 400,
}


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """
    Return a consistent JSON structure for request validation errors.

    Response format:
        {
            "error": "ValidationError",
            "detail": [... pydantic/fastapi error details ...],
            "message": "Request validation failed"
        }
    """
    return JSONResponse(
        status_code=422,
        content={
            "error": "ValidationError",
            "message": "Request validation failed",
            "detail": exc.errors(),
        },
    )


@app.exception_handler(TaskStoreError)
async def task_store_exception_handler(request: Request, exc: TaskStoreError) -> JSONResponse:
    """
    Map task store failures to JSON errors.

    Response format:
        {"error": "<exception class name>", "message": "<human readable message>"}
    """
    return JSONResponse(
        status_code=_STORE_ERROR_STATUS.get(type(exc), 400),
        content={"error": type(exc).__name__, "message": exc.message},
    )


# PUBLIC_INTERFACE
@app.get("/", summary="Health Check", tags=["health"])
def health_check():
    """
    Health check endpoint.

    Returns:
        A JSON object indicating service health.
    """
    return {"message": "Healthy", "backend": _settings.persistence_backend}


app.include_router(tasks_router.router)
app.include_router(app_state_router.router)
