from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from app.db.database import init_db
from app.routes import posts
from app.security import RequestLogMiddleware, configure_logging, limiter
from app.services.errors import (
    ConflictError,
    InvariantViolationError,
    NotFoundError,
    PostError,
    ValidationError,
)

configure_logging()

# Most specific class first
ERROR_STATUS = (
    (InvariantViolationError, 500),
    (ValidationError, 400),
    (NotFoundError, 404),
    (ConflictError, 409),
    (PostError, 500),
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    init_db()
    yield


app = FastAPI(
    title="onepost",
    description="One published post per author, with a deduplicated feed",
    lifespan=lifespan,
)

app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
app.add_middleware(RequestLogMiddleware)


@app.exception_handler(PostError)
async def post_error_handler(request: Request, exc: PostError):
    status_code = next(code for cls, code in ERROR_STATUS if isinstance(exc, cls))
    return JSONResponse(status_code=status_code, content=exc.to_dict())


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    first = errors[0] if errors else {}
    field = next((str(part) for part in reversed(first.get("loc", ())) if isinstance(part, str)), None)
    error = ValidationError(first.get("msg", "Invalid request data"), field=field)
    content = error.to_dict()
    content["details"] = [{"loc": list(e.get("loc", ())), "msg": e.get("msg")} for e in errors]
    return JSONResponse(status_code=400, content=content)


@app.get("/health")
async def health():
    return {"status": "ok"}


# Include routes
app.include_router(posts.router)
