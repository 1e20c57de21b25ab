import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any, Optional

from fastapi import APIRouter, Depends, FastAPI, Query, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse
from pydantic import BaseModel, Field, field_validator
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

from config import Settings, configure_logging, get_settings
from db import repository
from db.database import create_db_engine, ensure_schema
from utils.api_utils import (
    APIError,
    ValidationError,
    error_response,
    server_error_message,
    validation_message,
)
from utils.money import parse_amount

logger = logging.getLogger(__name__)

BASE_DIR = Path(__file__).resolve().parent


# Request models
class EntryFields(BaseModel):
    """Fields shared by create and update. The category is set once, on create."""

    department: str = Field(min_length=1)
    year: int
    month: int
    amount: float = 0.0
    data: Any = Field(default_factory=dict)

    @field_validator("amount", mode="before")
    @classmethod
    def _amount(cls, v: Any) -> float:
        return parse_amount(v)

    @field_validator("data", mode="before")
    @classmethod
    def _data(cls, v: Any) -> Any:
        # null, false, 0 and "" all mean "no data"
        return {} if v in (None, False, 0, "") else v


class EntryCreate(EntryFields):
    category: str = Field(min_length=1)


class SettingsSave(BaseModel):
    """Sign-off fields. Omitted fields are saved as empty strings."""

    preparedBy: str = ""
    preparedTitle: str = ""
    checkedBy: str = ""
    checkedTitle: str = ""

    @field_validator("preparedBy", "preparedTitle", "checkedBy", "checkedTitle", mode="before")
    @classmethod
    def _text(cls, v: Any) -> str:
        if not v:
            return ""
        if isinstance(v, bool):
            return "true"
        return str(v)


def get_engine(request: Request) -> Engine:
    """Dependency returning the engine created at startup"""
    return request.app.state.engine


router = APIRouter()


@router.get("/health")
def health(engine: Engine = Depends(get_engine)):
    repository.ping(engine)
    return {"status": "ok"}


@router.get("/entries")
def list_entries(
    cat: str = Query(..., min_length=1),
    year: int = Query(...),
    month: int = Query(...),
    engine: Engine = Depends(get_engine),
):
    return repository.get_entries(engine, cat, year, month)


@router.get("/yearly")
def yearly_totals(
    year: int = Query(...),
    engine: Engine = Depends(get_engine),
):
    return repository.get_yearly_totals(engine, year)


@router.get("/entries/year")
def list_entries_for_year(
    cat: str = Query(..., min_length=1),
    year: int = Query(...),
    engine: Engine = Depends(get_engine),
):
    """All months of one category, used to print the full-year report."""
    return repository.get_entries_for_year(engine, cat, year)


@router.post("/entries")
def create_entry(request: EntryCreate, engine: Engine = Depends(get_engine)):
    new_id = repository.create_entry(
        engine,
        category=request.category,
        year=request.year,
        month=request.month,
        department=request.department,
        amount=request.amount,
        data=request.data,
    )
    return {"success": True, "id": new_id}


@router.put("/entries/{entry_id}")
def update_entry(entry_id: int, request: EntryFields, engine: Engine = Depends(get_engine)):
    # Unknown ids are not an error
    repository.update_entry(
        engine,
        entry_id,
        amount=request.amount,
        data=request.data,
        department=request.department,
        year=request.year,
        month=request.month,
    )
    return {"success": True}


@router.delete("/entries/{entry_id}")
def delete_entry(entry_id: int, engine: Engine = Depends(get_engine)):
    repository.delete_entry(engine, entry_id)
    return {"success": True}


@router.get("/settings")
def read_settings(engine: Engine = Depends(get_engine)):
    return repository.get_settings_row(engine)


@router.post("/settings")
def save_settings(request: SettingsSave, engine: Engine = Depends(get_engine)):
    repository.save_settings(
        engine,
        prepared_by=request.preparedBy,
        prepared_title=request.preparedTitle,
        checked_by=request.checkedBy,
        checked_title=request.checkedTitle,
    )
    return {"success": True}


def create_app(settings: Optional[Settings] = None, engine: Optional[Engine] = None) -> FastAPI:
    """Build the application.

    When ``engine`` is given the caller owns it; otherwise one is created on
    startup and disposed of on shutdown. The schema is ensured before any
    request is served, and a failure there aborts startup.
    """
    settings = settings or get_settings()
    static_dir = Path(settings.STATIC_DIR)
    if not static_dir.is_absolute():
        static_dir = BASE_DIR / static_dir
    static_dir = static_dir.resolve()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        db_engine = engine or create_db_engine(settings)
        try:
            ensure_schema(db_engine)
        except Exception:
            logger.critical("Failed to initialize database", exc_info=True)
            if engine is None:
                db_engine.dispose()
            raise
        app.state.engine = db_engine
        try:
            yield
        finally:
            if engine is None:
                db_engine.dispose()
                logger.info("Database engine disposed")

    app = FastAPI(
        title=settings.APP_NAME,
        description="Monthly billing ledger per department and category",
        version=settings.APP_VERSION,
        lifespan=lifespan,
    )

    # Add CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.BACKEND_CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(router, prefix=settings.API_PREFIX)

    # Error handlers
    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        error = ValidationError(validation_message(exc.errors()))
        return error_response(error.message, error.status_code)

    @app.exception_handler(SQLAlchemyError)
    async def storage_exception_handler(request: Request, exc: SQLAlchemyError):
        logger.error(f"Storage error on {request.method} {request.url.path}: {exc}", exc_info=True)
        return error_response(server_error_message(exc, settings.EXPOSE_ERROR_DETAILS), 500)

    @app.exception_handler(APIError)
    async def api_exception_handler(request: Request, exc: APIError):
        return error_response(exc.message, exc.status_code)

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        return error_response(str(exc.detail), exc.status_code)

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        logger.error(f"Unhandled exception on {request.method} {request.url.path}: {exc}", exc_info=True)
        return error_response(server_error_message(exc, settings.EXPOSE_ERROR_DETAILS), 500)

    # Front-end: registered last so it never shadows an API route
    @app.get("/{full_path:path}", include_in_schema=False)
    def serve_frontend(full_path: str):
        if full_path:
            candidate = (static_dir / full_path).resolve()
            if candidate.is_file() and candidate.is_relative_to(static_dir):
                return FileResponse(candidate)
        index = static_dir / "index.html"
        if not index.is_file():
            raise APIError(f"index.html not found in {static_dir}")
        return FileResponse(index, media_type="text/html")

    return app


configure_logging(get_settings())
app = create_app()


if __name__ == "__main__":
    import uvicorn
    settings = get_settings()
    logger.info(f"{settings.APP_NAME} starting on port {settings.PORT}")
    uvicorn.run("main:app", host=settings.HOST, port=settings.PORT, lifespan="on")
