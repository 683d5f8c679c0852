"""
Main FastAPI application for the SEO report dashboard

Run with:  uvicorn seoreport.main:create_app --factory
"""
import logging
from typing import Optional

from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from sqlalchemy.exc import IntegrityError
from starlette.exceptions import HTTPException as StarletteHTTPException

from seoreport import config
from seoreport.api import auth, customers, payments, users
from seoreport.database import Database
from seoreport.errors import AppError
from seoreport.services.upload_service import FileStore

logger = logging.getLogger(__name__)


def _issue(error: dict) -> dict:
    # Drop the "body"/"query" prefix FastAPI puts on locations
    loc = [str(part) for part in error.get("loc", ()) if part not in ("body", "query", "path", "form")]
    return {"field": ".".join(loc), "message": error.get("msg", "")}


def register_exception_handlers(app: FastAPI) -> None:
    """Every error leaves the API as {"error": ...}"""

    @app.exception_handler(AppError)
    async def app_error_handler(request: Request, exc: AppError):
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        return JSONResponse(
            status_code=400,
            content={"error": "Validation failed", "issues": [_issue(e) for e in exc.errors()]},
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: HTTPException):
        return JSONResponse(status_code=exc.status_code, content={"error": exc.detail})

    @app.exception_handler(IntegrityError)
    async def integrity_error_handler(request: Request, exc: IntegrityError):
        logger.warning("Integrity error on %s %s: %s", request.method, request.url.path, exc.orig)
        return JSONResponse(status_code=409, content={"error": "Duplicate data found."})

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return JSONResponse(status_code=500, content={"error": "Internal Server Error"})


def create_app(database: Optional[Database] = None, file_store: Optional[FileStore] = None) -> FastAPI:
    """Build the application around an explicitly constructed database handle"""
    logging.basicConfig(
        level=config.LOG_LEVEL,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )

    app = FastAPI(
        title="SEO Report Dashboard API",
        description="Customer SEO metrics, keyword tracking and reports",
        version="1.0.0",
    )
    app.state.database = database or Database(config.DATABASE_URL)
    app.state.file_store = file_store or FileStore(config.UPLOAD_ROOT)

    # CORS configuration
    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.ALLOWED_ORIGINS,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS", "PATCH"],
        allow_headers=["*"],
    )

    register_exception_handlers(app)

    @app.on_event("startup")
    def startup_event():
        app.state.database.init_db()
        logger.info("SEO report API started - database initialized")

    @app.on_event("shutdown")
    def shutdown_event():
        app.state.database.dispose()

    # Include routers
    app.include_router(auth.router, prefix="/api/auth", tags=["auth"])
    app.include_router(users.router, prefix="/api/users", tags=["users"])
    app.include_router(users.header_router, prefix="/api", tags=["users"])
    app.include_router(customers.router, prefix="/api/customers", tags=["customers"])
    app.include_router(payments.router, prefix="/api/payments", tags=["payments"])

    # Uploaded files are public, referenced by /uploads/... URLs
    uploads_dir = app.state.file_store.uploads_dir
    uploads_dir.mkdir(parents=True, exist_ok=True)
    app.mount("/uploads", StaticFiles(directory=str(uploads_dir)), name="uploads")

    @app.get("/health")
    def health_check():
        """Health check endpoint"""
        return {"status": "healthy", "service": "SEO Report Dashboard API"}

    @app.get("/")
    async def root():
        """Root endpoint"""
        return {
            "message": "SEO Report Dashboard API",
            "version": "1.0.0",
            "docs": "/docs",
        }

    return app


def run():
    """Console entry point"""
    import uvicorn
    uvicorn.run(create_app(), host="0.0.0.0", port=8000)


if __name__ == "__main__":
    run()
