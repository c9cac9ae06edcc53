import logging
from collections.abc import Callable
from datetime import datetime

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from backend.core import config
from backend.core.errors import (
    ConflictError,
    NotFoundError,
    ResourceUnavailableError,
    ServiceError,
    ValidationError,
)
from backend.database import Database
from backend.dependencies import build_services
from backend.routes import auth_routes, event_routes, rsvp_routes, user_routes

logging.basicConfig(
    level=config.LOG_LEVEL.upper(),
    format='%(asctime)s %(levelname)s %(name)s: %(message)s',
)

logger = logging.getLogger(__name__)

ERROR_STATUS_CODES = (
    (ValidationError, 400),
    (NotFoundError, 404),
    (ConflictError, 409),
    (ResourceUnavailableError, 503),
)


def service_error_handler(request: Request, exc: ServiceError) -> JSONResponse:
    for error_type, status_code in ERROR_STATUS_CODES:
        if isinstance(exc, error_type):
            return JSONResponse(status_code=status_code, content={'detail': exc.message})
    return JSONResponse(status_code=400, content={'detail': exc.message})


def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception('Unhandled error on %s %s', request.method, request.url.path)
    detail = 'Internal server error' if config.is_production() else str(exc)
    return JSONResponse(status_code=500, content={'detail': detail})


def create_app(database: Database | None = None, clock: Callable[[], datetime] = datetime.now) -> FastAPI:
    database = database or Database(config.DATABASE_URL)

    app = FastAPI(title='Event Planner API')
    app.state.services = build_services(database, clock=clock)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=['*'],
        allow_headers=['*'],
    )

    app.add_exception_handler(ServiceError, service_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)

    @app.on_event('startup')
    def initialize_database() -> None:
        config.validate_runtime_config()
        try:
            database.ensure_schema()
        except SQLAlchemyError:
            logger.exception('Database initialization failed. Check DATABASE_URL and database credentials.')

    @app.on_event('shutdown')
    def close_database() -> None:
        database.dispose()

    @app.get('/')
    def root():
        return {'status': 'Event Planner API Running'}

    app.include_router(auth_routes.router, prefix='/auth')
    app.include_router(event_routes.router, prefix='/events')
    app.include_router(rsvp_routes.router, prefix='/rsvps')
    app.include_router(user_routes.router, prefix='/users')

    return app


app = create_app()
