# main.py
import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from campusvote import config
from campusvote.errors import CampusVoteError
from campusvote.models import format_error
from campusvote.routes.analytics_routes import router as analytics_router
from campusvote.routes.auth_routes import router as auth_router
from campusvote.routes.poll_routes import router as poll_router
from campusvote.routes.vote_routes import vote_router
from campusvote.routes.voter_routes import router as voter_router
from campusvote.services import Services, build_services

logging.basicConfig(level=config.LOG_LEVEL)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # the storage context is opened once per process and reused by every request
    if getattr(app.state, "services", None) is None:
        app.state.services = build_services()
    yield


def create_app(services: Optional[Services] = None) -> FastAPI:
    app = FastAPI(title="campusvote - Campus Poll and Voting API", lifespan=lifespan)
    app.state.services = services

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(CampusVoteError)
    async def domain_error_handler(request: Request, exc: CampusVoteError):
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        errors = [format_error(err) for err in exc.errors()]
        return JSONResponse(
            status_code=422,
            content={"success": False, "message": "Invalid request: " + "; ".join(errors), "errors": errors},
        )

    @app.exception_handler(Exception)
    async def unexpected_error_handler(request: Request, exc: Exception):
        logger.error(f"Unhandled error on {request.method} {request.url.path}: {exc}", exc_info=exc)
        return JSONResponse(status_code=500, content={"success": False, "message": "Operation failed"})

    app.include_router(auth_router)
    app.include_router(voter_router)
    app.include_router(poll_router)
    app.include_router(analytics_router)
    app.include_router(vote_router)

    @app.get("/health", tags=["Root"])
    def health_check():
        return {"status": "healthy", "database": "MongoDB"}

    @app.get("/", tags=["Root"])
    def read_root():
        return {"message": "Welcome to the campusvote API"}

    return app


app = create_app()
