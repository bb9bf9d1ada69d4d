"""FastAPI application entry point"""
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from api.dependencies import init_dependencies
from api.routers import scheduler, system
from api.schemas.response import ErrorResponse
from post_scheduler.core.config import config
from post_scheduler.core.exceptions import AuthError, ConfigError, PostSchedulerError, StorageError
from post_scheduler.core.init import init_delivery, init_storage, init_tasks
from post_scheduler.core.logger import logger
from post_scheduler.scheduler.scheduler import PostScheduler


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan context manager for startup/shutdown events"""
    logger.info("🚀 Starting post scheduler API...")

    config.validate()
    engine, repository = await init_storage()

    delivery = None
    scheduler_tasks = None
    try:
        delivery = init_delivery()
        scheduler_tasks = init_tasks(repository, delivery)
    except ConfigError as e:
        # API поднимается, но триггер будет отвечать 500
        logger.error(f"❌ Ошибка конфигурации: {e}")

    post_scheduler = PostScheduler()
    post_scheduler.start()

    init_dependencies(repository, scheduler_tasks, post_scheduler)
    logger.info("✅ API ready")
    yield

    logger.info("🛑 Shutting down API...")
    post_scheduler.stop()
    if delivery is not None:
        await delivery.close()
    await engine.dispose()


# Create FastAPI app
app = FastAPI(
    title="Telegram Post Scheduler API",
    description="Delivers scheduled posts to Telegram chats",
    version="1.0.0",
    docs_url="/api/docs",
    redoc_url="/api/redoc",
    lifespan=lifespan
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(PostSchedulerError)
async def post_scheduler_error_handler(request: Request, exc: PostSchedulerError):
    """Map domain errors to a single error object"""
    if isinstance(exc, AuthError):
        status_code, error = 401, "Unauthorized"
    elif isinstance(exc, StorageError):
        status_code, error = 500, "Failed to fetch posts"
    elif isinstance(exc, ConfigError):
        status_code, error = 500, "Configuration error"
    else:
        status_code, error = 500, "Internal error"

    logger.error(f"❌ {request.method} {request.url.path}: {exc}")
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(error=error, detail=str(exc)).model_dump()
    )


# Include routers
app.include_router(scheduler.router)
app.include_router(system.router)


@app.get("/")
async def root():
    """Root endpoint"""
    return {
        "message": "Telegram Post Scheduler API",
        "version": "1.0.0",
        "docs": "/api/docs"
    }
