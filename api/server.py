"""
FastAPI application entry point.

Sets up the application with:
- Lifespan management (startup/shutdown)
- Route registration
- Middleware configuration
- Error handling
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from api.routes import debug_router, health_router, register_router
from core.config import Settings, get_settings
from core.logging import configure_logging, get_logger
from core.storage import BaseStorage, StorageError, create_storage
from core.validation import validate_environment


logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    应用程序生命周期管理器。

    处理启动和关闭:
    - 启动: 校验环境变量, 按配置创建并初始化存储后端（测试可预先注入）
    - 配置无效或存储初始化失败时不中断启动, 由注册接口和调试接口报告问题
    - 关闭: 关闭由本应用创建的存储连接
    """
    settings: Settings = app.state.settings
    configure_logging(settings)

    logger.info(
        "Starting MoonTV server...",
        storage_type=settings.storage_type,
    )

    # Requests re-validate on their own
    validation = validate_environment(settings)

    owns_storage = app.state.storage is None
    if owns_storage:
        if validation.valid:
            app.state.storage = create_storage(settings)
        else:
            logger.warning(
                "Environment invalid, storage backend not created",
                errors=validation.errors,
            )

    storage: Optional[BaseStorage] = app.state.storage
    if storage is not None:
        try:
            await storage.setup()
        except StorageError as e:
            logger.error(
                "Storage setup failed, continuing without storage",
                backend=storage.name,
                error=str(e),
            )
            await storage.close()
            storage = app.state.storage = None

    logger.info(
        "MoonTV server started",
        host=settings.server_host,
        port=settings.server_port,
        storage_type=settings.storage_type,
        storage_backend=storage.name if storage else None,
    )

    yield

    # =========================================
    # Shutdown
    # =========================================
    logger.info("Shutting down MoonTV server...")

    if storage is not None:
        await storage.close()
    if owns_storage:
        app.state.storage = None

    logger.info("MoonTV server stopped")


def create_app(
    settings: Optional[Settings] = None,
    storage: Optional[BaseStorage] = None,
) -> FastAPI:
    """
    Application factory.

    Args:
        settings: Settings to use; read from the environment if omitted
        storage: Pre-built storage backend; created from settings at startup if omitted
    """
    settings = settings or get_settings()

    app = FastAPI(
        title="MoonTV Server",
        description="User registration and environment diagnostics for MoonTV.",
        version="0.1.0",
        lifespan=lifespan,
        docs_url="/docs" if settings.is_development else None,
        redoc_url="/redoc" if settings.is_development else None,
    )
    app.state.settings = settings
    app.state.storage = storage

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Register routes
    app.include_router(health_router)
    app.include_router(register_router)
    app.include_router(debug_router)

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        logger.error(
            "Unhandled exception",
            path=request.url.path,
            method=request.method,
            error=str(exc),
            exc_info=True,
        )
        return JSONResponse(
            status_code=500,
            content={
                "error": "Server error",
                "message": str(exc) if settings.debug else "An error occurred",
            },
        )

    return app


if __name__ == "__main__":
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "api.server:create_app",
        factory=True,
        host=settings.server_host,
        port=settings.server_port,
        reload=settings.debug,
    )
