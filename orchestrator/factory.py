"""Application factory for creating FastAPI instances."""

from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .api.endpoints import init_dependencies, router
from .config import AppConfig, EmailBackend, get_config, validate_config
from .core.executor import Executor
from .core.logging import get_logger, setup_logging
from .core.middleware import ErrorHandlingMiddleware, RequestLoggingMiddleware
from .core.registry import HandlerRegistry
from .core.workflow_service import WorkflowService
from .handlers import EmailFn, FloodFn, SMSFn, WeatherFn, build_default_registry
from .integrations.email import MockEmailClient, ResendEmailClient
from .integrations.flood import OpenMeteoFloodClient
from .integrations.sms import MockSMSClient
from .integrations.weather import OpenMeteoClient
from .storage.database import init_database, reset_database_engine
from .storage.repository import WorkflowRepository
from .storage.seed import seed_weather_workflow


@dataclass
class Collaborators:
    """External functions the node handlers call."""
    weather_fn: Optional[WeatherFn] = None
    email_fn: Optional[EmailFn] = None
    sms_fn: Optional[SMSFn] = None
    flood_fn: Optional[FloodFn] = None


class ApplicationState:
    """Container for application state and components."""

    def __init__(self):
        self.config: Optional[AppConfig] = None
        self.registry: Optional[HandlerRegistry] = None
        self.executor: Optional[Executor] = None
        self.repository: Optional[WorkflowRepository] = None
        self.workflow_service: Optional[WorkflowService] = None


# Global application state
app_state = ApplicationState()


def build_collaborators(config: AppConfig) -> Collaborators:
    """Create the integration clients selected by configuration."""
    weather_client = OpenMeteoClient(
        base_url=config.weather_api_base_url,
        timeout=config.weather_http_timeout
    )
    flood_client = OpenMeteoFloodClient(
        endpoint=config.flood_api_url,
        timeout=config.weather_http_timeout
    )

    if config.email_backend == EmailBackend.RESEND:
        email_client = ResendEmailClient(config.resend_api_key, config.email_from)
    else:
        email_client = MockEmailClient()

    sms_client = MockSMSClient()

    return Collaborators(
        weather_fn=weather_client.get_temperature_for_city,
        email_fn=email_client.send,
        sms_fn=sms_client.send,
        flood_fn=flood_client.get_flood_risk_for_city,
    )


def initialize_database(config: AppConfig, logger) -> WorkflowRepository:
    """Initialize database tables and the sample workflow."""
    try:
        init_database(config.database_url, echo=config.database_echo)
        logger.info("Database tables created")

        repository = WorkflowRepository()
        if config.seed_sample_workflow:
            workflow_id = seed_weather_workflow(repository)
            logger.info(f"Sample workflow available: {workflow_id}")
        return repository

    except Exception as e:
        logger.error(f"Database initialization failed: {e}")
        raise


def initialize_core_components(
    config: AppConfig,
    repository: WorkflowRepository,
    collaborators: Collaborators,
    logger
) -> WorkflowService:
    """Wire the handler registry, executor and workflow service."""
    registry = build_default_registry(
        weather_fn=collaborators.weather_fn,
        email_fn=collaborators.email_fn,
        sms_fn=collaborators.sms_fn,
        flood_fn=collaborators.flood_fn,
    )
    executor = Executor(registry, strict_branching=config.strict_branching)
    service = WorkflowService(repository, executor, execution_timeout=config.execution_timeout)

    app_state.config = config
    app_state.registry = registry
    app_state.executor = executor
    app_state.repository = repository
    app_state.workflow_service = service

    init_dependencies(workflow_service=service, handler_registry=registry)

    logger.info(f"Core components initialized with node types: {', '.join(registry.node_types())}")
    return service


def create_lifespan_handler(config: AppConfig, collaborators: Optional[Collaborators] = None):
    """Create application lifespan handler."""

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        # Startup
        setup_logging(
            level=config.log_level.value,
            log_file=config.log_file,
            log_format=config.log_format,
            structured=config.log_structured,
            max_size=config.log_max_size,
            backup_count=config.log_backup_count
        )
        logger = get_logger(__name__)
        logger.info(f"Starting {config.app_name} v{config.app_version}")

        try:
            repository = initialize_database(config, logger)
            initialize_core_components(
                config, repository, collaborators or build_collaborators(config), logger
            )
            logger.info("Application startup completed successfully")
        except Exception as e:
            logger.error(f"Application startup failed: {e}")
            raise

        yield

        # Shutdown
        logger.info(f"Shutting down {config.app_name}")
        reset_database_engine()

    return lifespan


def create_app(
    config: Optional[AppConfig] = None,
    collaborators: Optional[Collaborators] = None
) -> FastAPI:
    """
    Create and configure FastAPI application instance.

    Args:
        config: Settings to use, loaded from the environment when omitted
        collaborators: Integration functions, built from config when omitted

    Returns:
        FastAPI: The configured application
    """
    if config is None:
        config = get_config()

    validate_config(config)

    app = FastAPI(
        title=config.app_name,
        description="Executes declarative workflow graphs step by step and records their history",
        version=config.app_version,
        debug=config.debug,
        lifespan=create_lifespan_handler(config, collaborators)
    )

    if config.cors_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=config.cors_origins,
            allow_credentials=True,
            allow_methods=config.cors_methods,
            allow_headers=["*"],
        )

    app.add_middleware(ErrorHandlingMiddleware)
    app.add_middleware(RequestLoggingMiddleware)

    app.include_router(router)

    add_health_endpoints(app, config)

    return app


def add_health_endpoints(app: FastAPI, config: AppConfig) -> None:
    """Add health check endpoints to the application."""

    @app.get("/")
    async def root():
        """Root endpoint for basic health check."""
        return {"message": f"{config.app_name} is running", "version": config.app_version}

    @app.get("/health")
    async def health_check():
        """Basic health check endpoint."""
        return {
            "status": "healthy",
            "service": config.app_name.lower().replace(" ", "-"),
            "version": config.app_version
        }


def get_app_state() -> ApplicationState:
    """Get the current application state."""
    return app_state
