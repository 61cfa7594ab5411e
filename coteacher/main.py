"""CoTeacher FastAPI application entry point.

Wires together all providers, services, and routes via dependency injection.
Loads configuration from ``.env`` and ``config/config.yaml`` and configures
structured logging.  ``build_components`` is shared with the CLI so both
surfaces run the exact same object graph.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Any

import httpx
import structlog
import uvicorn
from fastapi import FastAPI

from coteacher import __version__
from coteacher.api.middleware import (
    ErrorHandlingMiddleware,
    RequestLoggingMiddleware,
    configure_cors,
    register_exception_handlers,
)
from coteacher.api.routes import router as api_router
from coteacher.config.loader import load_config
from coteacher.config.settings import Settings
from coteacher.interfaces.course_store import ICourseStore
from coteacher.interfaces.object_storage import IObjectStorage
from coteacher.providers.embedding.openai_embedding_provider import OpenAIEmbeddingProvider
from coteacher.providers.llm.openai_provider import OpenAILLMProvider
from coteacher.providers.storage.local_file_storage_provider import LocalFileStorageProvider
from coteacher.providers.storage.supabase_storage_provider import SupabaseStorageProvider
from coteacher.providers.store.sqlite_course_store import SQLiteCourseStore
from coteacher.providers.store.supabase_course_store import SupabaseCourseStore
from coteacher.providers.transcription.whisper_api_provider import WhisperAPIProvider
from coteacher.services.course_chat_service import CourseChatService
from coteacher.services.ingestion.batch_planner import BatchPlanner
from coteacher.services.ingestion.chunker import TextChunker
from coteacher.services.ingestion.indexer import MaterialIndexer
from coteacher.services.ingestion.text_extractor import TextExtractor
from coteacher.services.transcription_service import TranscriptionService
from coteacher.utils.concurrency import KeyedGuard
from coteacher.utils.errors import ConfigurationError
from coteacher.utils.logging import configure_logging, get_logger

# ---------------------------------------------------------------------------
# Module-level settings & logging
# ---------------------------------------------------------------------------

settings = Settings()

configure_logging(
    log_level=settings.log_level,
    json_output=(settings.app_env == "production"),
)
_logger: structlog.BoundLogger = get_logger(__name__)

# Unexpected failures on these paths include a traceback in the response.
_TRACEBACK_PATHS = ("/index-material",)


# ---------------------------------------------------------------------------
# Backend selection
# ---------------------------------------------------------------------------


_STORAGE_BACKENDS = ("supabase", "local")
_STORE_BACKENDS = ("supabase", "sqlite")


def _check_backends(app_settings: Settings) -> None:
    """Reject unknown or incomplete backend settings before any client is opened."""
    if app_settings.storage_backend.lower() not in _STORAGE_BACKENDS:
        raise ConfigurationError(message=f"Unknown STORAGE_BACKEND: {app_settings.storage_backend}")
    if app_settings.store_backend.lower() not in _STORE_BACKENDS:
        raise ConfigurationError(message=f"Unknown STORE_BACKEND: {app_settings.store_backend}")
    if app_settings.uses_supabase() and not (
        app_settings.supabase_url and app_settings.supabase_service_role_key
    ):
        raise ConfigurationError(
            message="SUPABASE_URL and SUPABASE_SERVICE_ROLE_KEY are required for the supabase backend",
            provider_name="supabase",
        )


def _build_storage(app_settings: Settings, http_client: httpx.AsyncClient) -> IObjectStorage:
    backend = app_settings.storage_backend.lower()
    if backend == "supabase":
        return SupabaseStorageProvider(
            http_client=http_client,
            supabase_url=app_settings.supabase_url,
            service_role_key=app_settings.supabase_service_role_key,
        )
    return LocalFileStorageProvider(root_dir=app_settings.local_storage_dir)


def _build_store(app_settings: Settings, http_client: httpx.AsyncClient) -> ICourseStore:
    backend = app_settings.store_backend.lower()
    if backend == "supabase":
        return SupabaseCourseStore(
            http_client=http_client,
            supabase_url=app_settings.supabase_url,
            service_role_key=app_settings.supabase_service_role_key,
        )
    return SQLiteCourseStore(db_path=app_settings.sqlite_db_path)


# ---------------------------------------------------------------------------
# Full DI assembly
# ---------------------------------------------------------------------------


def build_components(
    app_settings: Settings,
    app_config: dict[str, Any] | None = None,
) -> dict[str, Any]:
    """Construct every provider and service instance for the application.

    Returns a flat dict of named components to be stored on ``app.state``
    (or used directly by the CLI).  The caller owns ``http_client`` and
    must close it.

    Raises
    ------
    ConfigurationError
        If a backend is unknown or lacks credentials; raised before the
        shared HTTP client exists.
    """
    _check_backends(app_settings)
    if app_config is None:
        app_config = load_config(settings=app_settings)
    ingestion_cfg = app_config.get("ingestion", {})
    chat_cfg = app_config.get("chat", {})
    notes_cfg = app_config.get("notes", {})
    storage_cfg = app_config.get("storage", {})
    materials_bucket = storage_cfg.get("materials_bucket", app_settings.materials_bucket)

    if not app_settings.openai_api_key:
        _logger.warning("openai_api_key_missing", msg="Embedding and generation calls will fail.")

    # -- Shared resources --
    http_client = httpx.AsyncClient(timeout=app_settings.openai_timeout_seconds)

    # -- Providers --
    storage = _build_storage(app_settings, http_client)
    store = _build_store(app_settings, http_client)
    # One embedding provider serves both indexing and querying.
    embedding_provider = OpenAIEmbeddingProvider(settings=app_settings)
    llm_provider = OpenAILLMProvider(settings=app_settings)
    transcriber = WhisperAPIProvider(settings=app_settings)

    # -- Ingestion --
    indexer = MaterialIndexer(
        store=store,
        storage=storage,
        embedding_provider=embedding_provider,
        extractor=TextExtractor(),
        chunker=TextChunker(
            chunk_size=ingestion_cfg.get("chunk_size", app_settings.chunk_size),
            overlap=ingestion_cfg.get("chunk_overlap", app_settings.chunk_overlap),
        ),
        planner=BatchPlanner(
            item_token_limit=ingestion_cfg.get(
                "item_token_limit", app_settings.embed_item_token_limit
            ),
            request_token_budget=ingestion_cfg.get(
                "request_token_budget", app_settings.embed_request_token_budget
            ),
            max_items=ingestion_cfg.get("request_max_items", app_settings.embed_request_max_items),
        ),
        guard=KeyedGuard("material_indexing"),
        bucket=materials_bucket,
        signed_url_ttl=storage_cfg.get(
            "signed_url_ttl_seconds", app_settings.signed_url_ttl_seconds
        ),
    )

    # -- Course chat --
    chat_service = CourseChatService(
        store=store,
        embedding_provider=embedding_provider,
        llm_provider=llm_provider,
        top_k=chat_cfg.get("top_k", app_settings.chat_top_k),
        match_threshold=chat_cfg.get("match_threshold", app_settings.chat_match_threshold),
        temperature=chat_cfg.get("temperature", app_settings.chat_temperature),
    )

    # -- ClassPark transcription --
    transcription_service = TranscriptionService(
        store=store,
        storage=storage,
        transcriber=transcriber,
        llm_provider=llm_provider,
        bucket=storage_cfg.get("recordings_bucket", app_settings.recordings_bucket),
        signed_url_ttl=storage_cfg.get(
            "signed_url_ttl_seconds", app_settings.signed_url_ttl_seconds
        ),
        notes_temperature=notes_cfg.get("temperature", app_settings.notes_temperature),
    )

    provider_registry: dict[str, Any] = {
        "embedding": embedding_provider.get_provider_name(),
        "llm": llm_provider.get_provider_name(),
        "storage": storage.get_provider_name(),
        "store": store.get_provider_name(),
        "transcription": transcriber.get_provider_name(),
    }

    return {
        "http_client": http_client,
        "storage": storage,
        "store": store,
        "embedding_provider": embedding_provider,
        "llm_provider": llm_provider,
        "transcriber": transcriber,
        "indexer": indexer,
        "chat_service": chat_service,
        "transcription_service": transcription_service,
        "provider_registry": provider_registry,
        "materials_bucket": materials_bucket,
        "version": __version__,
    }


async def initialize_components(components: dict[str, Any]) -> None:
    """Run async start-up hooks (schema creation for the SQLite store)."""
    store = components["store"]
    if isinstance(store, SQLiteCourseStore):
        await store.initialize()


# ---------------------------------------------------------------------------
# Application lifespan (startup / shutdown)
# ---------------------------------------------------------------------------


@asynccontextmanager
async def _lifespan(application: FastAPI):  # noqa: ANN201
    """Initialise all providers and services on startup, clean up on shutdown."""
    components = build_components(settings, load_config(settings=settings))
    await initialize_components(components)

    for key, value in components.items():
        setattr(application.state, key, value)

    _logger.info(
        "app_startup",
        version=__version__,
        environment=settings.app_env,
        providers=components["provider_registry"],
    )

    yield

    # -- Shutdown: close shared httpx client --
    http_client: httpx.AsyncClient = components["http_client"]
    await http_client.aclose()
    _logger.info("app_shutdown", message="HTTP client closed")


# ---------------------------------------------------------------------------
# FastAPI application factory
# ---------------------------------------------------------------------------


def create_app() -> FastAPI:
    """Build and configure the FastAPI application."""
    application = FastAPI(
        title="CoTeacher API",
        version=__version__,
        description=(
            "Index uploaded course materials into a per-course vector knowledge "
            "base, answer student questions grounded in those materials, and "
            "turn recorded lectures into structured notes."
        ),
        lifespan=_lifespan,
    )

    # -- Middleware (order matters: last added = first executed) --
    application.add_middleware(ErrorHandlingMiddleware, traceback_paths=_TRACEBACK_PATHS)
    application.add_middleware(RequestLoggingMiddleware)
    configure_cors(application, allowed_origins=settings.cors_origins)
    register_exception_handlers(application)

    # -- API routes --
    application.include_router(api_router)

    return application


app = create_app()

# ---------------------------------------------------------------------------
# CLI entry point
# ---------------------------------------------------------------------------

if __name__ == "__main__":
    uvicorn.run(
        "coteacher.main:app",
        host=settings.app_host,
        port=settings.app_port,
        reload=(settings.app_env == "development"),
    )
