"""Document parse task service - FastAPI application."""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from docparse.api.v1 import health as health_api
from docparse.api.v1 import tasks as tasks_api
from docparse.api.v1.health import router as health_root_router
from docparse.api.v1.router import upload_router_compat, v1_router
from docparse.config import settings
from docparse.errors import install_error_handlers
from docparse.jobs.in_process_queue import InProcessQueue, WorkerFn
from docparse.jobs.store import JobStore
from docparse.logging_config import configure_logging
from docparse.parsing.client import ParseServiceClient
from docparse.parsing.worker import ParseWorker
from docparse.storage.uploads import upload_store

logger = logging.getLogger(__name__)


def build_worker() -> ParseWorker:
    return ParseWorker(
        client=ParseServiceClient(),
        uploads=upload_store,
        max_download_bytes=settings.max_upload_bytes,
        download_timeout=settings.download_timeout_seconds,
        upload_server_url=settings.upload_server_url,
    )


def create_app(worker_fn: Optional[WorkerFn] = None) -> FastAPI:
    """Build the application. ``worker_fn`` replaces the parse worker (tests)."""

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        configure_logging(settings.log_level)
        logger.info("Starting docparse on port %s", settings.service_port)
        logger.info("Parse service: %s", settings.parse_service_url)
        logger.info("Upload staging dir: %s", upload_store.base_dir)

        worker = worker_fn or build_worker()
        dispatcher = InProcessQueue(
            worker_fn=worker,
            store=JobStore(ttl_seconds=settings.job_ttl_seconds),
            workers=settings.job_workers,
            timeout_seconds=settings.job_timeout_seconds,
            sweep_interval_seconds=settings.job_sweep_interval_seconds,
            on_sweep=upload_store.cleanup_expired,
            on_abandon=getattr(worker, "release", None),
        )
        await dispatcher.start()
        logger.info("Job dispatcher started with %d worker(s)", settings.job_workers)

        tasks_api.set_dispatcher(dispatcher)
        health_api.set_dispatcher(dispatcher)
        app.state.dispatcher = dispatcher

        yield

        logger.info("Shutting down docparse")
        await dispatcher.stop()
        tasks_api.set_dispatcher(None)
        health_api.set_dispatcher(None)
        upload_store.cleanup_expired()

    app = FastAPI(
        title="Document Parse Task Service",
        description="Background document-to-Markdown parsing with pollable task status",
        version="0.1.0",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    install_error_handlers(app)

    app.include_router(health_root_router, tags=["health"])  # GET /health at root
    app.include_router(v1_router)  # All /api/v1/* endpoints
    app.include_router(upload_router_compat)  # /api/quarterly/pdf-task compat layer
    return app


app = create_app()


def run() -> None:
    import uvicorn

    uvicorn.run("docparse.main:app", host="0.0.0.0", port=settings.service_port)
