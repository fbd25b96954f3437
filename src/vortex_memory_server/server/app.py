from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from typing import Any, Dict, Optional
from contextlib import asynccontextmanager
import time
import logging

from .errors import register_exception_handlers
from .handlers import (
    read_json_body, handle_add_memory, handle_update_memory, handle_delete_memory,
    handle_get_memories, handle_deduplicate, handle_question
)
from ..memory.services import MemoryService
from ..answering import AnsweringService


def create_app(
    server_config: Dict[str, Any],
    memory_service: MemoryService,
    answering_service: Optional[AnsweringService] = None,
    voice_config: Optional[Dict[str, Any]] = None
) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        server_config: Server configuration dictionary
        memory_service: Memory facade shared by every route
        answering_service: Fallback answering service for /preguntar
        voice_config: Voice assistant settings (slot names, welcome text)

    Returns:
        Configured FastAPI application instance
    """
    voice_config = voice_config or {}

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        # Startup
        logging.info(f"FastAPI application starting up, memory snapshot at {memory_service.storage.path}")
        yield
        # Shutdown
        if answering_service is not None:
            logging.info("FastAPI shutdown: closing answering service client")
            answering_service.close()

    app = FastAPI(
        title=server_config.get('title', 'Vortex Memory Server'),
        version=server_config.get('version', '1.0.0'),
        lifespan=lifespan
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=server_config.get('cors_origins', ["*"]),
        allow_methods=["*"],
        allow_headers=["*"]
    )
    register_exception_handlers(app)

    @app.get("/health")
    async def health_check():
        """Health check endpoint for monitoring system status."""
        return {
            "status": "healthy",
            "timestamp": time.time(),
            "service": "Vortex Memory Server",
            "version": server_config.get('version', '1.0.0'),
            "memory": memory_service.get_stats()
        }

    @app.post("/recuerdos")
    async def add_memory(request: Request):
        return await handle_add_memory(memory_service, await read_json_body(request))

    @app.put("/recuerdos")
    async def update_memory(request: Request):
        return await handle_update_memory(memory_service, await read_json_body(request))

    @app.delete("/recuerdos")
    async def delete_memory(request: Request):
        return await handle_delete_memory(memory_service, await read_json_body(request))

    @app.get("/recuerdos")
    async def get_memories():
        return await handle_get_memories(memory_service)

    @app.post("/recuerdos/deduplicar")
    async def deduplicate_memories(request: Request):
        return await handle_deduplicate(memory_service, await read_json_body(request))

    @app.post("/preguntar")
    async def ask(request: Request):
        return await handle_question(memory_service, answering_service, voice_config, await read_json_body(request))

    return app
