import logging
from typing import Optional

from vortex_memory_server.config import Config
from vortex_memory_server.memory.services import JsonMemoryStorage, MemoryService
from vortex_memory_server.answering import ChatCompletionAnsweringService
from vortex_memory_server.server import create_app


def build_app(config: Optional[Config] = None):
    """Wire storage, memory services, the answering client and the HTTP app."""
    config = config or Config()

    storage = JsonMemoryStorage(config.get('storage', 'path', default='vortex_memorias.json'))
    memory_service = MemoryService(
        storage,
        deduplication_config=config.get_deduplication_config(),
        retrieval_config=config.get_retrieval_config()
    )
    answering_service = ChatCompletionAnsweringService.from_config(config.get_answering_config())

    app = create_app(
        config.get_server_config(),
        memory_service,
        answering_service=answering_service,
        voice_config=config.get_voice_config()
    )

    logging.info(f"Vortex Memory Server initialized (snapshot: {storage.path}, "
                 f"answering model: {answering_service.model})")
    return app


_global_app = None


def get_app():
    """Get or create the FastAPI app instance (uvicorn factory)."""
    global _global_app
    if _global_app is None:
        _global_app = build_app()
    return _global_app


def main():
    import uvicorn

    config = Config()
    server_config = config.get_server_config()

    uvicorn.run(
        "vortex_memory_server.main:get_app",
        factory=True,
        host=server_config.get('host', '127.0.0.1'),
        port=server_config.get('port', 3000),
        log_level=str(config.get('logging', 'level', default='info')).lower()
    )


if __name__ == "__main__":
    main()
