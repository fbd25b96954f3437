import pytest
import os
import sys
import json

# Explicitly add the project root and src/ to sys.path so the suite runs from a checkout
PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), '..'))
SRC_ROOT = os.path.join(PROJECT_ROOT, 'src')
for path in (PROJECT_ROOT, SRC_ROOT):
    if path not in sys.path:
        sys.path.insert(0, path)

from fastapi.testclient import TestClient

from vortex_memory_server.memory.services import JsonMemoryStorage, MemoryService
from vortex_memory_server.server import create_app

# Import fixtures from fixtures directory
from tests.fixtures.test_data_generator import data_generator, T0, FIXED_NOW  # noqa: F401


class FakeAnsweringService:
    """Stands in for the chat-completions client."""

    def __init__(self, reply="Respuesta del modelo", error=None):
        self.reply = reply
        self.error = error
        self.prompts = []
        self.closed = False

    def answer(self, prompt):
        self.prompts.append(prompt)
        if self.error is not None:
            raise self.error
        return self.reply

    def close(self):
        self.closed = True


@pytest.fixture
def fixed_clock():
    return lambda: FIXED_NOW


@pytest.fixture
def store_path(tmp_path):
    return tmp_path / "vortex_memorias.json"


@pytest.fixture
def write_store(store_path):
    """Write a raw document to the snapshot path."""
    def _write(document):
        store_path.write_text(json.dumps(document, ensure_ascii=False), encoding='utf-8')
        return store_path
    return _write


@pytest.fixture
def read_store(store_path):
    def _read():
        return json.loads(store_path.read_text(encoding='utf-8'))
    return _read


@pytest.fixture
def sample_document():
    return {
        "acta_nacimiento": {
            "fecha_creacion": "15 de marzo de 2024",
            "lugar": "Ciudad de México"
        },
        "creador": {
            "nombre_real": "Carlos Pérez",
            "alias": "Charly",
            "mascotas": [
                {"nombre": "Luna", "especie": "gata"},
                "Toby"
            ]
        },
        "recuerdos": {
            "memorias_importantes": [
                {"texto": "me gusta el jazz", "fecha": T0}
            ]
        }
    }


@pytest.fixture
def memory_service(store_path, fixed_clock):
    return MemoryService(JsonMemoryStorage(store_path), clock=fixed_clock)


@pytest.fixture
def fake_answering():
    return FakeAnsweringService()


@pytest.fixture
def app(memory_service, fake_answering):
    return create_app(
        {'title': 'Vortex Memory Server (test)', 'version': 'test'},
        memory_service,
        answering_service=fake_answering,
        voice_config={'welcome': "Hola, soy Vortex. ¿Qué quieres saber?"}
    )


@pytest.fixture
def client(app):
    with TestClient(app) as test_client:
        yield test_client
