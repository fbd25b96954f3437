import pytest
import json

from fastapi.testclient import TestClient

from vortex_memory_server.config import Config
from vortex_memory_server.main import build_app

pytestmark = pytest.mark.integration


@pytest.fixture
def configured(tmp_path, monkeypatch):
    monkeypatch.delenv("DEEPSEEK_API_KEY", raising=False)
    snapshot = tmp_path / "data" / "memorias.json"
    config_path = tmp_path / "config.json"
    config_path.write_text(json.dumps({
        "storage": {"path": str(snapshot)},
        "deduplication": {"upsert_threshold": 1.0},
        "voice": {"welcome": "Bienvenido"},
        "logging": {"file": None}
    }), encoding='utf-8')
    return Config(str(config_path)), snapshot


class TestBuildApp:

    def test_routes_use_configured_snapshot(self, configured):
        config, snapshot = configured

        with TestClient(build_app(config)) as client:
            client.post("/recuerdos", json={"nuevoRecuerdo": "me gusta el jazz"})
            # exact-match upsert threshold from config: a variant is a new memory
            client.post("/recuerdos", json={"nuevoRecuerdo": "Me gusta el Jazz!!"})
            body = client.get("/recuerdos").json()

        assert snapshot.exists()
        assert len(body["recuerdos"]["memorias_importantes"]) == 2

    def test_voice_settings_applied(self, configured):
        config, _ = configured

        with TestClient(build_app(config)) as client:
            response = client.post("/preguntar", json={"request": {"type": "LaunchRequest"}})

        assert response.json()["response"]["outputSpeech"]["ssml"] == "<speak>Bienvenido</speak>"

    def test_missing_api_key_answers_with_error_origin(self, configured):
        config, _ = configured

        with TestClient(build_app(config)) as client:
            response = client.post("/preguntar", json={"pregunta": "¿Cuál es la capital de Francia?"})

        assert response.status_code == 200
        assert response.json()["origen"] == "error"
