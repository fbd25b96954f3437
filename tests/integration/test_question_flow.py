"""
Integration tests for POST /preguntar

Covers memory-first answering, the answering-service fallback and its
failure modes, and the voice-assistant envelope.
"""

import pytest
from fastapi.testclient import TestClient

from vortex_memory_server.memory.exceptions import UpstreamError, RateLimitedError
from vortex_memory_server.server.handlers import RATE_LIMITED_MESSAGE, UPSTREAM_ERROR_MESSAGE

pytestmark = pytest.mark.integration


def voice_intent(question=None, slot="pregunta"):
    slots = {slot: {"name": slot, "value": question}} if question is not None else {}
    return {
        "version": "1.0",
        "session": {"new": False},
        "request": {
            "type": "IntentRequest",
            "intent": {"name": "PreguntarIntent", "slots": slots}
        }
    }


@pytest.fixture
def with_sample(write_store, sample_document):
    write_store(sample_document)


class TestPlainQuestions:

    def test_answer_from_memory(self, client, with_sample, fake_answering):
        response = client.post("/preguntar", json={"pregunta": "¿Te gusta el jazz?"})

        assert response.status_code == 200
        assert response.json() == {"respuesta": 'Recuerdo que: "me gusta el jazz"', "origen": "memoria"}
        assert fake_answering.prompts == []

    def test_answer_about_creator(self, client, with_sample):
        response = client.post("/preguntar", json={"pregunta": "¿Quién te creó?"})

        body = response.json()
        assert body["origen"] == "memoria"
        assert "Carlos Pérez" in body["respuesta"]

    def test_falls_back_to_answering_service(self, client, with_sample, fake_answering):
        fake_answering.reply = "La capital de Francia es París."

        response = client.post("/preguntar", json={"pregunta": "  ¿Cuál es la capital de Francia?  "})

        assert response.json() == {"respuesta": "La capital de Francia es París.", "origen": "modelo"}
        assert fake_answering.prompts == ["¿Cuál es la capital de Francia?"]

    def test_rate_limited(self, client, fake_answering):
        fake_answering.error = RateLimitedError("too many requests", status_code=429)

        response = client.post("/preguntar", json={"pregunta": "¿Cuál es la capital de Francia?"})

        assert response.status_code == 200
        assert response.json() == {"respuesta": RATE_LIMITED_MESSAGE, "origen": "error"}

    def test_upstream_failure(self, client, fake_answering):
        fake_answering.error = UpstreamError("connection refused")

        response = client.post("/preguntar", json={"pregunta": "¿Cuál es la capital de Francia?"})

        assert response.status_code == 200
        assert response.json() == {"respuesta": UPSTREAM_ERROR_MESSAGE, "origen": "error"}

    @pytest.mark.parametrize("body", [{}, {"pregunta": ""}, {"pregunta": "   "}, {"pregunta": 5}])
    def test_missing_question(self, client, body, fake_answering):
        response = client.post("/preguntar", json=body)

        assert response.status_code == 400
        assert response.json() == {"error": "Falta la pregunta"}
        assert fake_answering.prompts == []

    def test_does_not_modify_store(self, client, with_sample, store_path):
        before = store_path.read_text(encoding='utf-8')

        client.post("/preguntar", json={"pregunta": "¿Tienes mascotas?"})

        assert store_path.read_text(encoding='utf-8') == before


class TestVoiceEnvelope:

    def test_intent_answered_from_memory(self, client, with_sample):
        response = client.post("/preguntar", json=voice_intent("te gusta el jazz"))

        assert response.status_code == 200
        assert response.json() == {
            "version": "1.0",
            "response": {
                "shouldEndSession": False,
                "outputSpeech": {
                    "type": "SSML",
                    "ssml": "<speak>Recuerdo que: \"me gusta el jazz\"</speak>"
                }
            }
        }

    def test_intent_falls_back_and_escapes_speech(self, client, fake_answering):
        fake_answering.reply = "Tom & Jerry <3"

        response = client.post("/preguntar", json=voice_intent("dibujos animados favoritos", slot="consulta"))

        speech = response.json()["response"]["outputSpeech"]
        assert speech["ssml"] == "<speak>Tom &amp; Jerry &lt;3</speak>"
        assert fake_answering.prompts == ["dibujos animados favoritos"]

    def test_launch_request(self, client):
        response = client.post("/preguntar", json={"version": "1.0", "request": {"type": "LaunchRequest"}})

        body = response.json()
        assert body["response"]["shouldEndSession"] is False
        assert body["response"]["outputSpeech"]["ssml"] == "<speak>Hola, soy Vortex. ¿Qué quieres saber?</speak>"

    def test_session_ended(self, client):
        response = client.post("/preguntar", json={"version": "1.0", "request": {"type": "SessionEndedRequest"}})

        assert response.json() == {"version": "1.0", "response": {"shouldEndSession": True}}

    def test_intent_without_question(self, client):
        response = client.post("/preguntar", json=voice_intent())

        assert response.status_code == 400
        assert response.json() == {"error": "Falta la pregunta"}


def test_shutdown_closes_answering_service(app, fake_answering):
    with TestClient(app):
        assert fake_answering.closed is False
    assert fake_answering.closed is True
