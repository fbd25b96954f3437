import asyncio
import json
import logging
from typing import Any, Dict, List, Optional, Tuple, Type, TypeVar
from xml.sax.saxutils import escape

from fastapi import Request
from pydantic import BaseModel, ValidationError

from .models import (
    NewMemoryRequest, UpdateMemoryRequest, DeleteMemoryRequest,
    DeduplicateRequest, QuestionRequest
)
from ..memory.exceptions import InvalidInputError, UpstreamError, RateLimitedError
from ..memory.services import MemoryService
from ..answering import AnsweringService

ModelT = TypeVar('ModelT', bound=BaseModel)

RATE_LIMITED_MESSAGE = "Estoy recibiendo demasiadas preguntas ahora mismo. Inténtalo de nuevo en un momento."
UPSTREAM_ERROR_MESSAGE = "No he podido conectar con mi servicio de respuestas. Inténtalo más tarde."
DEFAULT_WELCOME = "Hola, soy Vortex. ¿Qué quieres saber?"
DEFAULT_QUESTION_SLOTS = ["pregunta", "consulta", "query"]

ORIGIN_MEMORY = "memoria"
ORIGIN_MODEL = "modelo"
ORIGIN_ERROR = "error"


async def read_json_body(request: Request) -> Dict[str, Any]:
    """Parse the request body as a JSON object; an empty body is ``{}``."""
    raw = await request.body()
    if not raw.strip():
        return {}
    try:
        body = json.loads(raw)
    except ValueError as e:
        raise InvalidInputError('body', f"JSON inválido: {e}") from e
    if not isinstance(body, dict):
        raise InvalidInputError('body', "El cuerpo de la petición debe ser un objeto JSON")
    return body


def parse_body(model: Type[ModelT], body: Dict[str, Any]) -> ModelT:
    """Validate a parsed body against a request model."""
    try:
        return model(**body)
    except ValidationError as e:
        raise InvalidInputError('body', f"Petición inválida: {e.errors()[0].get('msg', str(e))}") from e


async def handle_add_memory(service: MemoryService, body: Dict[str, Any]) -> Dict[str, Any]:
    """POST /recuerdos"""
    logging.info(f"Receiving new memory: {body}")
    payload = parse_body(NewMemoryRequest, body)
    if not payload.nuevoRecuerdo:
        raise InvalidInputError('nuevoRecuerdo', "Error al guardar el recuerdo")

    result = await asyncio.to_thread(service.add_memory, payload.nuevoRecuerdo)
    if result.was_update:
        return {"mensaje": "Recuerdo actualizado automáticamente", "recuerdo": result.record}
    return {"mensaje": "Recuerdo guardado exitosamente", "recuerdo": result.record}


async def handle_update_memory(service: MemoryService, body: Dict[str, Any]) -> Dict[str, Any]:
    """PUT /recuerdos"""
    logging.info(f"Receiving update on PUT /recuerdos: {body}")
    payload = parse_body(UpdateMemoryRequest, body)
    record = await asyncio.to_thread(service.update_memory, payload.textoViejo, payload.nuevoTexto)
    return {"mensaje": "Recuerdo actualizado exitosamente", "recuerdo": record}


async def handle_delete_memory(service: MemoryService, body: Dict[str, Any]) -> Dict[str, Any]:
    """DELETE /recuerdos"""
    logging.info(f"Receiving removal on DELETE /recuerdos: {body}")
    payload = parse_body(DeleteMemoryRequest, body)
    record = await asyncio.to_thread(service.delete_memory, payload.texto)
    return {"mensaje": "Recuerdo eliminado exitosamente", "recuerdo": record}


async def handle_get_memories(service: MemoryService) -> Dict[str, Any]:
    """GET /recuerdos"""
    return await asyncio.to_thread(service.get_document)


async def handle_deduplicate(service: MemoryService, body: Dict[str, Any]) -> Dict[str, Any]:
    """POST /recuerdos/deduplicar"""
    payload = parse_body(DeduplicateRequest, body)
    return await asyncio.to_thread(service.deduplicate, payload.dry_run)


async def answer_question(
    service: MemoryService,
    answering: Optional[AnsweringService],
    question: str
) -> Tuple[str, str]:
    """Answer from memory first, then from the answering service.

    Returns:
        Tuple of (answer text, origin)
    """
    from_memory = await asyncio.to_thread(service.retrieve, question)
    if from_memory is not None:
        return from_memory, ORIGIN_MEMORY

    if answering is None:
        logging.error("No answering service configured")
        return UPSTREAM_ERROR_MESSAGE, ORIGIN_ERROR

    try:
        return await asyncio.to_thread(answering.answer, question), ORIGIN_MODEL
    except RateLimitedError as e:
        logging.warning(f"Answering service rate limited: {e}")
        return RATE_LIMITED_MESSAGE, ORIGIN_ERROR
    except UpstreamError as e:
        logging.error(f"Answering service failed: {e}")
        return UPSTREAM_ERROR_MESSAGE, ORIGIN_ERROR


def extract_voice_question(envelope: Dict[str, Any], slot_names: List[str]) -> Optional[str]:
    """Read the question from the first filled intent slot."""
    intent = envelope.get("intent")
    slots = intent.get("slots") if isinstance(intent, dict) else None
    if not isinstance(slots, dict):
        return None

    for name in slot_names:
        slot = slots.get(name)
        value = slot.get("value") if isinstance(slot, dict) else None
        if isinstance(value, str) and value.strip():
            return value.strip()
    return None


def build_voice_response(text: Optional[str], end_session: bool = False) -> Dict[str, Any]:
    """Wrap text in a voice-assistant response with SSML speech."""
    response: Dict[str, Any] = {"shouldEndSession": end_session}
    if text:
        response["outputSpeech"] = {
            "type": "SSML",
            "ssml": f"<speak>{escape(text)}</speak>"
        }
    return {"version": "1.0", "response": response}


async def handle_question(
    service: MemoryService,
    answering: Optional[AnsweringService],
    voice_config: Dict[str, Any],
    body: Dict[str, Any]
) -> Dict[str, Any]:
    """POST /preguntar"""
    logging.info(f"Receiving question: {body}")
    payload = parse_body(QuestionRequest, body)

    if payload.is_voice:
        envelope = payload.request or {}
        request_type = envelope.get("type")
        if request_type == "LaunchRequest":
            return build_voice_response(voice_config.get("welcome", DEFAULT_WELCOME))
        if request_type == "SessionEndedRequest":
            return build_voice_response(None, end_session=True)

        question = extract_voice_question(envelope, voice_config.get("question_slots", DEFAULT_QUESTION_SLOTS))
        if not question:
            raise InvalidInputError('pregunta', "Falta la pregunta")
        answer, origin = await answer_question(service, answering, question)
        logging.info(f"Answered voice question from {origin}")
        return build_voice_response(answer)

    if not isinstance(payload.pregunta, str) or not payload.pregunta.strip():
        raise InvalidInputError('pregunta', "Falta la pregunta")

    answer, origin = await answer_question(service, answering, payload.pregunta.strip())
    return {"respuesta": answer, "origen": origin}
