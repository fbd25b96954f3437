from pydantic import BaseModel, ConfigDict
from typing import Dict, Any, Optional


class NewMemoryRequest(BaseModel):
    """POST /recuerdos body."""
    model_config = ConfigDict(extra='ignore')

    nuevoRecuerdo: Optional[Any] = None


class UpdateMemoryRequest(BaseModel):
    """PUT /recuerdos body."""
    model_config = ConfigDict(extra='ignore')

    textoViejo: Optional[Any] = None
    nuevoTexto: Optional[Any] = None


class DeleteMemoryRequest(BaseModel):
    """DELETE /recuerdos body."""
    model_config = ConfigDict(extra='ignore')

    texto: Optional[Any] = None


class DeduplicateRequest(BaseModel):
    """POST /recuerdos/deduplicar body."""
    model_config = ConfigDict(extra='ignore')

    dry_run: bool = False


class QuestionRequest(BaseModel):
    """POST /preguntar body: a plain question or a voice-assistant envelope."""
    model_config = ConfigDict(extra='ignore')

    pregunta: Optional[Any] = None
    version: Optional[str] = None
    session: Optional[Dict[str, Any]] = None
    request: Optional[Dict[str, Any]] = None

    @property
    def is_voice(self) -> bool:
        return self.request is not None
