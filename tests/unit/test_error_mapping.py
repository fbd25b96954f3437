import pytest
import json

from vortex_memory_server.memory.exceptions import (
    MemorySystemError, InvalidInputError, NotFoundError,
    StorageError, CorruptStoreError, UpstreamError, RateLimitedError
)
from vortex_memory_server.server.errors import ErrorCode, status_for, create_error_response


class TestStatusMapping:

    @pytest.mark.parametrize("error, expected", [
        (InvalidInputError('texto'), ErrorCode.BAD_REQUEST),
        (NotFoundError('vivo en madrid'), ErrorCode.NOT_FOUND),
        (CorruptStoreError('/tmp/x.json'), ErrorCode.INTERNAL_ERROR),
        (StorageError('save', '/tmp/x.json', 'disk full'), ErrorCode.INTERNAL_ERROR),
        (RateLimitedError('slow down', status_code=429), ErrorCode.SERVICE_UNAVAILABLE),
        (UpstreamError('unreachable'), ErrorCode.BAD_GATEWAY),
        (MemorySystemError('otro'), ErrorCode.INTERNAL_ERROR),
    ])
    def test_status_for(self, error, expected):
        assert status_for(error) == expected

    def test_invalid_input_default_message(self):
        error = InvalidInputError('texto')
        assert error.message == "Falta el campo 'texto'"
        assert error.details == {'field': 'texto'}

    def test_storage_error_message(self):
        error = StorageError('save', '/tmp/x.json', 'disk full')
        assert error.message == "Storage save error for '/tmp/x.json': disk full"


class TestErrorResponse:

    def test_body_and_status(self):
        response = create_error_response(ErrorCode.NOT_FOUND, "No se encontró el recuerdo a eliminar",
                                         data={'texto': 'x'}, log_error=False)

        assert response.status_code == 404
        assert json.loads(response.body) == {"error": "No se encontró el recuerdo a eliminar"}
