import io
import json
from unittest.mock import MagicMock

import pytest

from services.shared.utils import invoke_function
from services.shared.utils.lambda_invoke import RemoteInvocationException


def _response(body, function_error: str | None = None) -> dict:
    response = {"Payload": io.BytesIO(json.dumps(body).encode("utf-8"))}
    if function_error:
        response["FunctionError"] = function_error
    return response


class TestInvokeFunction:
    def test_returns_decoded_payload(self):
        client = MagicMock()
        client.invoke.return_value = _response({"id": "bkg-1"})

        result = invoke_function(client, "booking-service", {"action": "getBookings"})

        assert result == {"id": "bkg-1"}
        kwargs = client.invoke.call_args.kwargs
        assert kwargs["FunctionName"] == "booking-service"
        assert kwargs["InvocationType"] == "RequestResponse"
        assert json.loads(kwargs["Payload"]) == {"action": "getBookings"}

    def test_function_error_raises(self):
        client = MagicMock()
        client.invoke.return_value = _response(
            {"errorMessage": "Supplier unavailable"}, function_error="Unhandled"
        )

        with pytest.raises(RemoteInvocationException, match="Supplier unavailable"):
            invoke_function(client, "booking-service", {})

    def test_empty_payload_returns_none(self):
        client = MagicMock()
        client.invoke.return_value = {"Payload": io.BytesIO(b"")}

        assert invoke_function(client, "catalog-service", {}) is None
