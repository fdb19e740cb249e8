import json
from typing import Any

import boto3

from services.shared.domain.exception import DomainException


class RemoteInvocationException(DomainException):
    """連携先 Lambda の呼び出しに失敗した場合"""

    pass


def invoke_function(client: Any, function_name: str, payload: dict) -> Any:
    """Lambda を同期呼び出しし、JSON レスポンスを返す

    連携先が FunctionError を返した場合は RemoteInvocationException を送出する。
    """
    response = client.invoke(
        FunctionName=function_name,
        InvocationType="RequestResponse",
        Payload=json.dumps(payload, default=str).encode("utf-8"),
    )
    body = response["Payload"].read()
    result = json.loads(body) if body else None

    if response.get("FunctionError"):
        message = result.get("errorMessage") if isinstance(result, dict) else body
        raise RemoteInvocationException(
            f"{function_name} failed: {message}"
        )
    return result


def lambda_client() -> Any:
    return boto3.client("lambda")
