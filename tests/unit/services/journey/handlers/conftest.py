import json
from dataclasses import dataclass

import pytest


@dataclass
class FakeLambdaContext:
    function_name: str = "journey-api"
    memory_limit_in_mb: int = 512
    invoked_function_arn: str = (
        "arn:aws:lambda:eu-central-1:123456789012:function:journey-api"
    )
    aws_request_id: str = "5b5d4b6e-2f5c-4a8a-9d0e-2b3c4d5e6f70"


@pytest.fixture
def lambda_context():
    return FakeLambdaContext()


@pytest.fixture
def api_event():
    """API Gateway（REST, Lambda プロキシ統合）のイベントを生成する Factory fixture"""

    def _factory(
        method: str,
        path: str,
        body: dict | None = None,
        query: dict | None = None,
        user_id: str | None = "user-1",
    ) -> dict:
        authorizer = {"userId": user_id, "principalId": user_id} if user_id else None
        return {
            "resource": "/{proxy+}",
            "path": path,
            "httpMethod": method,
            "headers": {"Content-Type": "application/json"},
            "multiValueHeaders": {"Content-Type": ["application/json"]},
            "queryStringParameters": query,
            "multiValueQueryStringParameters": (
                {k: [v] for k, v in query.items()} if query else None
            ),
            "pathParameters": {"proxy": path.lstrip("/")},
            "stageVariables": None,
            "requestContext": {
                "resourcePath": "/{proxy+}",
                "httpMethod": method,
                "path": f"/prod{path}",
                "stage": "prod",
                "requestId": "c6af9ac6-7b61-11e6-9a41-93e8deadbeef",
                "authorizer": authorizer,
            },
            "body": json.dumps(body) if body is not None else None,
            "isBase64Encoded": False,
        }

    return _factory
