import hashlib
import hmac
import logging
import os

import boto3

logger = logging.getLogger()
logger.setLevel(logging.INFO)

_secret_cache: str | None = None


def _get_secret() -> str:
    global _secret_cache
    if _secret_cache is None:
        client = boto3.client("secretsmanager")
        response = client.get_secret_value(SecretId=os.environ["AUTH_SECRET_ARN"])
        _secret_cache = response["SecretString"]
    return _secret_cache


def sign(user_id: str, secret: str) -> str:
    return hmac.new(
        secret.encode("utf-8"), user_id.encode("utf-8"), hashlib.sha256
    ).hexdigest()


def verify_token(token: str, secret: str) -> str | None:
    """`Bearer <userId>.<署名>` を検証し、正しければユーザーIDを返す"""
    scheme, _, credentials = token.partition(" ")
    if scheme.lower() != "bearer" or not credentials:
        return None
    user_id, _, signature = credentials.rpartition(".")
    if not user_id or not signature:
        return None
    if not hmac.compare_digest(signature, sign(user_id, secret)):
        return None
    return user_id


def lambda_handler(event, context):
    user_id = verify_token(event.get("authorizationToken", ""), _get_secret())
    if user_id is None:
        logger.info("Rejected request with invalid token")
        raise Exception("Unauthorized")

    method_arn = event["methodArn"]
    arn_parts = method_arn.split(":")
    region = arn_parts[3]
    account_id = arn_parts[4]
    api_gw_arn = arn_parts[5]
    rest_api_id = api_gw_arn.split("/")[0]
    stage = api_gw_arn.split("/")[1]
    resource_arn = (
        f"arn:aws:execute-api:{region}:{account_id}:{rest_api_id}/{stage}/*/*"
    )

    return {
        "principalId": user_id,
        "policyDocument": {
            "Version": "2012-10-17",
            "Statement": [
                {
                    "Action": "execute-api:Invoke",
                    "Effect": "Allow",
                    "Resource": resource_arn,
                }
            ],
        },
        "context": {"userId": user_id},
    }
