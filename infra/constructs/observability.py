from aws_cdk import CfnStack, RemovalPolicy, SecretValue
from aws_cdk import aws_lambda as _lambda
from aws_cdk import aws_secretsmanager as secretsmanager
from constructs import Construct
from datadog_cdk_constructs_v2 import DatadogLambda

DATADOG_SITE = "datadoghq.com"
FORWARDER_TEMPLATE_URL = (
    "https://datadog-cloudformation-template.s3.amazonaws.com/aws/forwarder/latest.yaml"
)


class Observability(Construct):
    """旅程サービスの Lambda を Datadog で計装する Construct

    API Key は SSM Parameter Store (SecureString) に手動で登録しておく。
    リクエスト/レスポンスのペイロードには利用者の旅程が含まれるためトレースに載せない。
    """

    def __init__(
        self,
        scope: Construct,
        id: str,
        functions: list[_lambda.IFunction],
        api_key_parameter: str = "/serverless-journey/datadog-api-key",
        service_name: str = "journey-service",
        env: str = "dev",
        version: str = "0.1.0",
    ) -> None:
        super().__init__(scope, id)

        self.api_key_secret = secretsmanager.Secret(
            self,
            "DatadogApiKeySecret",
            secret_string_value=SecretValue.ssm_secure(api_key_parameter),
            removal_policy=RemovalPolicy.DESTROY,
        )

        # ログ転送用の Forwarder は公式テンプレートを入れ子スタックで配置する
        self.forwarder_stack = CfnStack(
            self,
            "DatadogForwarder",
            template_url=FORWARDER_TEMPLATE_URL,
            parameters={
                "DdApiKeySecretArn": self.api_key_secret.secret_arn,
                "DdSite": DATADOG_SITE,
                "FunctionName": f"{service_name}-datadog-forwarder",
            },
        )

        instrumentation = DatadogLambda(
            self,
            "DatadogLambda",
            python_layer_version=122,
            extension_layer_version=92,
            api_key_secret_arn=self.api_key_secret.secret_arn,
            enable_datadog_tracing=True,
            enable_datadog_logs=True,
            capture_lambda_payload=False,
            site=DATADOG_SITE,
            service=service_name,
            env=env,
            version=version,
            tags="bounded_context:journey",
        )
        instrumentation.add_lambda_functions(functions)
