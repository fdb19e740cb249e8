from aws_cdk import Duration
from aws_cdk import aws_apigateway as apigw
from aws_cdk import aws_lambda as _lambda
from aws_cdk import aws_secretsmanager as secretsmanager
from constructs import Construct


class Api(Construct):
    """API Gateway Construct

    全ルートを Lambda プロキシ統合で api 関数に流し、ルーティングは
    関数内の APIGatewayRestResolver が担う。
    """

    def __init__(
        self,
        scope: Construct,
        id: str,
        api_function: _lambda.IFunction,
        auth_secret: secretsmanager.ISecret,
    ) -> None:
        super().__init__(scope, id)

        # Lambda Authorizer: Bearer トークンの署名を検証してユーザーIDを渡す
        authorizer_fn = _lambda.Function(
            self,
            "TokenAuthorizerFn",
            runtime=_lambda.Runtime.PYTHON_3_14,
            handler="authorizer.handler.lambda_handler",
            code=_lambda.Code.from_asset("src"),
            environment={
                "AUTH_SECRET_ARN": auth_secret.secret_arn,
            },
        )
        auth_secret.grant_read(authorizer_fn)

        authorizer = apigw.TokenAuthorizer(
            self,
            "TokenAuthorizer",
            handler=authorizer_fn,
            identity_source=apigw.IdentitySource.header("Authorization"),
            results_cache_ttl=Duration.seconds(300),
        )

        self.rest_api = apigw.LambdaRestApi(
            self,
            "JourneyRestApi",
            rest_api_name="Journey Planning API",
            handler=api_function,
            proxy=True,
            default_method_options=apigw.MethodOptions(authorizer=authorizer),
            deploy_options=apigw.StageOptions(
                stage_name="prod",
                throttling_burst_limit=10,
                throttling_rate_limit=5,
            ),
        )
