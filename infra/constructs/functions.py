import datetime

from aws_cdk import Duration
from aws_cdk import aws_dynamodb as dynamodb
from aws_cdk import aws_iam as iam
from aws_cdk import aws_lambda as _lambda
from aws_cdk import aws_sqs as sqs
from constructs import Construct

SERVICE_NAME = "journey-service"


class Functions(Construct):
    """Lambda 関数を管理する Construct

    予約・カタログ・通知サービスは別スタックで管理される Lambda 関数で、
    関数名だけを受け取って呼び出し権限を付与する。
    """

    def __init__(
        self,
        scope: Construct,
        id: str,
        table: dynamodb.Table,
        common_layer: _lambda.LayerVersion,
        notification_queue: sqs.Queue,
        booking_service_function: str,
        catalog_service_function: str,
        notification_service_function: str,
        booking_concurrency: int = 4,
    ) -> None:
        super().__init__(scope, id)

        self._environment = {
            "TABLE_NAME": table.table_name,
            "POWERTOOLS_SERVICE_NAME": SERVICE_NAME,
            "BOOKING_SERVICE_FUNCTION": booking_service_function,
            "CATALOG_SERVICE_FUNCTION": catalog_service_function,
            "NOTIFICATION_SERVICE_FUNCTION": notification_service_function,
            "NOTIFICATION_QUEUE_URL": notification_queue.queue_url,
            "BOOKING_CONCURRENCY": str(booking_concurrency),
            "DEPLOY_TIME": datetime.datetime.now(datetime.timezone.utc).isoformat(),
        }

        self.api = self._create_function(
            "JourneyApiLambda",
            "services.journey.handlers.api.lambda_handler",
            common_layer,
            timeout=Duration.seconds(29),
        )

        self.booking_cancelled = self._create_function(
            "BookingCancelledLambda",
            "services.journey.handlers.booking_cancelled.lambda_handler",
            common_layer,
        )

        self.notify_supplier = self._create_function(
            "NotifySupplierLambda",
            "services.journey.handlers.notify_supplier.lambda_handler",
            common_layer,
        )

        self.reconcile_sweep = self._create_function(
            "ReconcileSweepLambda",
            "services.journey.handlers.scheduled_sweep.reconcile_handler",
            common_layer,
            timeout=Duration.minutes(5),
        )

        self.archive_sweep = self._create_function(
            "ArchiveSweepLambda",
            "services.journey.handlers.scheduled_sweep.archive_handler",
            common_layer,
            timeout=Duration.minutes(5),
        )

        self.all_functions = [
            self.api,
            self.booking_cancelled,
            self.notify_supplier,
            self.reconcile_sweep,
            self.archive_sweep,
        ]

        for fn in self.all_functions:
            table.grant_read_write_data(fn)

        for fn in [self.api, self.booking_cancelled, self.reconcile_sweep]:
            self._grant_invoke(
                fn, [booking_service_function, catalog_service_function]
            )
        self._grant_invoke(self.notify_supplier, [notification_service_function])

        notification_queue.grant_send_messages(self.api)

    def _grant_invoke(self, fn: _lambda.Function, function_names: list[str]) -> None:
        fn.add_to_role_policy(
            iam.PolicyStatement(
                actions=["lambda:InvokeFunction"],
                resources=[
                    f"arn:aws:lambda:*:*:function:{name}" for name in function_names
                ],
            )
        )

    def _create_function(
        self,
        id: str,
        handler: str,
        common_layer: _lambda.LayerVersion,
        timeout: Duration = Duration.seconds(30),
    ) -> _lambda.Function:
        return _lambda.Function(
            self,
            id,
            runtime=_lambda.Runtime.PYTHON_3_14,
            handler=handler,
            code=_lambda.Code.from_asset("src"),
            layers=[common_layer],
            timeout=timeout,
            environment=self._environment,
        )
