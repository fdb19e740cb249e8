from aws_cdk import CfnOutput, Stack
from aws_cdk import aws_secretsmanager as secretsmanager
from constructs import Construct

from infra.constructs import (
    Api,
    Database,
    Deployment,
    Functions,
    Layers,
    Messaging,
    NotificationQueue,
    Observability,
    Scheduling,
)


class ServerlessJourneyStack(Stack):
    def __init__(
        self,
        scope: Construct,
        construct_id: str,
        enable_observability: bool = True,
        **kwargs,
    ) -> None:
        super().__init__(scope, construct_id, **kwargs)

        # 外部サービスの関数名は cdk.json / -c で差し替えられる
        booking_service_function = (
            self.node.try_get_context("bookingServiceFunction") or "booking-service"
        )
        catalog_service_function = (
            self.node.try_get_context("catalogServiceFunction") or "catalog-service"
        )
        notification_service_function = (
            self.node.try_get_context("notificationServiceFunction")
            or "notification-service"
        )

        database = Database(self, "Database")
        layers = Layers(self, "Layers")
        notification_queue = NotificationQueue(self, "NotificationQueue")

        fns = Functions(
            self,
            "Functions",
            table=database.table,
            common_layer=layers.common_layer,
            notification_queue=notification_queue.queue,
            booking_service_function=booking_service_function,
            catalog_service_function=catalog_service_function,
            notification_service_function=notification_service_function,
        )

        deployment = Deployment(
            self,
            "Deployment",
            api=fns.api,
            booking_cancelled=fns.booking_cancelled,
        )

        Messaging(
            self,
            "Messaging",
            notification_queue=notification_queue.queue,
            notify_supplier=fns.notify_supplier,
            booking_cancelled=deployment.booking_cancelled_alias,
        )

        Scheduling(
            self,
            "Scheduling",
            reconcile_sweep=fns.reconcile_sweep,
            archive_sweep=fns.archive_sweep,
        )

        auth_secret = secretsmanager.Secret(
            self,
            "AuthTokenSecret",
            secret_name="/serverless-journey/auth-token-secret",
            generate_secret_string=secretsmanager.SecretStringGenerator(
                exclude_punctuation=True,
                password_length=32,
            ),
        )

        api = Api(
            self,
            "Api",
            api_function=deployment.api_alias,
            auth_secret=auth_secret,
        )

        CfnOutput(self, "ApiUrl", value=api.rest_api.url)

        if enable_observability:
            Observability(
                self,
                "Observability",
                functions=fns.all_functions,
            )
