from aws_cdk import Duration
from aws_cdk import aws_cloudwatch as cloudwatch
from aws_cdk import aws_codedeploy as codedeploy
from aws_cdk import aws_lambda as _lambda
from constructs import Construct


class Deployment(Construct):
    """Prod エイリアスへの段階的デプロイを管理する Construct

    - API: 利用者が同期で待つため、エラー率に加えて p99 レイテンシでもロールバックする
    - 予約取消イベント: EventBridge のリトライがあるため線形に切り替える
    """

    def __init__(
        self,
        scope: Construct,
        id: str,
        api: _lambda.Function,
        booking_cancelled: _lambda.Function,
    ) -> None:
        super().__init__(scope, id)

        self.api_alias = self._deploy(
            "JourneyApi",
            api,
            codedeploy.LambdaDeploymentConfig.CANARY_10_PERCENT_5_MINUTES,
            extra_alarms=[self._latency_alarm("JourneyApi", api, Duration.seconds(10))],
        )
        self.booking_cancelled_alias = self._deploy(
            "BookingCancelled",
            booking_cancelled,
            codedeploy.LambdaDeploymentConfig.LINEAR_10_PERCENT_EVERY_1_MINUTE,
        )

    def _deploy(
        self,
        name: str,
        fn: _lambda.Function,
        config: codedeploy.ILambdaDeploymentConfig,
        extra_alarms: list[cloudwatch.IAlarm] | None = None,
    ) -> _lambda.Alias:
        alias = _lambda.Alias(
            self,
            f"{name}Alias",
            alias_name="Prod",
            version=fn.current_version,
        )

        codedeploy.LambdaDeploymentGroup(
            self,
            f"{name}DeploymentGroup",
            alias=alias,
            deployment_config=config,
            alarms=[self._error_rate_alarm(name, fn), *(extra_alarms or [])],
        )
        return alias

    def _error_rate_alarm(self, name: str, fn: _lambda.Function) -> cloudwatch.Alarm:
        error_rate = cloudwatch.MathExpression(
            expression="100 * errors / MAX([errors, invocations])",
            using_metrics={
                "errors": fn.metric_errors(statistic="Sum"),
                "invocations": fn.metric_invocations(statistic="Sum"),
            },
            label=f"{name} error rate (%)",
            period=Duration.minutes(1),
        )
        return cloudwatch.Alarm(
            self,
            f"{name}ErrorRateAlarm",
            metric=error_rate,
            threshold=5,
            evaluation_periods=2,
            comparison_operator=cloudwatch.ComparisonOperator.GREATER_THAN_OR_EQUAL_TO_THRESHOLD,
            treat_missing_data=cloudwatch.TreatMissingData.NOT_BREACHING,
        )

    def _latency_alarm(
        self, name: str, fn: _lambda.Function, limit: Duration
    ) -> cloudwatch.Alarm:
        return cloudwatch.Alarm(
            self,
            f"{name}LatencyAlarm",
            metric=fn.metric_duration(statistic="p99", period=Duration.minutes(1)),
            threshold=limit.to_milliseconds(),
            evaluation_periods=3,
            comparison_operator=cloudwatch.ComparisonOperator.GREATER_THAN_THRESHOLD,
            treat_missing_data=cloudwatch.TreatMissingData.NOT_BREACHING,
        )
