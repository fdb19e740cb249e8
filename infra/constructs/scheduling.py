from aws_cdk import aws_events as events
from aws_cdk import aws_events_targets as targets
from aws_cdk import aws_lambda as _lambda
from constructs import Construct


class Scheduling(Construct):
    """定期実行ジョブを管理する Construct"""

    def __init__(
        self,
        scope: Construct,
        id: str,
        reconcile_sweep: _lambda.IFunction,
        archive_sweep: _lambda.IFunction,
    ) -> None:
        super().__init__(scope, id)

        # 予約状態とのずれを1時間ごとに補正する
        self.reconcile_rule = events.Rule(
            self,
            "ReconcileSweepSchedule",
            schedule=events.Schedule.cron(minute="0"),
        )
        self.reconcile_rule.add_target(targets.LambdaFunction(reconcile_sweep))

        # 終了済みの旅程を毎日 02:00 UTC に完了扱いにする
        self.archive_rule = events.Rule(
            self,
            "ArchiveSweepSchedule",
            schedule=events.Schedule.cron(minute="0", hour="2"),
        )
        self.archive_rule.add_target(targets.LambdaFunction(archive_sweep))
