from aws_cdk import RemovalPolicy
from aws_cdk import aws_dynamodb as dynamodb
from constructs import Construct


class Database(Construct):
    """DynamoDB Construct

    GSI1: ユーザー別の旅程一覧 (作成日時順)
    GSI2: 終了日時での旅程走査 (アーカイブ用)
    GSI3: 予約IDからのセグメント逆引き
    """

    def __init__(self, scope: Construct, id: str) -> None:
        super().__init__(scope, id)

        self.table = dynamodb.Table(
            self,
            "JourneyTable",
            partition_key=dynamodb.Attribute(
                name="PK", type=dynamodb.AttributeType.STRING
            ),
            sort_key=dynamodb.Attribute(name="SK", type=dynamodb.AttributeType.STRING),
            billing_mode=dynamodb.BillingMode.PAY_PER_REQUEST,
            removal_policy=RemovalPolicy.DESTROY,
        )

        for index in ("GSI1", "GSI2", "GSI3"):
            self.table.add_global_secondary_index(
                index_name=index,
                partition_key=dynamodb.Attribute(
                    name=f"{index}PK", type=dynamodb.AttributeType.STRING
                ),
                sort_key=dynamodb.Attribute(
                    name=f"{index}SK", type=dynamodb.AttributeType.STRING
                ),
            )
