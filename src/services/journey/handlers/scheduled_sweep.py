from aws_lambda_powertools import Logger
from aws_lambda_powertools.utilities.typing import LambdaContext

from services.journey.handlers.dependencies import get_facade

logger = Logger()


@logger.inject_lambda_context
def reconcile_handler(event: dict, context: LambdaContext) -> dict:
    """ステータス再計算スイープ（EventBridge スケジュールから起動）"""
    result = get_facade().reconcile_all_journeys()
    return {
        "processed": result.processed,
        "updated": result.updated,
        "failed": result.failed,
    }


@logger.inject_lambda_context
def archive_handler(event: dict, context: LambdaContext) -> dict:
    """終了したジャーニーのアーカイブ（毎日 2:00 UTC）"""
    result = get_facade().archive_past_journeys()
    return {
        "processed": result.processed,
        "archived": result.updated,
        "failed": result.failed,
    }
