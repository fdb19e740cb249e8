from aws_lambda_powertools import Logger


def get_logger(service_name: str) -> Logger:
    """サービス名付きの構造化ロガーを返す

    同じ service 名の Logger は子ロガーとして handler 側の設定を共有する。
    """
    return Logger(service=service_name, child=True)
