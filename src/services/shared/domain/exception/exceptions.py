class DomainException(Exception):
    """ドメイン層で発生する基底例外"""

    pass


class ResourceNotFoundException(DomainException):
    """リソースが見つからない場合"""

    pass


class AccessDeniedException(DomainException):
    """リソースの所有者以外がアクセスした場合"""

    pass


class BusinessRuleViolationException(DomainException):
    """ビジネスルールに違反した場合"""

    pass


class InvalidStateException(BusinessRuleViolationException):
    """現在のステータスでは許可されない操作の場合"""

    pass


class LimitExceededException(BusinessRuleViolationException):
    """件数上限に達している場合"""

    pass


class InvalidInputException(DomainException):
    """入力値が業務的に不正な場合"""

    pass


class DuplicateResourceException(DomainException):
    """リソースの重複エラー（条件付き書き込みの失敗時）"""

    pass


class OptimisticLockException(DomainException):
    """楽観ロックの競合エラー（バージョンが期待値と異なる場合）"""

    pass
