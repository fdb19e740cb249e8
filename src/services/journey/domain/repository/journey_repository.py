from abc import abstractmethod
from collections.abc import Iterator
from datetime import datetime
from typing import Optional

from services.journey.domain.entity import Journey
from services.journey.domain.enum import JourneyStatus
from services.journey.domain.value_object import JourneyId
from services.shared.domain import Repository


class JourneyRepository(Repository[Journey, JourneyId]):
    """ジャーニーレポジトリ"""

    @abstractmethod
    def save(self, journey: Journey) -> None:
        """新規に永続化する"""
        raise NotImplementedError

    @abstractmethod
    def save_if_below_limit(
        self, journey: Journey, statuses: set[JourneyStatus], limit: int
    ) -> bool:
        """同じユーザーの statuses のジャーニーが limit 件未満なら新規に永続化する

        件数の確認から保存までの間に、同じユーザーの別の作成は割り込めない。

        Returns:
            bool: 保存した場合 True、上限に達していた場合 False

        Raises:
            OptimisticLockException: 同じユーザーのジャーニー作成と競合した場合
        """
        raise NotImplementedError

    @abstractmethod
    def find_by_id(self, journey_id: JourneyId) -> Optional[Journey]:
        """ジャーニーIDで検索"""
        raise NotImplementedError

    @abstractmethod
    def find_by_user_id(
        self, user_id: str, page: int = 1, limit: int = 20
    ) -> list[Journey]:
        """ユーザーのジャーニーを作成日時の新しい順に返す"""
        raise NotImplementedError

    @abstractmethod
    def count_by_user_id_and_status(
        self, user_id: str, statuses: set[JourneyStatus]
    ) -> int:
        """指定ステータスのジャーニー件数"""
        raise NotImplementedError

    @abstractmethod
    def update(self, journey: Journey) -> None:
        """version を条件に更新し、成功したら version を進める

        Raises:
            OptimisticLockException: 他のリクエストが先に更新していた場合
        """
        raise NotImplementedError

    @abstractmethod
    def delete(self, journey: Journey) -> None:
        """version を条件にジャーニーと配下のセグメントを削除する

        Raises:
            OptimisticLockException: 他のリクエストが先に更新していた場合
        """
        raise NotImplementedError

    @abstractmethod
    def iter_user_ids(self) -> Iterator[str]:
        """ジャーニーを持つユーザーIDを列挙する（定期スイープ用）"""
        raise NotImplementedError

    @abstractmethod
    def find_ending_before(
        self, moment: datetime, status: JourneyStatus
    ) -> Iterator[Journey]:
        """終了日時が moment より前のジャーニーを列挙する（アーカイブ用）"""
        raise NotImplementedError
