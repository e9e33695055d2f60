from typing import Protocol

from bitbucket_notifier.domain.digest import DigestMessage


class NotifierPort(Protocol):
    """다이제스트 발송 계약"""

    async def send(self, message: DigestMessage) -> bool:
        """다이제스트를 발송합니다. 실패 시 예외 대신 False 를 반환합니다."""
        ...
