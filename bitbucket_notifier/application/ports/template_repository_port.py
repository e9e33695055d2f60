from typing import Protocol

from bitbucket_notifier.domain.digest import DigestTemplate


class TemplateRepositoryPort(Protocol):
    """다이제스트 템플릿 저장소 계약"""

    def get_digest_template(self) -> DigestTemplate:
        """다이제스트 제목/본문 템플릿을 반환합니다."""
        ...

    def reload(self) -> None:
        """캐시를 무효화하고 설정 파일을 다시 로드합니다."""
        ...
