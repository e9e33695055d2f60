import logging
from collections.abc import Sequence
from datetime import datetime

import mistune
from jinja2 import BaseLoader, Environment, Undefined
from markupsafe import Markup

from bitbucket_notifier.application.ports.template_repository_port import TemplateRepositoryPort
from bitbucket_notifier.domain.commit import CommitSummary, format_long_date
from bitbucket_notifier.domain.digest import DigestMessage

logger = logging.getLogger(__name__)


class LoggingUndefined(Undefined):
    """미치환 변수 접근 시 경고 로그를 출력합니다."""
    def __str__(self) -> str:
        logger.warning("템플릿 미치환 변수: %s", self._undefined_name)
        return ""


class _MailRenderer(mistune.HTMLRenderer):
    """메일 본문용 마크다운 렌더러.

    커밋 헤더가 <b> 수준이므로 메시지 내 heading 은 h4 부터 시작합니다.
    """
    _MIN_HEADING = 4
    _MAX_HEADING = 6

    def heading(self, text: str, level: int, **attrs) -> str:
        target = min(max(level + 3, self._MIN_HEADING), self._MAX_HEADING)
        return f"<h{target}>{text}</h{target}>\n"


class DigestBuilder:
    """Jinja2 기반 다이제스트 메일 렌더러"""

    def __init__(
        self,
        template_repo: TemplateRepositoryPort,
        repo_desc: str,
        recipient: str,
        sender: str,
    ):
        self._repo = template_repo
        self.repo_desc = repo_desc
        self.recipient = recipient
        self.sender = sender
        self._env = Environment(
            loader=BaseLoader(),
            undefined=LoggingUndefined,
            autoescape=True,
            keep_trailing_newline=True,
        )
        self._md = mistune.create_markdown(
            renderer=_MailRenderer(escape=True),
            plugins=['strikethrough'],
        )

    def render_message_html(self, message: str) -> Markup:
        """커밋 메시지(마크다운)를 HTML 로 변환합니다."""
        if not message or not message.strip():
            return Markup("<p>(메시지 없음)</p>")
        return Markup(self._md(message.strip()).strip())

    def build(
        self,
        commits: Sequence[CommitSummary],
        generated_at: datetime | None = None,
    ) -> DigestMessage | None:
        """
        커밋 목록으로 다이제스트 메일을 만듭니다.

        Returns:
            DigestMessage. 커밋이 없으면 None (발송하지 않음)
        """
        if not commits:
            logger.info("다이제스트 대상 커밋 없음 → 발송 생략")
            return None

        template = self._repo.get_digest_template()
        generated_at = generated_at or datetime.now()

        variables = {
            "REPO_DESC": self.repo_desc,
            "GENERATED_AT": format_long_date(generated_at),
            "COMMITS": [
                {
                    "hash": c.hash,
                    "author": c.author,
                    "date": c.date,
                    "message_html": self.render_message_html(c.message),
                    "paths": list(c.paths),
                    "diff": c.diff_details,
                }
                for c in commits
            ],
        }

        subject = self._env.from_string(template.subject).render(**variables).strip()
        body = self._env.from_string(template.body).render(**variables)
        logger.info("다이제스트 렌더링 완료: 커밋=%d건, 길이=%d", len(commits), len(body))

        return DigestMessage(
            subject=subject,
            html_body=body,
            recipient=self.recipient,
            sender=self.sender,
            commit_count=len(commits),
        )
