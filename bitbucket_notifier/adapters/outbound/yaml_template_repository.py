import logging
from pathlib import Path

import yaml

from bitbucket_notifier.domain.digest import DigestTemplate

logger = logging.getLogger(__name__)

DEFAULT_SUBJECT = "Bitbucket changes for {{ REPO_DESC }}"

DEFAULT_BODY = """\
{% for commit in COMMITS %}
<b>Commit:</b> {{ commit.hash }}<br/>
<b>Author:</b> {{ commit.author }}<br/>
<b>Date:</b> {{ commit.date }}<br/>
<b>Message:</b><br/>
{{ commit.message_html }}<br/>
<b>Changes:</b><br/>
<table>{% for path in commit.paths %}<tr><td>{{ path }}</td></tr>{% endfor %}</table>
<br/>
{% if commit.diff %}<pre>{{ commit.diff }}</pre>
<br/>
{% endif %}<hr>
{% endfor %}
<h5>Sent by Bitbucket-Repo-Notifier | {{ GENERATED_AT }}</h5>
"""


class YamlTemplateRepository:
    """YAML 파일 기반 다이제스트 템플릿 저장소 (mtime 캐시)"""

    def __init__(self, yaml_path: str | Path):
        self._path = Path(yaml_path)
        self._cache: dict | None = None
        self._cache_mtime: float = 0.0

    def _ensure_loaded(self) -> dict:
        """파일이 변경되었으면 다시 로드합니다."""
        try:
            current_mtime = self._path.stat().st_mtime
        except FileNotFoundError:
            raise FileNotFoundError(
                f"템플릿 YAML 파일을 찾을 수 없습니다: {self._path}"
            )

        if self._cache is None or current_mtime > self._cache_mtime:
            logger.info("YAML 템플릿 로드: %s", self._path)
            with open(self._path, "r", encoding="utf-8") as f:
                self._cache = yaml.safe_load(f) or {}
            self._cache_mtime = current_mtime

        return self._cache

    def get_digest_template(self) -> DigestTemplate:
        data = self._ensure_loaded()
        digest = data.get("digest") or {}
        if not digest:
            logger.info("digest 섹션 없음 → 기본 템플릿 사용")
        return DigestTemplate(
            subject=digest.get("subject", DEFAULT_SUBJECT),
            body=digest.get("body", DEFAULT_BODY),
            description=digest.get("description", ""),
        )

    def reload(self) -> None:
        """캐시를 강제로 무효화합니다."""
        logger.info("템플릿 캐시 강제 무효화")
        self._cache = None
        self._cache_mtime = 0.0
