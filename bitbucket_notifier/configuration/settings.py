import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv


def _load_env() -> None:
    app_env = os.getenv("APP_ENV", "local")
    # 프로젝트 루트 디렉토리 찾기 (bitbucket_notifier/configuration/settings.py -> ../../)
    project_root = Path(__file__).parent.parent.parent
    env_file = project_root / f".env.{app_env}"
    load_dotenv(env_file)


def _split_list(raw: str | None) -> tuple[str, ...]:
    """콤마 구분 문자열을 공백 제거된 튜플로 변환합니다."""
    if not raw:
        return ()
    return tuple(item.strip() for item in raw.split(",") if item.strip())


def _int_env(name: str, default: int, minimum: int = 1) -> int:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        value = int(raw)
    except ValueError:
        raise RuntimeError(f"{name} 값이 숫자가 아닙니다: {raw}") from None
    if value < minimum:
        raise RuntimeError(f"{name} 값은 {minimum} 이상이어야 합니다: {value}")
    return value


def _bool_env(name: str, default: bool) -> bool:
    raw = os.getenv(name, "").strip().lower()
    if not raw:
        return default
    return raw in ("1", "true", "yes", "on")


@dataclass(frozen=True)
class Settings:
    app_env: str
    repo_url: str
    repo_desc: str
    bitbucket_user: str
    bitbucket_password: str
    commit_pages: int
    watch_list: tuple[str, ...]
    commits_filter_date: str            # "TODAY" 또는 YYYY-MM-DD
    ignore_commits: tuple[str, ...]     # commits API exclude 파라미터
    ignore_authors: tuple[str, ...]
    ignore_messages: tuple[str, ...]
    schedule_date: str                  # 예: minute:0,hour:9,dayOfWeek:1
    email_provider: str
    email_smtp_host: str
    email_smtp_port: int | None
    email_user: str
    email_password: str
    email_from: str
    email_to: str
    include_diff: bool
    max_diff_chars: int                 # diff 최대 문자수
    max_concurrent_requests: int
    run_timeout_seconds: int
    http_timeout_seconds: int
    template_yaml_path: str


def build_settings() -> Settings:
    _load_env()

    required_vars = (
        "BITBUCKET_REPO_URL", "BITBUCKET_USER", "BITBUCKET_PASS",
        "WATCH_LIST", "EMAIL_FROM", "EMAIL_TO",
    )
    missing = [k for k in required_vars if not os.getenv(k, "").strip()]
    if missing:
        raise RuntimeError(f"필수 환경 변수 누락: {', '.join(missing)}")

    watch_list = _split_list(os.getenv("WATCH_LIST"))
    if not watch_list:
        raise RuntimeError("WATCH_LIST 에 감시할 경로가 없습니다")

    project_root = Path(__file__).parent.parent.parent
    default_template_path = str(project_root / "config" / "digest_templates.yaml")

    smtp_port = os.getenv("EMAIL_SMTP_PORT", "").strip()

    return Settings(
        app_env=os.getenv("APP_ENV", "local"),
        repo_url=os.environ["BITBUCKET_REPO_URL"].strip(),
        repo_desc=os.getenv("BITBUCKET_REPO_DESC", "").strip() or os.environ["BITBUCKET_REPO_URL"].strip(),
        bitbucket_user=os.environ["BITBUCKET_USER"],
        bitbucket_password=os.environ["BITBUCKET_PASS"],
        commit_pages=_int_env("COMMIT_PAGES", 1),
        watch_list=watch_list,
        commits_filter_date=os.getenv("COMMITS_FILTER_DATE", "").strip() or "TODAY",
        ignore_commits=_split_list(os.getenv("IGNORE_COMMITS")),
        ignore_authors=_split_list(os.getenv("IGNORE_AUTHORS")),
        ignore_messages=_split_list(os.getenv("IGNORE_COMMITS_WITH_MESSAGES")),
        schedule_date=os.getenv("SCHEDULE_DATE", "").strip(),
        email_provider=os.getenv("EMAIL_PROVIDER", "gmail"),
        email_smtp_host=os.getenv("EMAIL_SMTP_HOST", "").strip(),
        email_smtp_port=_int_env("EMAIL_SMTP_PORT", 0) if smtp_port else None,
        email_user=os.getenv("EMAIL_USER", ""),
        email_password=os.getenv("EMAIL_PASS", ""),
        email_from=os.environ["EMAIL_FROM"].strip(),
        email_to=os.environ["EMAIL_TO"].strip(),
        include_diff=_bool_env("INCLUDE_DIFF", True),
        max_diff_chars=_int_env("MAX_DIFF_CHARS", 30000),
        max_concurrent_requests=_int_env("MAX_CONCURRENT_REQUESTS", 10),
        run_timeout_seconds=_int_env("RUN_TIMEOUT_SECONDS", 300),
        http_timeout_seconds=_int_env("HTTP_TIMEOUT_SECONDS", 30),
        template_yaml_path=os.getenv("TEMPLATE_YAML_PATH", default_template_path),
    )
