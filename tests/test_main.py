from dataclasses import dataclass, field

import pytest

from bitbucket_notifier import main as main_module
from bitbucket_notifier.application.use_cases.check_repository import RunReport


@dataclass
class _Settings:
    schedule_date: str = ""
    repo_desc: str = "acme/api"
    repo_url: str = "https://api.bitbucket.example/2.0/repositories/acme/api/"
    watch_list: tuple = ("config",)
    commits_filter_date: str = "TODAY"
    commit_pages: int = 1


@dataclass
class _UseCase:
    report: RunReport = field(default_factory=RunReport)
    calls: int = 0

    async def execute(self) -> RunReport:
        self.calls += 1
        return self.report


@dataclass
class _Container:
    settings: _Settings
    check_repository_use_case: _UseCase


@pytest.fixture
def container(monkeypatch):
    built = _Container(settings=_Settings(), check_repository_use_case=_UseCase())
    monkeypatch.setattr(main_module, "build_container", lambda: built)
    return built


def test_parse_args_accepts_both_now_spellings():
    assert main_module.parse_args(["--now"]).run_now
    assert main_module.parse_args(["-now"]).run_now
    assert not main_module.parse_args([]).run_now


@pytest.mark.asyncio
async def test_run_now_executes_once(container):
    assert await main_module.main(run_now=True) == 0
    assert container.check_repository_use_case.calls == 1


@pytest.mark.asyncio
async def test_run_now_reports_failed_run(container):
    container.check_repository_use_case.report.errors.append("커밋 목록 조회 실패")

    assert await main_module.main(run_now=True) == 1


@pytest.mark.asyncio
@pytest.mark.parametrize("schedule", ["", "hour:99", "date:31,month:2"])
async def test_invalid_schedule_aborts_before_any_run(container, schedule):
    container.settings.schedule_date = schedule

    assert await main_module.main(run_now=False) == 1
    assert container.check_repository_use_case.calls == 0


@pytest.mark.asyncio
async def test_configuration_error_aborts_startup(monkeypatch):
    def _fail():
        raise RuntimeError("필수 환경 변수 누락: WATCH_LIST")

    monkeypatch.setattr(main_module, "build_container", _fail)

    assert await main_module.main(run_now=True) == 1


def test_setup_logging_writes_rotating_file(tmp_path):
    import logging
    from logging.handlers import RotatingFileHandler

    root = logging.getLogger()
    before = list(root.handlers)
    try:
        main_module.setup_logging(log_dir=tmp_path)
        added = [h for h in root.handlers if h not in before]
        assert any(isinstance(h, RotatingFileHandler) for h in added)
        assert (tmp_path / "bitbucket-notifier.log").exists()
    finally:
        for handler in root.handlers[:]:
            if handler not in before:
                root.removeHandler(handler)
                handler.close()
