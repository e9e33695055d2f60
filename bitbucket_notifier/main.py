import argparse
import asyncio
import logging
import os
import sys
from datetime import datetime
from logging.handlers import RotatingFileHandler
from pathlib import Path

from bitbucket_notifier.adapters.inbound.scheduler import CronScheduler
from bitbucket_notifier.configuration.container import build_container
from bitbucket_notifier.domain.schedule import ScheduleSpec

logger = logging.getLogger(__name__)


def setup_logging(log_dir: Path | None = None) -> None:
    """로깅 설정: stderr와 파일 두 곳에 로그 출력"""
    log_dir = log_dir or Path(__file__).parent.parent / "logs"
    log_dir.mkdir(exist_ok=True)
    log_file = log_dir / "bitbucket-notifier.log"

    formatter = logging.Formatter(
        '%(asctime)s [%(name)s] %(levelname)s: %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )

    level_name = os.getenv("LOG_LEVEL", "INFO").upper()
    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, level_name, logging.INFO))

    # 1. stderr 핸들러
    stderr_handler = logging.StreamHandler(sys.stderr)
    stderr_handler.setFormatter(formatter)
    root_logger.addHandler(stderr_handler)

    # 2. 파일 핸들러 (최대 10MB, 5개 백업)
    file_handler = RotatingFileHandler(
        log_file,
        maxBytes=10 * 1024 * 1024,  # 10MB
        backupCount=5,
        encoding='utf-8'
    )
    file_handler.setFormatter(formatter)
    root_logger.addHandler(file_handler)


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Bitbucket 감시 경로 변경 알림")
    parser.add_argument(
        "--now", "-now",
        dest="run_now",
        action="store_true",
        help="스케줄러를 거치지 않고 즉시 1회 실행",
    )
    return parser.parse_args(argv)


async def main(run_now: bool = False) -> int:
    try:
        container = build_container()
    except RuntimeError as e:
        logger.critical("❌ 설정 오류로 시작할 수 없습니다: %s", str(e))
        return 1

    settings = container.settings
    logger.info("=" * 60)
    logger.info("저장소: %s (%s)", settings.repo_desc, settings.repo_url)
    logger.info("Watch list: %s", list(settings.watch_list))
    logger.info("필터 기준일: %s, 페이지: %d", settings.commits_filter_date, settings.commit_pages)

    use_case = container.check_repository_use_case

    if run_now:
        logger.info("스케줄러 우회: 즉시 실행")
        logger.info("=" * 60)
        report = await use_case.execute()
        return 1 if report.errors else 0

    try:
        spec = ScheduleSpec.parse(settings.schedule_date)
        spec.next_fire_after(datetime.now())
    except ValueError as e:
        logger.critical("❌ 스케줄 설정 오류: %s", str(e))
        return 1

    logger.info("스케줄 등록: %s", spec.describe())
    logger.info("=" * 60)

    scheduler = CronScheduler(spec, use_case.execute)
    await scheduler.run_forever()
    return 0


def run(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    setup_logging()
    try:
        return asyncio.run(main(run_now=args.run_now))
    except KeyboardInterrupt:
        logger.info("종료 요청 수신")
        return 0


if __name__ == "__main__":
    raise SystemExit(run())
