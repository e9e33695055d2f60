from dataclasses import dataclass
from functools import lru_cache

from bitbucket_notifier.adapters.outbound.bitbucket_adapter import BitbucketAdapter
from bitbucket_notifier.adapters.outbound.smtp_notifier import SmtpNotifier, resolve_smtp_endpoint
from bitbucket_notifier.adapters.outbound.yaml_template_repository import YamlTemplateRepository
from bitbucket_notifier.application.services.commit_fetcher import CommitFetcher
from bitbucket_notifier.application.services.commit_filter import CommitFilter
from bitbucket_notifier.application.services.diff_enricher import DiffEnricher
from bitbucket_notifier.application.services.digest_builder import DigestBuilder
from bitbucket_notifier.application.services.path_watcher import PathWatcher
from bitbucket_notifier.application.use_cases.check_repository import CheckRepositoryUseCase
from bitbucket_notifier.configuration.settings import Settings, build_settings


@dataclass(frozen=True)
class Container:
    settings: Settings
    bitbucket_adapter: BitbucketAdapter
    notifier: SmtpNotifier
    template_repo: YamlTemplateRepository
    check_repository_use_case: CheckRepositoryUseCase


def build_container_from_settings(settings: Settings) -> Container:
    bitbucket_adapter = BitbucketAdapter(
        repo_url=settings.repo_url,
        user=settings.bitbucket_user,
        password=settings.bitbucket_password,
        timeout=float(settings.http_timeout_seconds),
    )

    try:
        smtp_host, smtp_port = resolve_smtp_endpoint(
            settings.email_provider, settings.email_smtp_host, settings.email_smtp_port,
        )
    except ValueError as e:
        raise RuntimeError(str(e)) from e

    notifier = SmtpNotifier(
        host=smtp_host,
        port=smtp_port,
        user=settings.email_user,
        password=settings.email_password,
    )

    template_repo = YamlTemplateRepository(yaml_path=settings.template_yaml_path)

    # 파이프라인 구성: 조회 → 필터 → 보강 → 다이제스트
    fetcher = CommitFetcher(commit_source=bitbucket_adapter)
    commit_filter = CommitFilter(
        filter_date=settings.commits_filter_date,
        ignore_authors=settings.ignore_authors,
        ignore_messages=settings.ignore_messages,
    )
    enricher = DiffEnricher(
        commit_source=bitbucket_adapter,
        path_watcher=PathWatcher(settings.watch_list),
        include_diff=settings.include_diff,
        max_concurrency=settings.max_concurrent_requests,
        max_diff_chars=settings.max_diff_chars,
    )
    digest_builder = DigestBuilder(
        template_repo=template_repo,
        repo_desc=settings.repo_desc,
        recipient=settings.email_to,
        sender=settings.email_from,
    )

    check_repository_use_case = CheckRepositoryUseCase(
        fetcher=fetcher,
        commit_filter=commit_filter,
        enricher=enricher,
        digest_builder=digest_builder,
        notifier=notifier,
        pages=settings.commit_pages,
        exclude=list(settings.ignore_commits),
        run_timeout_seconds=settings.run_timeout_seconds,
    )

    return Container(
        settings=settings,
        bitbucket_adapter=bitbucket_adapter,
        notifier=notifier,
        template_repo=template_repo,
        check_repository_use_case=check_repository_use_case,
    )


@lru_cache(maxsize=1)
def build_container() -> Container:
    return build_container_from_settings(build_settings())


def clear_container() -> None:
    build_container.cache_clear()
