from datetime import datetime

from bitbucket_notifier.application.services.commit_filter import CommitFilter
from bitbucket_notifier.domain.commit import EnrichmentLevel, format_long_date

from fakes import raw_commit

NOW = datetime(2024, 1, 5, 12, 0)


def _filter(filter_date="TODAY", **kwargs) -> CommitFilter:
    return CommitFilter(filter_date=filter_date, now=lambda: NOW, **kwargs)


def test_today_keeps_only_same_calendar_day():
    commits = [
        raw_commit("a1", "2024-01-05T09:00:00"),
        raw_commit("b2", "2024-01-04T23:59:00"),
        raw_commit("c3", "2024-01-05T00:01:00"),
        raw_commit("d4", "2024-01-06T08:00:00"),
    ]

    result = _filter().filter(commits)

    assert [c.hash for c in result] == ["a1", "c3"]


def test_sentinel_is_case_insensitive():
    result = _filter("today").filter([raw_commit("a1", "2024-01-05T09:00:00")])

    assert [c.hash for c in result] == ["a1"]


def test_explicit_date_is_inclusive_lower_bound():
    commits = [
        raw_commit("old", "2024-01-02T10:00:00"),
        raw_commit("boundary", "2024-01-03T00:00:00"),
        raw_commit("newer", "2024-01-04T18:30:00"),
    ]

    result = _filter("2024-01-03").filter(commits)

    assert [c.hash for c in result] == ["boundary", "newer"]


def test_invalid_filter_date_returns_empty(caplog):
    result = _filter("next tuesday").filter([raw_commit("a1", "2024-01-05T09:00:00")])

    assert result == []
    assert "COMMITS_FILTER_DATE" in caplog.text


def test_filter_date_with_trailing_garbage_is_rejected(caplog):
    result = _filter("2024-01-05oops").filter([raw_commit("a1", "2024-01-05T09:00:00")])

    assert result == []
    assert "2024-01-05oops" in caplog.text


def test_unparseable_commit_date_is_dropped():
    commits = [raw_commit("bad", "yesterday-ish"), raw_commit("ok", "2024-01-05T09:00:00")]

    assert [c.hash for c in _filter().filter(commits)] == ["ok"]


def test_ignore_authors_is_case_insensitive_substring():
    commits = [
        raw_commit("a1", "2024-01-05T09:00:00", author="Jane DOE <jane@x.com>"),
        raw_commit("b2", "2024-01-05T10:00:00", author="Build Bot <ci@x.com>"),
        raw_commit("c3", "2024-01-05T11:00:00", author="Sam Lee <sam@x.com>"),
    ]

    result = _filter(ignore_authors=["jane", "BOT"]).filter(commits)

    assert [c.hash for c in result] == ["c3"]


def test_missing_author_is_not_excluded_and_projects_empty():
    commit = raw_commit("a1", "2024-01-05T09:00:00")
    commit["author"] = None

    result = _filter(ignore_authors=["jane"]).filter([commit])

    assert [c.author for c in result] == [""]


def test_ignore_messages_requires_exact_match():
    commits = [
        raw_commit("a1", "2024-01-05T09:00:00", message="Fix bug\n"),
        raw_commit("b2", "2024-01-05T10:00:00", message="Fix bug in parser\n"),
    ]

    assert [c.hash for c in _filter(ignore_messages=["Fix"]).filter(commits)] == ["a1", "b2"]
    assert [c.hash for c in _filter(ignore_messages=["Fix bug"]).filter(commits)] == ["b2"]


def test_ignore_messages_only_trims_trailing_newline():
    commits = [
        raw_commit("a1", "2024-01-05T09:00:00", message="Fix bug \n"),
        raw_commit("b2", "2024-01-05T10:00:00", message=" Fix bug"),
        raw_commit("c3", "2024-01-05T11:00:00", message="Fix bug\n\n"),
    ]

    assert [c.hash for c in _filter(ignore_messages=["Fix bug"]).filter(commits)] == ["a1", "b2"]


def test_projection_builds_summary_in_input_order():
    commits = [
        raw_commit("a1", "2024-01-05T20:30:00", author="Jane <jane@x.com>", message="First"),
        raw_commit("b2", "2024-01-05T08:05:00", author="Sam <sam@x.com>", message="Second"),
    ]

    result = _filter().filter(commits)

    assert [c.hash for c in result] == ["a1", "b2"]
    first = result[0]
    assert first.message == "First"
    assert first.author == "Jane <jane@x.com>"
    assert first.date == "January 5, 2024 8:30 PM"
    assert first.paths == ()
    assert first.level is EnrichmentLevel.SUMMARY_ONLY


def test_two_page_today_scenario():
    page1 = [raw_commit("p1a", "2024-01-05T11:00:00"), raw_commit("p1b", "2024-01-05T07:00:00")]
    page2 = [raw_commit("p2a", "2024-01-04T15:00:00"), raw_commit("p2b", "2024-01-04T09:00:00")]

    result = _filter().filter(page1 + page2)

    assert [c.hash for c in result] == ["p1a", "p1b"]


def test_format_long_date_midnight_and_noon():
    assert format_long_date(datetime(1986, 9, 4, 0, 7)) == "September 4, 1986 12:07 AM"
    assert format_long_date(datetime(1986, 9, 4, 12, 0)) == "September 4, 1986 12:00 PM"
