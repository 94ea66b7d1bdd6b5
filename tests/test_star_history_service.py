from datetime import datetime, timezone
from unittest.mock import MagicMock

import pytest

from conftest import FakeGitHubClient, star_events
from star_trends.application.star_history_service import StarHistoryService
from star_trends.domain.errors import RemoteFetchError
from star_trends.domain.models import RepositoryIdentity
from star_trends.infrastructure.cache import TTLCache
from star_trends.infrastructure.renderer import SvgRenderer

NOW = datetime(2024, 6, 1, tzinfo=timezone.utc)


def make_service(client, cache=None, renderer=None, max_workers=4):
    return StarHistoryService(client, cache or TTLCache(), renderer=renderer, max_workers=max_workers)


def test_list_repositories_concatenates_every_page():
    names = [f"repo{i}" for i in range(7)]
    client = FakeGitHubClient(repos={"octocat": names}, per_page=3)

    repos = make_service(client).list_repositories("octocat")

    assert repos[:3] == [RepositoryIdentity("octocat", n) for n in names[:3]]
    assert sorted(r.name for r in repos) == sorted(names)
    assert client.calls[("repos", "octocat", 1)] == 1


def test_list_stargazers_of_single_repository():
    client = FakeGitHubClient(stars={("octocat", "alpha"): star_events(9)}, per_page=2)
    events = make_service(client).list_stargazers("octocat", "alpha")
    assert sorted(events) == star_events(9)


def test_all_stargazers_are_merged_across_repositories(fake_client):
    fake_client.jitter = 0.02
    events = make_service(fake_client).list_all_stargazers("octocat")
    assert len(events) == 8
    assert sorted(events) == sorted(star_events(5) + star_events(3, start=100))


def test_user_without_repositories_has_no_stargazers():
    client = FakeGitHubClient(repos={"ghost": []})
    assert make_service(client).list_all_stargazers("ghost") == []


def test_one_failing_repository_aborts_the_whole_aggregation(fake_client):
    fake_client.failures.add(("gazers", "octocat", "beta", 2))
    with pytest.raises(RemoteFetchError, match="beta"):
        make_service(fake_client).list_all_stargazers("octocat")


def test_failure_listing_repositories_is_propagated(fake_client):
    fake_client.failures.add(("repos", "octocat", 1))
    with pytest.raises(RemoteFetchError):
        make_service(fake_client).list_all_stargazers("octocat")


def test_repeated_aggregation_is_served_from_cache(fake_client):
    service = make_service(fake_client)
    service.list_all_stargazers("octocat")
    first_calls = sum(fake_client.calls.values())

    service.list_all_stargazers("octocat")

    assert sum(fake_client.calls.values()) == first_calls
    assert all(count == 1 for count in fake_client.calls.values())


def test_failed_aggregation_leaves_cache_usable(fake_client):
    service = make_service(fake_client)
    fake_client.failures.add(("gazers", "octocat", "alpha", 3))
    with pytest.raises(RemoteFetchError):
        service.list_all_stargazers("octocat")

    fake_client.failures.clear()
    assert len(service.list_all_stargazers("octocat")) == 8


def test_star_series_for_repository_and_user(fake_client):
    service = make_service(fake_client)

    repo_series = service.star_series("octocat", "beta", now=NOW)
    user_series = service.star_series("octocat", now=NOW)

    assert [p.cumulative_count for p in repo_series] == [0, 1, 2]
    assert [p.cumulative_count for p in user_series] == list(range(8))
    assert user_series[-1].timestamp == star_events(3, start=100)[-1].starred_at


def test_render_stars_hands_the_series_to_the_renderer(fake_client):
    renderer = MagicMock(spec=SvgRenderer)
    renderer.render.return_value = b"<svg/>"

    svg = make_service(fake_client, renderer=renderer).render_stars("octocat", "alpha", now=NOW)

    assert svg == b"<svg/>"
    (series,), _ = renderer.render.call_args
    assert len(series) == 5
