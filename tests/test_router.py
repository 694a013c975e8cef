import pytest

from core.router import CDN, TRACKING_API, RouteDecider


@pytest.fixture
def decider():
    return RouteDecider()


@pytest.mark.parametrize(
    "path",
    [
        "/v1/projects",
        "/v1/projects/abc/settings",
        "/v1/projects/abc/settings?x=1",
        "/analytics.js/v1",
        "/analytics.js/v1/WRITE_KEY/analytics.min.js",
    ],
)
def test_cdn_prefixes_route_to_cdn(decider, path):
    decision = decider.decide(path)
    assert decision.route == CDN
    assert decision.is_attribution is False


@pytest.mark.parametrize(
    "path",
    [
        "/v1/track",
        "/v1/batch",
        "/v1/import?x=1",
        "/analytics.js/v2/key",
        "/V1/projects",
        "/prefix/v1/projects",
        "/",
    ],
)
def test_other_paths_route_to_tracking_api(decider, path):
    assert decider.decide(path).route == TRACKING_API


@pytest.mark.parametrize("path", ["", "v1/projects", "?/v1/projects", "*"])
def test_empty_or_malformed_paths_fall_through_to_tracking_api(decider, path):
    assert decider.decide(path).route == TRACKING_API


def test_attribution_is_flagged_but_still_tracking_api(decider):
    decision = decider.decide("/v1/attribution/report?src=ios")
    assert decision.route == TRACKING_API
    assert decision.is_attribution is True


def test_non_attribution_tracking_request_is_not_flagged(decider):
    assert decider.decide("/v1/track").is_attribution is False
