"""Request routing logic - determines CDN vs Tracking API."""

from dataclasses import dataclass

CDN = "CDN"
TRACKING_API = "Tracking API"

CDN_PREFIXES = ("/v1/projects", "/analytics.js/v1")
ATTRIBUTION_PREFIX = "/v1/attribution"


@dataclass(frozen=True)
class RouteDecision:
    """Routing decision for a request."""

    route: str
    is_attribution: bool = False


class RouteDecider:
    """Decide whether a request should go to the CDN or the Tracking API."""

    def decide(self, path: str) -> RouteDecision:
        """Return the route based on the request target (path and query)."""
        if self.is_cdn(path):
            return RouteDecision(route=CDN)
        return RouteDecision(route=TRACKING_API, is_attribution=self.is_attribution(path))

    @staticmethod
    def is_cdn(path: str) -> bool:
        return path.startswith(CDN_PREFIXES)

    @staticmethod
    def is_attribution(path: str) -> bool:
        return path.startswith(ATTRIBUTION_PREFIX)
