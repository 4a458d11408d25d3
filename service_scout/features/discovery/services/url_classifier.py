from typing import Optional
from urllib.parse import urlparse

from service_scout.features.discovery.exceptions import MalformedUrlError
from service_scout.features.discovery.schemas.discovery import ClassificationVerdict
from service_scout.features.discovery.schemas.heuristics import HeuristicConfig, load_heuristics
from service_scout.platform.logger import get_logger

logger = get_logger(__name__)


class UrlClassifier:
    """
    Pure URL heuristics deciding whether a link points at a different service.

    No I/O and no state beyond the heuristic lists, so the same inputs always
    give the same verdict.
    """

    @staticmethod
    def parse_hostname(url: str) -> str:
        """
        Return the lowercase hostname of url.

        Raises:
            MalformedUrlError: if url cannot be parsed or has no hostname
        """
        try:
            hostname = urlparse(url.strip()).hostname
        except (ValueError, AttributeError) as e:
            raise MalformedUrlError(str(url), str(e)) from e
        if not hostname:
            raise MalformedUrlError(str(url))
        return hostname.lower()

    @staticmethod
    def extract_domain(url: str) -> str:
        """Hostname of url, or "" when it cannot be parsed. Never raises."""
        try:
            return UrlClassifier.parse_hostname(url)
        except MalformedUrlError as e:
            logger.warning(f"Error parsing URL: {e}")
            return ""

    @staticmethod
    def _path(url: str) -> str:
        try:
            return urlparse(url.strip()).path.lower()
        except ValueError:
            return ""

    @staticmethod
    def should_exclude(url: str, heuristics: Optional[HeuristicConfig] = None) -> bool:
        """
        True for non-navigable schemes (mailto:, tel:) and for third-party
        platforms on the deny-list, including their subdomains.
        """
        heuristics = heuristics or load_heuristics()
        lowered = url.strip().lower()
        if any(lowered.startswith(f"{scheme}:") for scheme in heuristics.excluded_schemes):
            return True

        domain = UrlClassifier.extract_domain(url)
        if not domain:
            return False
        return any(
            domain == excluded or domain.endswith(f".{excluded}")
            for excluded in heuristics.excluded_domains
        )

    @staticmethod
    def is_internal_tool_path(path: str, heuristics: Optional[HeuristicConfig] = None) -> bool:
        """
        True if a path segment is an indicator or carries it hyphen-bounded.

        "/admin", "/admin-portal", "/new-admin" and "/my-admin-area" match
        "admin"; "/administrators" and "/blogapp" do not.
        """
        heuristics = heuristics or load_heuristics()
        segments = [segment for segment in path.lower().split("/") if segment]
        return any(
            segment == indicator
            or segment.startswith(f"{indicator}-")
            or segment.endswith(f"-{indicator}")
            or f"-{indicator}-" in segment
            for segment in segments
            for indicator in heuristics.internal_tool_indicators
        )

    @staticmethod
    def is_same_company(
        origin_domain: str,
        candidate_url: str,
        heuristics: Optional[HeuristicConfig] = None,
    ) -> bool:
        """Same hostname, a subdomain of it, or an internal-tool path on any host."""
        candidate_domain = UrlClassifier.extract_domain(candidate_url)
        origin_domain = origin_domain.lower()

        if candidate_domain and candidate_domain == origin_domain:
            return True
        if candidate_domain and candidate_domain.endswith(f".{origin_domain}"):
            return True

        return UrlClassifier.is_internal_tool_path(UrlClassifier._path(candidate_url), heuristics)

    @staticmethod
    def classify(
        origin_url: str,
        candidate_url: str,
        heuristics: Optional[HeuristicConfig] = None,
    ) -> ClassificationVerdict:
        """
        Decide what candidate_url is relative to the page it was found on.

        Args:
            origin_url: URL of the page being processed
            candidate_url: absolute URL found on that page
            heuristics: indicator lists (bundled defaults when omitted)

        Returns:
            ClassificationVerdict; only DIFFERENT_HOSTNAME and
            DIFFERENT_SERVICE_BY_PATH_INDICATOR count as new services
        """
        heuristics = heuristics or load_heuristics()

        if UrlClassifier.should_exclude(candidate_url, heuristics):
            return ClassificationVerdict.EXCLUDED

        candidate_domain = UrlClassifier.extract_domain(candidate_url)
        if not candidate_domain:
            return ClassificationVerdict.EXCLUDED

        if UrlClassifier.extract_domain(origin_url) != candidate_domain:
            return ClassificationVerdict.DIFFERENT_HOSTNAME

        candidate_path = UrlClassifier._path(candidate_url)
        if not UrlClassifier.is_internal_tool_path(candidate_path, heuristics):
            return ClassificationVerdict.SAME_ORIGIN_SUBPAGE

        # The site root is a prefix of everything, so it never makes a page a subpage
        raw_origin_path = UrlClassifier._path(origin_url)
        origin_path = raw_origin_path.rstrip("/")
        if origin_path and candidate_path.startswith(origin_path) and candidate_path != raw_origin_path:
            return ClassificationVerdict.SAME_ORIGIN_SUBPAGE

        return ClassificationVerdict.DIFFERENT_SERVICE_BY_PATH_INDICATOR

    @staticmethod
    def matches_brand(company_name: str, url: str) -> bool:
        """Coarse secondary signal: the company name appears somewhere in the URL."""
        brand = (company_name or "").strip().lower()
        if not brand:
            return False
        return brand in url.lower()
