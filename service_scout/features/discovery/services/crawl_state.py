from typing import Dict, Iterable, List

from service_scout.features.discovery.schemas.discovery import (
    ServiceDiscoveryRecord,
    StartUrlChildrenRecord,
)


class CrawlState:
    """
    Per-run registries keyed by seed URL.

    Each registry is an insertion-ordered set (a dict with None values).
    Not thread-safe: only the single crawl worker may touch it.
    """

    def __init__(self):
        self.explored_urls: Dict[str, Dict[str, None]] = {}
        self.discovered_services: Dict[str, Dict[str, None]] = {}
        self.child_url_registry: Dict[str, Dict[str, None]] = {}

    def register_seed(self, seed_url: str) -> None:
        for registry in (self.explored_urls, self.discovered_services, self.child_url_registry):
            registry.setdefault(seed_url, {})

    def record_explored(self, seed_url: str, url: str) -> bool:
        return self._add(self.explored_urls, seed_url, url)

    def record_discovered(self, seed_url: str, url: str) -> bool:
        """Add url as a distinct service of seed_url. The seed itself is never added."""
        if url == seed_url:
            return False
        return self._add(self.discovered_services, seed_url, url)

    def record_child(self, seed_url: str, url: str) -> bool:
        return self._add(self.child_url_registry, seed_url, url)

    def explored(self, seed_url: str) -> List[str]:
        return list(self.explored_urls.get(seed_url, {}))

    def discovered(self, seed_url: str) -> List[str]:
        return list(self.discovered_services.get(seed_url, {}))

    def children(self, seed_url: str) -> List[str]:
        return list(self.child_url_registry.get(seed_url, {}))

    def to_records(self, seed_urls: Iterable[str]) -> List[ServiceDiscoveryRecord]:
        return [
            ServiceDiscoveryRecord(
                url=seed_url,
                potential_different_services=self.discovered(seed_url),
                all_explored_urls=self.explored(seed_url),
            )
            for seed_url in seed_urls
        ]

    def start_url_children(self) -> StartUrlChildrenRecord:
        return StartUrlChildrenRecord(
            start_url_children={seed_url: self.children(seed_url) for seed_url in self.child_url_registry}
        )

    @staticmethod
    def _add(registry: Dict[str, Dict[str, None]], seed_url: str, url: str) -> bool:
        urls = registry.setdefault(seed_url, {})
        if url in urls:
            return False
        urls[url] = None
        return True
