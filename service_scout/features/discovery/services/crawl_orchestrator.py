"""
Crawl Orchestrator

Drives each crawl request through a fixed sequence of states:

    queued -> loading -> probing -> extracting_links -> classifying -> enqueuing -> done

A request that cannot be loaded moves to the absorbing failed state and is
abandoned. Requests are processed one at a time by a single worker, which
is what keeps CrawlState and the frontier safe without locks and lets a
click be matched to the window it opened.
"""
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Sequence, Tuple

from selenium.common.exceptions import WebDriverException

from service_scout.features.discovery.exceptions import NavigationError
from service_scout.features.discovery.schemas.discovery import (
    ClassificationVerdict,
    CrawlRequest,
    LinkTarget,
    ProbeResult,
    RequestLabel,
    SeedTarget,
    ServiceDiscoveryRecord,
    StepResult,
)
from service_scout.features.discovery.schemas.heuristics import HeuristicConfig, load_heuristics
from service_scout.features.discovery.services.crawl_state import CrawlState
from service_scout.features.discovery.services.frontier import RequestFrontier
from service_scout.features.discovery.services.interaction_prober import InteractionProber
from service_scout.features.discovery.services.page_automation import PageAutomation, RenderedPage
from service_scout.features.discovery.services.result_sink import ResultSink
from service_scout.features.discovery.services.url_classifier import UrlClassifier
from service_scout.platform.config import settings
from service_scout.platform.logger import get_logger

logger = get_logger(__name__)

_IGNORED_HREF_PREFIXES = ("#", "javascript:")


class RequestState(str, Enum):
    QUEUED = "queued"
    LOADING = "loading"
    PROBING = "probing"
    EXTRACTING_LINKS = "extracting_links"
    CLASSIFYING = "classifying"
    ENQUEUING = "enqueuing"
    DONE = "done"
    FAILED = "failed"


@dataclass
class RequestOutcome:
    request: CrawlRequest
    state: RequestState
    error: Optional[str] = None


class CrawlOrchestrator:
    """Runs service discovery for a batch of seeds against one browser."""

    def __init__(
        self,
        automation: PageAutomation,
        sink: Optional[ResultSink] = None,
        heuristics: Optional[HeuristicConfig] = None,
        max_requests: int = settings.MAX_REQUESTS_PER_CRAWL,
        prober: Optional[InteractionProber] = None,
    ):
        self.automation = automation
        self.sink = sink
        self.heuristics = heuristics or load_heuristics()
        self.max_requests = max_requests
        self.prober = prober or InteractionProber(automation, self.heuristics)

    @staticmethod
    def seed_request(seed: SeedTarget) -> CrawlRequest:
        return CrawlRequest(
            url=seed.url,
            label=RequestLabel.SEED,
            origin_domain=UrlClassifier.extract_domain(seed.url),
            company_name=seed.name.lower(),
            seed_url=seed.url,
        )

    def run(self, seeds: Sequence[SeedTarget]) -> List[ServiceDiscoveryRecord]:
        """
        Crawl every seed, one after the other, under a shared request budget.

        Returns:
            One ServiceDiscoveryRecord per seed, in input order. The records and
            the start-URL children map are also pushed to the sink.
        """
        state = CrawlState()
        frontier = RequestFrontier(self.max_requests)
        for seed in seeds:
            state.register_seed(seed.url)

        for seed in seeds:
            if not frontier.add(self.seed_request(seed)):
                logger.warning(f"Skipping seed {seed.url} for {seed.name}: duplicate or budget exhausted")
                continue

            request = frontier.pop()
            while request is not None:
                self.process_request(request, state, frontier)
                request = frontier.pop()

        records = state.to_records(seed.url for seed in seeds)
        if self.sink is not None:
            self.sink.push([*records, state.start_url_children()])
        return records

    def process_request(
        self,
        request: CrawlRequest,
        state: CrawlState,
        frontier: RequestFrontier,
    ) -> RequestOutcome:
        logger.info(f"Processing {request.url} with label {request.label.value}")

        self._transition(request, RequestState.LOADING)
        loaded = self._load(request.url)
        if not loaded.ok:
            logger.error(f"Request to {request.url} failed: {loaded.error}")
            self._transition(request, RequestState.FAILED)
            return RequestOutcome(request, RequestState.FAILED, loaded.error)
        page: RenderedPage = loaded.value

        self._transition(request, RequestState.PROBING)
        probed = self._probe(page)
        if probed.ok:
            for result in probed.value:
                self._record_probe_result(request, result, state, frontier)
        else:
            logger.warning(f"Interaction probing aborted on {request.url}: {probed.error}")

        self._transition(request, RequestState.EXTRACTING_LINKS)
        page = self._restore_page(page)
        if page is None:
            logger.warning(f"Could not return to {request.url} after probing; skipping link extraction")
            self._transition(request, RequestState.DONE)
            return RequestOutcome(request, RequestState.DONE)
        # Same-host is judged against where the page landed, not request.url
        base_url = page.final_url or request.url
        same_host, cross_host = self.split_links(
            self.automation.link_targets(page),
            UrlClassifier.extract_domain(base_url),
        )

        self._transition(request, RequestState.CLASSIFYING)
        verdicts = [
            (href, UrlClassifier.classify(base_url, href, self.heuristics))
            for href in same_host
        ]
        brand_matches = [
            href for href in cross_host
            if not UrlClassifier.should_exclude(href, self.heuristics)
            and UrlClassifier.matches_brand(request.company_name, href)
        ]

        self._transition(request, RequestState.ENQUEUING)
        for href, verdict in verdicts:
            if verdict == ClassificationVerdict.EXCLUDED or href in (request.url, base_url):
                continue
            state.record_explored(request.seed_url, href)
            if request.is_seed and verdict.is_different_service:
                logger.info(f"Found potential different service for start URL {request.url}: {href}")
                self._accept_service(request, href, state, frontier)

        for href in brand_matches:
            state.record_explored(request.seed_url, href)
            if request.is_seed:
                logger.info(f"Found cross-domain service for start URL {request.url}: {href}")
                self._accept_service(request, href, state, frontier)

        self._transition(request, RequestState.DONE)
        return RequestOutcome(request, RequestState.DONE)

    @staticmethod
    def split_links(links: Sequence[LinkTarget], page_domain: str) -> Tuple[List[str], List[str]]:
        """
        Split anchors into same-hostname and absolute cross-hostname URLs.

        Fragment-only, javascript: and empty hrefs are dropped, as is anything
        without a hostname (mailto:, tel:).
        """
        same_host: List[str] = []
        cross_host: List[str] = []
        for link in links:
            raw = link.raw.strip().lower()
            if not raw or raw.startswith(_IGNORED_HREF_PREFIXES) or not link.href:
                continue
            domain = UrlClassifier.extract_domain(link.href)
            if not domain:
                continue
            if domain == page_domain:
                same_host.append(link.href)
            elif "://" in link.href:
                cross_host.append(link.href)
        return same_host, cross_host

    def _load(self, url: str) -> StepResult:
        try:
            return StepResult.success(self.automation.load(url))
        except NavigationError as e:
            return StepResult.failure(str(e))

    def _probe(self, page: RenderedPage) -> StepResult:
        try:
            return StepResult.success(self.prober.probe(page))
        except WebDriverException as e:
            return StepResult.failure(e.msg or e.__class__.__name__)

    def _restore_page(self, page: RenderedPage) -> Optional[RenderedPage]:
        """Reload page.url if a click navigated the window elsewhere."""
        if self.automation.current_url(page.context) in (page.url, page.final_url):
            return page
        reloaded = self._load(page.url)
        return reloaded.value if reloaded.ok else None

    def _record_probe_result(
        self,
        request: CrawlRequest,
        result: ProbeResult,
        state: CrawlState,
        frontier: RequestFrontier,
    ) -> None:
        state.record_explored(request.seed_url, result.url)
        if request.is_seed:
            logger.info(f"Found interactive element service for start URL {request.url}: {result.url}")
            self._accept_service(request, result.url, state, frontier)

    def _accept_service(
        self,
        request: CrawlRequest,
        url: str,
        state: CrawlState,
        frontier: RequestFrontier,
    ) -> None:
        state.record_discovered(request.seed_url, url)
        if url == request.seed_url:
            return
        if frontier.add(request.child(url)):
            state.record_child(request.seed_url, url)

    @staticmethod
    def _transition(request: CrawlRequest, new_state: RequestState) -> None:
        logger.debug(f"{request.url}: -> {new_state.value}")


def discover_companies(
    companies: Sequence[SeedTarget],
    automation: PageAutomation,
    sink: Optional[ResultSink] = None,
    max_requests: int = settings.MAX_REQUESTS_PER_CRAWL,
) -> List[ServiceDiscoveryRecord]:
    """
    Process companies one by one, each in its own run with a fresh CrawlState
    and request budget. One company's crawl finishes before the next begins.
    """
    orchestrator = CrawlOrchestrator(automation, sink=sink, max_requests=max_requests)
    results: List[ServiceDiscoveryRecord] = []
    for company in companies:
        logger.info(f"Processing company: {company.name} ({company.url})")
        results.extend(orchestrator.run([company]))
    return results
