import time
from typing import List, Optional, Tuple

from service_scout.features.discovery.schemas.discovery import (
    CandidateKind,
    ClickableCandidate,
    NavigationKind,
    ProbeResult,
)
from service_scout.features.discovery.schemas.heuristics import HeuristicConfig, load_heuristics
from service_scout.features.discovery.services.page_automation import PageAutomation, RenderedPage
from service_scout.platform.config import settings
from service_scout.platform.logger import get_logger

logger = get_logger(__name__)

# Selector families, in enumeration order. Class/id indicators are expanded per page.
SELECTOR_FAMILIES: List[Tuple[CandidateKind, str]] = [
    (CandidateKind.ONCLICK, "[onclick]"),
    (CandidateKind.FRAMEWORK_DIRECTIVE, "[ng-click], [\\(click\\)]"),
    (CandidateKind.ACTION_ATTRIBUTE, "[jsaction]"),
    (CandidateKind.ARIA_ROLE, '[role="button"], [role="link"]'),
]
BUTTON_SELECTOR = "button"


class InteractionProber:
    """
    Surfaces navigation that has no static anchor: SPA routers, click handlers,
    framework buttons.

    Candidates are clicked strictly one after another so that a window opening
    can be attributed to the click that caused it. Every step is best-effort;
    a failing candidate is logged and skipped.
    """

    def __init__(
        self,
        automation: PageAutomation,
        heuristics: Optional[HeuristicConfig] = None,
        click_timeout: float = settings.CLICK_TIMEOUT_SECONDS,
        new_context_timeout: float = settings.NEW_CONTEXT_TIMEOUT_SECONDS,
        idle_timeout: float = settings.IDLE_TIMEOUT_SECONDS,
        settle_delay: float = settings.SETTLE_DELAY_SECONDS,
    ):
        self.automation = automation
        self.heuristics = heuristics or load_heuristics()
        self.click_timeout = click_timeout
        self.new_context_timeout = new_context_timeout
        self.idle_timeout = idle_timeout
        self.settle_delay = settle_delay

    def enumerate_candidates(self, page: RenderedPage) -> List[ClickableCandidate]:
        candidates: List[ClickableCandidate] = []

        for kind, selector in SELECTOR_FAMILIES:
            for element in self.automation.query(page, selector):
                candidates.append(self._candidate(kind, element))

        for indicator in self.heuristics.clickable_indicators:
            for selector in (f'[class*="{indicator}"]', f'[id*="{indicator}"]'):
                for element in self.automation.query(page, selector):
                    # Anchors are covered by link extraction
                    if self.automation.element_attribute(element, "href"):
                        continue
                    candidates.append(
                        self._candidate(CandidateKind.CLASS_ID_INDICATOR, element, indicator)
                    )

        for element in self.automation.query(page, BUTTON_SELECTOR):
            candidates.append(self._candidate(CandidateKind.BUTTON_ELEMENT, element))

        logger.info(f"Found {len(candidates)} potential clickable elements on {page.url}")
        for candidate in candidates:
            logger.debug(f"Clickable element: {candidate.kind.value} | Text: {candidate.text[:80]}")
        return candidates

    def probe(self, page: RenderedPage) -> List[ProbeResult]:
        """
        Click every candidate on page and report where each click led.

        Returns:
            One ProbeResult per click that reached a URL other than page.url
        """
        results: List[ProbeResult] = []
        for candidate in self.enumerate_candidates(page):
            result = self._probe_candidate(page, candidate)
            if result is not None:
                results.append(result)
        return results

    def _probe_candidate(self, page: RenderedPage, candidate: ClickableCandidate) -> Optional[ProbeResult]:
        url_before = self.automation.current_url(page.context)

        activation = self.automation.activate(candidate.element_ref, self.click_timeout)
        if not activation.ok:
            logger.info(f"Click failed on {candidate.kind.value} element: {activation.error}")
            return None

        new_context = self.automation.wait_for_new_context(self.new_context_timeout)
        if new_context is not None:
            resolved = self._read_new_context(new_context)
            via = NavigationKind.NEW_CONTEXT
            if resolved:
                logger.info(f"New page opened: {resolved}")
        else:
            self._settle(page.context)
            resolved = self.automation.current_url(page.context)
            via = NavigationKind.IN_PLACE
            if not resolved or resolved == url_before:
                return None
            logger.info(f"Page navigation detected: {resolved}")

        if not resolved:
            return None
        if resolved in (page.url, page.final_url):
            logger.info(f"Skipping original URL: {resolved}")
            return None
        return ProbeResult(url=resolved, kind=candidate.kind, via=via)

    def _read_new_context(self, context: str) -> str:
        try:
            self._settle(context)
            return self.automation.current_url(context)
        finally:
            closed = self.automation.close(context)
            if not closed.ok:
                logger.warning(f"Failed to close window {context}: {closed.error}")

    def _settle(self, context: str) -> None:
        self.automation.wait_for_idle(context, self.idle_timeout)
        if self.settle_delay > 0:
            time.sleep(self.settle_delay)

    def _candidate(
        self,
        kind: CandidateKind,
        element,
        indicator: Optional[str] = None,
    ) -> ClickableCandidate:
        return ClickableCandidate(
            kind=kind,
            text=self.automation.element_text(element),
            element_ref=element,
            indicator=indicator,
        )
