"""
Test configuration and fixtures for Service Scout.

The browser is replaced by FakeAutomation, an in-memory implementation of
the PageAutomation contract driven by a dict of fake pages.
"""

from dataclasses import dataclass, field
from typing import Dict, Generator, List, Optional

import pytest
from fastapi.testclient import TestClient

from service_scout.features.discovery.exceptions import NavigationError
from service_scout.features.discovery.schemas.discovery import LinkTarget, StepResult
from service_scout.features.discovery.services.crawl_orchestrator import CrawlOrchestrator
from service_scout.features.discovery.services.interaction_prober import InteractionProber
from service_scout.features.discovery.services.page_automation import RenderedPage
from service_scout.features.discovery.services.result_sink import MemorySink


MAIN_CONTEXT = "main"


@dataclass(eq=False)
class FakeElement:
    text: str = ""
    attrs: Dict[str, str] = field(default_factory=dict)
    opens: Optional[str] = None          # URL of a window the click opens
    navigates_to: Optional[str] = None   # URL the current window moves to
    fails: bool = False


@dataclass
class FakePage:
    elements: Dict[str, List[FakeElement]] = field(default_factory=dict)
    links: List[LinkTarget] = field(default_factory=list)


def link(href: str, raw: Optional[str] = None) -> LinkTarget:
    return LinkTarget(raw=raw if raw is not None else href, href=href)


class FakeAutomation:
    def __init__(
        self,
        pages: Dict[str, FakePage],
        close_fails: bool = False,
        redirects: Optional[Dict[str, str]] = None,
    ):
        self.pages = pages
        self.redirects = redirects or {}
        self.close_fails = close_fails
        self.loaded: List[str] = []
        self.clicked: List[FakeElement] = []
        self.closed: List[str] = []
        self.quit_called = False
        self._current: Optional[str] = None
        self._contexts: Dict[str, str] = {}
        self._pending: Optional[str] = None

    def load(self, url: str) -> RenderedPage:
        self.loaded.append(url)
        if url not in self.pages:
            raise NavigationError(url, 3, "net::ERR_NAME_NOT_RESOLVED")
        self._current = self.redirects.get(url, url)
        return RenderedPage(url=url, context=MAIN_CONTEXT, final_url=self._current)

    def query(self, page: RenderedPage, selector: str) -> List[FakeElement]:
        return list(self.pages[page.url].elements.get(selector, []))

    def activate(self, element: FakeElement, timeout: float) -> StepResult:
        self.clicked.append(element)
        if element.fails:
            return StepResult.failure("element not interactable")
        if element.opens:
            handle = f"ctx-{len(self._contexts) + 1}"
            self._contexts[handle] = element.opens
            self._pending = handle
        elif element.navigates_to:
            self._current = element.navigates_to
        return StepResult.success()

    def wait_for_new_context(self, timeout: float) -> Optional[str]:
        handle, self._pending = self._pending, None
        return handle

    def wait_for_idle(self, context: str, timeout: float) -> bool:
        return True

    def current_url(self, context: str) -> str:
        if context == MAIN_CONTEXT:
            return self._current or ""
        return self._contexts.get(context, "")

    def close(self, context: str) -> StepResult:
        self.closed.append(context)
        if self.close_fails:
            return StepResult.failure("window already gone")
        self._contexts.pop(context, None)
        return StepResult.success()

    def link_targets(self, page: RenderedPage) -> List[LinkTarget]:
        return list(self.pages[page.url].links)

    def element_text(self, element: FakeElement) -> str:
        return element.text

    def element_attribute(self, element: FakeElement, name: str) -> Optional[str]:
        return element.attrs.get(name)

    def quit(self) -> None:
        self.quit_called = True


@pytest.fixture
def make_orchestrator():
    """Build an orchestrator over fake pages with no settle delay."""
    def _make(pages: Dict[str, FakePage], max_requests: int = 100, **automation_kwargs):
        automation = FakeAutomation(pages, **automation_kwargs)
        sink = MemorySink()
        prober = InteractionProber(automation, settle_delay=0)
        orchestrator = CrawlOrchestrator(
            automation, sink=sink, max_requests=max_requests, prober=prober
        )
        return orchestrator, automation, sink

    return _make


@pytest.fixture(scope="session")
def test_app():
    """Create FastAPI test application."""
    from service_scout.main import app

    return app


@pytest.fixture(scope="function")
def client(test_app) -> Generator[TestClient, None, None]:
    with TestClient(test_app) as test_client:
        yield test_client
