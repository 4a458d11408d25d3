"""
Tests for the crawl orchestrator, run against FakeAutomation.
"""
from unittest.mock import MagicMock

from selenium.common.exceptions import WebDriverException

from conftest import FakeAutomation, FakeElement, FakePage, link
from service_scout.features.discovery.schemas.discovery import SeedTarget
from service_scout.features.discovery.services.crawl_orchestrator import (
    CrawlOrchestrator,
    RequestState,
    discover_companies,
)
from service_scout.features.discovery.services.crawl_state import CrawlState
from service_scout.features.discovery.services.frontier import RequestFrontier
from service_scout.features.discovery.services.result_sink import MemorySink

SEED_URL = "https://acme.com"
ACME = SeedTarget(name="Acme", url=SEED_URL)


def acme_site():
    return {
        SEED_URL: FakePage(
            elements={"button": [FakeElement(text="Open tools", opens="https://tools.acme.com/")]},
            links=[
                link("https://acme.com/admin", "/admin"),
                link("https://acme.com/pricing", "/pricing"),
                link("https://twitter.com/acme"),
            ],
        ),
        "https://tools.acme.com/": FakePage(),
        "https://acme.com/admin": FakePage(),
    }


class TestRun:

    def test_discovers_button_window_and_tool_path(self, make_orchestrator):
        orchestrator, automation, sink = make_orchestrator(acme_site())

        [record] = orchestrator.run([ACME])

        assert record.url == SEED_URL
        assert record.potential_different_services == [
            "https://tools.acme.com/",
            "https://acme.com/admin",
        ]
        assert record.all_explored_urls == [
            "https://tools.acme.com/",
            "https://acme.com/admin",
            "https://acme.com/pricing",
        ]
        assert automation.loaded == [SEED_URL, "https://tools.acme.com/", "https://acme.com/admin"]
        assert automation.closed == ["ctx-1"]

    def test_sink_receives_records_then_children_map(self, make_orchestrator):
        orchestrator, _, sink = make_orchestrator(acme_site())

        orchestrator.run([ACME])

        assert len(sink.items) == 2
        assert sink.items[0]["url"] == SEED_URL
        assert "potentialDifferentServices" in sink.items[0]
        assert "allExploredUrls" in sink.items[0]
        assert sink.items[1] == {
            "startUrlChildren": {SEED_URL: ["https://tools.acme.com/", "https://acme.com/admin"]}
        }

    def test_excluded_and_subpage_links_are_not_services(self, make_orchestrator):
        orchestrator, _, _ = make_orchestrator(acme_site())

        [record] = orchestrator.run([ACME])

        assert "https://twitter.com/acme" not in record.all_explored_urls
        assert "https://acme.com/pricing" not in record.potential_different_services

    def test_children_record_but_never_enqueue(self, make_orchestrator):
        pages = {
            SEED_URL: FakePage(links=[link("https://app.acme.com/")]),
            "https://app.acme.com/": FakePage(
                links=[
                    link("https://app.acme.com/console", "/console"),
                    link("https://status.acme-cloud.io/"),
                ],
            ),
        }
        orchestrator, automation, _ = make_orchestrator(pages)

        [record] = orchestrator.run([ACME])

        assert record.potential_different_services == ["https://app.acme.com/"]
        assert "https://status.acme-cloud.io/" in record.all_explored_urls
        assert "https://app.acme.com/console" in record.all_explored_urls
        assert automation.loaded == [SEED_URL, "https://app.acme.com/"]

    def test_child_click_targets_are_explored_only(self, make_orchestrator):
        pages = {
            SEED_URL: FakePage(links=[link("https://app.acme.com/")]),
            "https://app.acme.com/": FakePage(
                elements={"button": [FakeElement(text="Billing", opens="https://billing.acme.com/")]},
            ),
        }
        orchestrator, automation, sink = make_orchestrator(pages)

        [record] = orchestrator.run([ACME])

        assert "https://billing.acme.com/" in record.all_explored_urls
        assert "https://billing.acme.com/" not in record.potential_different_services
        assert sink.items[-1]["startUrlChildren"][SEED_URL] == ["https://app.acme.com/"]
        assert "https://billing.acme.com/" not in automation.loaded
        assert automation.closed == ["ctx-1"]

    def test_redirected_seed_keeps_ordinary_pages_as_subpages(self, make_orchestrator):
        pages = {
            SEED_URL: FakePage(
                links=[
                    link("https://www.acme.com/pricing", "/pricing"),
                    link("https://www.acme.com/about", "/about"),
                    link("https://www.acme.com/dashboard", "/dashboard"),
                    link("https://www.acme.com/", "/"),
                ],
            ),
        }
        orchestrator, automation, _ = make_orchestrator(
            pages, redirects={SEED_URL: "https://www.acme.com/"}
        )

        [record] = orchestrator.run([ACME])

        assert record.potential_different_services == ["https://www.acme.com/dashboard"]
        assert record.all_explored_urls == [
            "https://www.acme.com/pricing",
            "https://www.acme.com/about",
            "https://www.acme.com/dashboard",
        ]
        assert automation.loaded == [SEED_URL, "https://www.acme.com/dashboard"]

    def test_budget_limits_children(self, make_orchestrator):
        orchestrator, automation, sink = make_orchestrator(acme_site(), max_requests=2)

        [record] = orchestrator.run([ACME])

        assert automation.loaded == [SEED_URL, "https://tools.acme.com/"]
        assert record.potential_different_services == [
            "https://tools.acme.com/",
            "https://acme.com/admin",
        ]
        assert sink.items[-1]["startUrlChildren"][SEED_URL] == ["https://tools.acme.com/"]

    def test_failed_seed_yields_empty_record(self, make_orchestrator):
        orchestrator, automation, sink = make_orchestrator({})

        [record] = orchestrator.run([ACME])

        assert record.potential_different_services == []
        assert record.all_explored_urls == []
        assert automation.loaded == [SEED_URL]
        assert sink.items[-1] == {"startUrlChildren": {SEED_URL: []}}

    def test_failed_child_does_not_affect_seed_record(self, make_orchestrator):
        pages = acme_site()
        del pages["https://tools.acme.com/"]
        orchestrator, automation, _ = make_orchestrator(pages)

        [record] = orchestrator.run([ACME])

        assert "https://tools.acme.com/" in record.potential_different_services
        assert "https://acme.com/admin" in automation.loaded

    def test_seed_url_is_never_a_service(self, make_orchestrator):
        pages = {
            SEED_URL: FakePage(
                elements={"button": [FakeElement(text="Home", opens=SEED_URL)]},
                links=[link(SEED_URL, "/")],
            ),
        }
        orchestrator, automation, sink = make_orchestrator(pages)

        [record] = orchestrator.run([ACME])

        assert record.potential_different_services == []
        assert SEED_URL not in record.all_explored_urls
        assert automation.loaded == [SEED_URL]

    def test_in_place_navigation_is_enqueued_and_page_reloaded(self, make_orchestrator):
        pages = {
            SEED_URL: FakePage(
                elements={"[onclick]": [FakeElement(text="Launch", navigates_to="https://acme.com/app")]},
                links=[link("https://acme.com/pricing", "/pricing")],
            ),
            "https://acme.com/app": FakePage(),
        }
        orchestrator, automation, _ = make_orchestrator(pages)

        [record] = orchestrator.run([ACME])

        assert record.potential_different_services == ["https://acme.com/app"]
        assert "https://acme.com/pricing" in record.all_explored_urls
        assert automation.loaded == [SEED_URL, SEED_URL, "https://acme.com/app"]

    def test_failed_click_is_skipped(self, make_orchestrator):
        pages = acme_site()
        pages[SEED_URL].elements["[onclick]"] = [FakeElement(text="Broken", fails=True)]
        orchestrator, automation, _ = make_orchestrator(pages)

        [record] = orchestrator.run([ACME])

        assert len(automation.clicked) == 2
        assert "https://tools.acme.com/" in record.potential_different_services

    def test_probe_crash_still_extracts_links(self):
        automation = FakeAutomation(acme_site())
        prober = MagicMock()
        prober.probe.side_effect = WebDriverException("session lost")
        orchestrator = CrawlOrchestrator(automation, sink=MemorySink(), prober=prober)

        [record] = orchestrator.run([ACME])

        assert "https://acme.com/admin" in record.potential_different_services
        assert "https://tools.acme.com/" not in record.all_explored_urls

    def test_shared_budget_skips_later_seeds(self, make_orchestrator):
        globex = SeedTarget(name="Globex", url="https://globex.com")
        pages = {SEED_URL: FakePage(), "https://globex.com": FakePage()}
        orchestrator, automation, sink = make_orchestrator(pages, max_requests=1)

        records = orchestrator.run([ACME, globex])

        assert [r.url for r in records] == [SEED_URL, "https://globex.com"]
        assert automation.loaded == [SEED_URL]
        assert sink.items[-1] == {"startUrlChildren": {SEED_URL: [], "https://globex.com": []}}


class TestProcessRequest:

    def test_outcome_states(self, make_orchestrator):
        orchestrator, _, _ = make_orchestrator({SEED_URL: FakePage()})
        request = orchestrator.seed_request(ACME)

        done = orchestrator.process_request(request, CrawlState(), RequestFrontier(10))
        failed = orchestrator.process_request(
            request.child("https://gone.acme.com"), CrawlState(), RequestFrontier(10)
        )

        assert done.state == RequestState.DONE
        assert failed.state == RequestState.FAILED
        assert "ERR_NAME_NOT_RESOLVED" in failed.error

    def test_seed_request_carries_company_metadata(self):
        request = CrawlOrchestrator.seed_request(ACME)

        assert request.is_seed
        assert request.origin_domain == "acme.com"
        assert request.company_name == "acme"
        assert request.seed_url == SEED_URL


class TestSplitLinks:

    def test_partitions_by_hostname(self):
        same, cross = CrawlOrchestrator.split_links(
            [
                link("https://acme.com/pricing", "/pricing"),
                link("https://app.acme.com/", "https://app.acme.com/"),
                link("https://acme.com/#top", "#top"),
                link("javascript:void(0)", "javascript:void(0)"),
                link("mailto:hi@acme.com"),
                link("", ""),
            ],
            "acme.com",
        )

        assert same == ["https://acme.com/pricing"]
        assert cross == ["https://app.acme.com/"]


def test_discover_companies_runs_each_company_with_its_own_budget():
    globex = SeedTarget(name="Globex", url="https://globex.com")
    automation = FakeAutomation({SEED_URL: FakePage(), "https://globex.com": FakePage()})
    sink = MemorySink()

    records = discover_companies([ACME, globex], automation, sink=sink, max_requests=1)

    assert [r.url for r in records] == [SEED_URL, "https://globex.com"]
    assert automation.loaded == [SEED_URL, "https://globex.com"]
    assert sink.items == [
        {"url": SEED_URL, "potentialDifferentServices": [], "allExploredUrls": []},
        {"startUrlChildren": {SEED_URL: []}},
        {"url": "https://globex.com", "potentialDifferentServices": [], "allExploredUrls": []},
        {"startUrlChildren": {"https://globex.com": []}},
    ]
