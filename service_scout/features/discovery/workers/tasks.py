from typing import Any, Dict, List

from service_scout.features.discovery.schemas.discovery import SeedTarget
from service_scout.features.discovery.services.crawl_orchestrator import discover_companies
from service_scout.features.discovery.services.page_automation import SeleniumPageAutomation
from service_scout.features.discovery.services.result_sink import JsonDatasetSink
from service_scout.platform.celery_app import celery_app
from service_scout.platform.config import settings
from service_scout.platform.logger import get_logger

logger = get_logger(__name__)


@celery_app.task(
    bind=True,
    name="service_scout.features.discovery.workers.tasks.discover_company_services",
    max_retries=1,
    default_retry_delay=60,
)
def discover_company_services(
    self,
    companies: List[Dict[str, str]],
    max_requests: int = settings.MAX_REQUESTS_PER_CRAWL,
) -> List[Dict[str, Any]]:
    """
    Run service discovery for each company, one after the other.

    Args:
        companies: [{"name": ..., "url": ...}] as accepted by SeedTarget
        max_requests: request budget per company

    Returns:
        Serialized per-company records (camelCase keys)
    """
    seeds = [SeedTarget(**company) for company in companies]
    logger.info(f"[{self.request.id}] Starting service discovery for {len(seeds)} companies")

    sink = JsonDatasetSink()
    with SeleniumPageAutomation() as automation:
        records = discover_companies(seeds, automation, sink=sink, max_requests=max_requests)

    logger.info(f"[{self.request.id}] Service discovery finished for {len(records)} companies")
    return [record.model_dump(by_alias=True) for record in records]
