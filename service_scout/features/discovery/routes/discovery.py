from celery.result import AsyncResult
from fastapi import APIRouter, status

from service_scout.features.discovery.schemas.discovery import (
    DiscoveryRunRequest,
    DiscoveryRunResponse,
    DiscoveryRunStatusResponse,
)
from service_scout.features.discovery.workers.tasks import discover_company_services
from service_scout.platform.celery_app import celery_app
from service_scout.platform.logger import get_logger
from service_scout.platform.response import api_response

logger = get_logger(__name__)

router = APIRouter(prefix="/discovery", tags=["service-discovery"])


@router.post("/runs", response_model=DiscoveryRunResponse, status_code=status.HTTP_202_ACCEPTED)
async def start_discovery_run(data: DiscoveryRunRequest):
    """
    Queue a service discovery run.

    Companies are crawled one after the other by a discovery worker. Poll
    GET /discovery/runs/{task_id} for the outcome.
    """
    companies = [company.model_dump() for company in data.companies]
    task = discover_company_services.delay(companies)
    logger.info(f"Queued discovery run {task.id} for {len(companies)} companies")

    return api_response(
        status_code=status.HTTP_202_ACCEPTED,
        message="Service discovery queued",
        data=DiscoveryRunResponse(task_id=task.id, status="queued", companies=len(companies)),
    )


@router.get("/runs/{task_id}", response_model=DiscoveryRunStatusResponse)
async def get_discovery_run(task_id: str):
    """Report the state of a discovery run and, once finished, its records."""
    result = AsyncResult(task_id, app=celery_app)
    state = result.state.lower()

    if result.successful():
        payload = DiscoveryRunStatusResponse(task_id=task_id, status=state, results=result.result)
        message = "Service discovery completed"
    elif result.failed():
        payload = DiscoveryRunStatusResponse(task_id=task_id, status=state, error=str(result.result))
        message = "Service discovery failed"
    else:
        payload = DiscoveryRunStatusResponse(task_id=task_id, status=state)
        message = "Service discovery in progress"

    return api_response(message=message, data=payload)
