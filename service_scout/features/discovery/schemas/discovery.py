"""
Service Discovery Schemas

Crawl inputs, per-request metadata, verdicts and output records, plus the
request and response models of the discovery API endpoints.
"""
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from service_scout.platform.utils.url_validator import validate_url


# ============================================================================
# Crawl Inputs
# ============================================================================

class SeedTarget(BaseModel):
    """One company under investigation. Immutable for the run."""
    model_config = ConfigDict(frozen=True)

    name: str
    url: str

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("Company name cannot be empty")
        return value.strip()

    @field_validator("url")
    @classmethod
    def url_is_http(cls, value: str) -> str:
        is_valid, normalized, error = validate_url(value)
        if not is_valid:
            raise ValueError(error)
        return normalized


class RequestLabel(str, Enum):
    SEED = "seed"
    CHILD = "child"


class CrawlRequest(BaseModel):
    """
    A unit of work in the frontier.

    origin_domain, company_name and seed_url are copied from the seed into
    every descendant and never re-derived.
    """
    model_config = ConfigDict(frozen=True)

    url: str
    label: RequestLabel
    origin_domain: str
    company_name: str
    seed_url: str
    parent_url: Optional[str] = None

    @property
    def is_seed(self) -> bool:
        return self.label == RequestLabel.SEED

    def child(self, url: str) -> "CrawlRequest":
        """Build a child request one hop below this one."""
        return CrawlRequest(
            url=url,
            label=RequestLabel.CHILD,
            parent_url=self.url,
            origin_domain=self.origin_domain,
            company_name=self.company_name,
            seed_url=self.seed_url,
        )


# ============================================================================
# Classification & Probing
# ============================================================================

class ClassificationVerdict(str, Enum):
    EXCLUDED = "excluded"
    SAME_ORIGIN_SUBPAGE = "sameOriginSubpage"
    INTERNAL_TOOL_ON_SAME_ORIGIN = "internalToolOnSameOrigin"
    DIFFERENT_HOSTNAME = "differentHostname"
    DIFFERENT_SERVICE_BY_PATH_INDICATOR = "differentServiceByPathIndicator"

    @property
    def is_different_service(self) -> bool:
        return self in (
            ClassificationVerdict.DIFFERENT_HOSTNAME,
            ClassificationVerdict.DIFFERENT_SERVICE_BY_PATH_INDICATOR,
        )


class CandidateKind(str, Enum):
    ONCLICK = "onclick"
    FRAMEWORK_DIRECTIVE = "framework-directive"
    ACTION_ATTRIBUTE = "action-attribute"
    ARIA_ROLE = "aria-role"
    CLASS_ID_INDICATOR = "class/id-indicator"
    BUTTON_ELEMENT = "button-element"


class NavigationKind(str, Enum):
    NEW_CONTEXT = "new_context"
    IN_PLACE = "in_place"


@dataclass
class ClickableCandidate:
    """
    A non-anchor element worth clicking.

    element_ref belongs to the page automation layer and is only valid until
    the current page is left or closed.
    """
    kind: CandidateKind
    text: str
    element_ref: Any
    indicator: Optional[str] = None


@dataclass(frozen=True)
class ProbeResult:
    url: str
    kind: CandidateKind
    via: NavigationKind


@dataclass(frozen=True)
class LinkTarget:
    """An anchor as written in the markup (raw) and as resolved by the browser (href)."""
    raw: str
    href: str


@dataclass(frozen=True)
class StepResult:
    ok: bool
    value: Any = None
    error: Optional[str] = None

    @classmethod
    def success(cls, value: Any = None) -> "StepResult":
        return cls(ok=True, value=value)

    @classmethod
    def failure(cls, error: str) -> "StepResult":
        return cls(ok=False, error=error)


# ============================================================================
# Output Records
# ============================================================================

class ServiceDiscoveryRecord(BaseModel):
    """Per-seed result pushed to the dataset."""
    model_config = ConfigDict(populate_by_name=True)

    url: str
    potential_different_services: List[str] = Field(default_factory=list, alias="potentialDifferentServices")
    all_explored_urls: List[str] = Field(default_factory=list, alias="allExploredUrls")


class StartUrlChildrenRecord(BaseModel):
    """Aggregate record mapping each seed URL to the child URLs enqueued under it."""
    model_config = ConfigDict(populate_by_name=True)

    start_url_children: Dict[str, List[str]] = Field(default_factory=dict, alias="startUrlChildren")


# ============================================================================
# API Schemas
# ============================================================================

class DiscoveryRunRequest(BaseModel):
    """Request to start service discovery for one or more companies."""
    companies: List[SeedTarget] = Field(..., min_length=1, max_length=50)

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "companies": [
                    {"name": "Acme", "url": "https://acme.com"}
                ]
            }
        }
    )


class DiscoveryRunResponse(BaseModel):
    task_id: str
    status: str
    companies: int


class DiscoveryRunStatusResponse(BaseModel):
    task_id: str
    status: str
    results: Optional[List[Dict[str, Any]]] = None
    error: Optional[str] = None
