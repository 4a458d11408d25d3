import json
from pathlib import Path
from typing import List, Optional, Union

from pydantic import BaseModel, ValidationError

from service_scout.features.discovery.exceptions import CompanyDirectoryError
from service_scout.features.discovery.schemas.discovery import SeedTarget
from service_scout.platform.logger import get_logger

logger = get_logger(__name__)

INACTIVE_STATUS = "Inactive"


class CompanyEntry(BaseModel):
    name: str
    website: Optional[str] = None
    status: Optional[str] = None


class CompanyDirectory(BaseModel):
    companies: List[CompanyEntry]


class CompanyLoader:
    """Reads a company directory file and turns active entries into seeds."""

    @staticmethod
    def load(path: Union[str, Path]) -> List[SeedTarget]:
        """
        Load seeds from a directory JSON file: {"companies": [{"name", "website", "status"}]}.

        Entries marked Inactive are dropped. Entries without a usable website
        are skipped with a warning.

        Raises:
            CompanyDirectoryError: if the file is missing, unreadable or malformed
        """
        try:
            with open(path, "r", encoding="utf-8") as handle:
                raw = json.load(handle)
        except OSError as e:
            raise CompanyDirectoryError(f"Cannot read company directory {path}: {e}") from e
        except json.JSONDecodeError as e:
            raise CompanyDirectoryError(f"Company directory {path} is not valid JSON: {e}") from e

        try:
            directory = CompanyDirectory.model_validate(raw)
        except ValidationError as e:
            raise CompanyDirectoryError(f"Company directory {path} is malformed: {e}") from e

        seeds = CompanyLoader.to_seeds(directory)
        logger.info(f"Found {len(seeds)} active companies to process")
        return seeds

    @staticmethod
    def to_seeds(directory: CompanyDirectory) -> List[SeedTarget]:
        seeds: List[SeedTarget] = []
        for entry in directory.companies:
            if entry.status == INACTIVE_STATUS:
                continue
            if not entry.website:
                logger.warning(f"Skipping {entry.name}: no website")
                continue
            try:
                seeds.append(SeedTarget(name=entry.name, url=entry.website))
            except ValidationError as e:
                logger.warning(f"Skipping {entry.name}: invalid website {entry.website!r} ({e.errors()[0]['msg']})")
        return seeds
