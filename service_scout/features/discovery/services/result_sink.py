import json
import os
import re
from pathlib import Path
from typing import Any, Dict, List, Protocol, Sequence, Union

from pydantic import BaseModel

from service_scout.platform.config import settings
from service_scout.platform.logger import get_logger

logger = get_logger(__name__)

Record = Union[BaseModel, Dict[str, Any]]

_ITEM_FILE = re.compile(r"^(\d{9})\.json$")


def serialize_record(record: Record) -> Dict[str, Any]:
    if isinstance(record, BaseModel):
        return record.model_dump(by_alias=True)
    return dict(record)


class ResultSink(Protocol):
    def push(self, records: Sequence[Record]) -> None: ...


class MemorySink:
    """Keeps pushed records in memory, in order."""

    def __init__(self):
        self.items: List[Dict[str, Any]] = []

    def push(self, records: Sequence[Record]) -> None:
        self.items.extend(serialize_record(record) for record in records)


class JsonDatasetSink:
    """
    Append-only dataset on disk: one zero-padded numbered JSON file per record
    under <directory>/<name>/. Existing items are never rewritten.
    """

    def __init__(self, directory: str = settings.DATASET_DIR, name: str = settings.DATASET_NAME):
        self.path = Path(directory) / name
        self.path.mkdir(parents=True, exist_ok=True)

    def _next_index(self) -> int:
        indices = [
            int(match.group(1))
            for match in (_ITEM_FILE.match(entry) for entry in os.listdir(self.path))
            if match
        ]
        return max(indices, default=0) + 1

    def push(self, records: Sequence[Record]) -> None:
        index = self._next_index()
        for record in records:
            index = self._write_item(index, serialize_record(record)) + 1
        logger.info(f"Pushed {len(records)} record(s) to dataset {self.path}")

    def _write_item(self, index: int, item: Dict[str, Any]) -> int:
        """Write item at the first free index from index onwards. Returns the index used."""
        while True:
            item_path = self.path / f"{index:09d}.json"
            try:
                # "x" mode refuses to overwrite an item another writer already claimed
                handle = open(item_path, "x", encoding="utf-8")
            except FileExistsError:
                logger.debug(f"Dataset item {item_path.name} already taken, trying the next index")
                index += 1
                continue
            with handle:
                json.dump(item, handle, indent=2)
            return index
