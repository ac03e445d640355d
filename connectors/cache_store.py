import json
import logging
import os
from typing import Any, Dict, List, Optional

from errors import CacheCorrupted

logger = logging.getLogger("cache_store")


class FileCacheStore:
    """
    JSON blobs on disk, one file per cache key, all under one namespace directory.
    Entries are never evicted; callers decide freshness from the stored `updatedAt`.
    """

    def __init__(self, directory: str):
        self.directory = directory

    def path_for(self, name: str) -> str:
        return os.path.join(self.directory, name)

    def read(self, name: str) -> Optional[Dict[str, Any]]:
        path = self.path_for(name)
        if not os.path.exists(path):
            return None
        try:
            with open(path, "r", encoding="utf-8") as handle:
                data = json.load(handle)
        except (OSError, json.JSONDecodeError) as exc:
            raise CacheCorrupted(name, exc) from exc
        if not isinstance(data, dict):
            raise CacheCorrupted(name, f"expected an object, got {type(data).__name__}")
        return data

    def write(self, name: str, data: Dict[str, Any]) -> None:
        if not os.path.exists(self.directory):
            os.makedirs(self.directory, exist_ok=True)
        path = self.path_for(name)
        with open(path, "w", encoding="utf-8") as handle:
            json.dump(data, handle)
        logger.debug("Cached %s", path)

    def entries(self) -> List[str]:
        if not os.path.isdir(self.directory):
            return []
        return sorted(n for n in os.listdir(self.directory) if n.endswith(".json"))
