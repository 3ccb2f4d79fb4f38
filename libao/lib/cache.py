"""File cache for last-known market quotes."""

import json
import logging
from datetime import datetime, timedelta
from pathlib import Path
from typing import Any, Optional, cast

from libao.lib.config import PRICE_FILE_CACHE_TTL_MINUTES, get_cache_dir

logger = logging.getLogger(__name__)


class CacheManager:
    """Manages caching of quote lookups to JSON files.

    Entries survive across CLI invocations, so a failed fetch can still fall
    back to the last price seen for a symbol.
    """

    def __init__(self, cache_dir: Optional[Path] = None):
        """
        Initialize cache manager.

        Args:
            cache_dir: Directory for cache files. Defaults to ~/.libao/cache/
        """
        if cache_dir is None:
            cache_dir = get_cache_dir()

        self.cache_dir = cache_dir
        self.cache_dir.mkdir(parents=True, exist_ok=True)

    def _get_cache_key(self, source: str, key: str) -> str:
        safe_key = key.replace("/", "_").replace(".", "_")
        return f"{source}_{safe_key}"

    def _get_cache_path(self, cache_key: str) -> Path:
        return self.cache_dir / f"{cache_key}.json"

    def _read(self, cache_path: Path) -> Optional[dict[str, Any]]:
        try:
            with open(cache_path, "r", encoding="utf-8") as f:
                data = json.load(f)
            return cast(dict[str, Any], data)
        except (json.JSONDecodeError, OSError):
            # Invalid cache file, remove it
            cache_path.unlink(missing_ok=True)
            return None

    def get(
        self, source: str, key: str, ttl_minutes: int = PRICE_FILE_CACHE_TTL_MINUTES
    ) -> Optional[dict[str, Any]]:
        """
        Retrieve cached data if it is younger than the TTL.

        Args:
            source: Data source (e.g., 'quote', 'fx')
            key: Lookup key, usually the symbol
            ttl_minutes: Time-to-live in minutes

        Returns:
            Cached data dict or None if cache miss/expired
        """
        cache_path = self._get_cache_path(self._get_cache_key(source, key))
        if not cache_path.exists():
            return None

        file_mtime = datetime.fromtimestamp(cache_path.stat().st_mtime)
        if datetime.now() - file_mtime > timedelta(minutes=ttl_minutes):
            return None

        return self._read(cache_path)

    def get_stale(self, source: str, key: str) -> Optional[dict[str, Any]]:
        """Retrieve cached data regardless of age."""
        cache_path = self._get_cache_path(self._get_cache_key(source, key))
        if not cache_path.exists():
            return None
        return self._read(cache_path)

    def set(self, source: str, key: str, data: dict[str, Any]) -> None:
        """
        Store data in cache.

        Args:
            source: Data source
            key: Lookup key
            data: JSON-serializable data to cache
        """
        cache_path = self._get_cache_path(self._get_cache_key(source, key))

        try:
            with open(cache_path, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2)
        except OSError as e:
            logger.warning(f"Failed to write cache {cache_path.name}: {e}")
