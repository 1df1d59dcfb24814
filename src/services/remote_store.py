"""Remote translation store client.

Fetches the project manifest and a locale's translation tree from the CDN.
Each lookup walks the same fallback chain:

 1. memory cache (``TtlCache``, per client instance)
 2. network fetch (timeout + retries with backoff, see ``core.http_client``)
 3. persistent storage (``FileCache``), written through on every success
 4. ``RemoteStoreError``

The caches are constructor arguments so tests and long-running callers decide
their scope; nothing is shared at module level.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Mapping, Optional

import httpx

from config import settings
from core.cache import FileCache, TtlCache, build_cache_key
from core.http_client import HttpError, fetch_json

__all__ = ["LanguageInfo", "Manifest", "RemoteStoreClient", "RemoteStoreError"]

_logger = logging.getLogger(__name__)


class RemoteStoreError(RuntimeError):
    pass


@dataclass(frozen=True, slots=True)
class LanguageInfo:
    code: str
    name: str = ""
    native_name: str = ""
    is_source: bool = False
    key_count: int = 0


@dataclass(frozen=True)
class Manifest:
    project_slug: str
    source_language: Optional[str]
    languages: List[LanguageInfo]
    files: Dict[str, str] = field(default_factory=dict)
    updated_at: Optional[str] = None

    @classmethod
    def from_payload(cls, data: Any) -> "Manifest":
        if not isinstance(data, dict) or not isinstance(data.get("languages"), list):
            raise RemoteStoreError("Manifest payload missing languages array")
        languages = [
            LanguageInfo(
                code=str(lang.get("code", "")),
                name=str(lang.get("name", "")),
                native_name=str(lang.get("nativeName", "")),
                is_source=bool(lang.get("isSource", False)),
                key_count=int(lang.get("keyCount") or 0),
            )
            for lang in data["languages"]
            if isinstance(lang, dict) and lang.get("code")
        ]
        files: Dict[str, str] = {}
        for locale, entry in (data.get("files") or {}).items():
            if isinstance(entry, dict) and entry.get("url"):
                files[locale] = str(entry["url"])
        return cls(
            project_slug=str(data.get("projectSlug", "")),
            source_language=data.get("sourceLanguage"),
            languages=languages,
            files=files,
            updated_at=data.get("updatedAt"),
        )

    def source_locale(self, default: str = settings.DEFAULT_LOCALE) -> str:
        for lang in self.languages:
            if lang.is_source:
                return lang.code
        return self.source_language or default


class RemoteStoreClient:
    def __init__(
        self,
        workspace_id: str,
        project_slug: str,
        *,
        base_url: str = settings.DEFAULT_CDN_BASE_URL,
        client: Optional[httpx.Client] = None,
        manifest_cache: Optional[TtlCache[Manifest]] = None,
        messages_cache: Optional[TtlCache[Dict[str, Any]]] = None,
        storage: Optional[FileCache] = None,
        retries: int | None = None,
        backoff_factor: float | None = None,
        manifest_ttl: float = settings.MANIFEST_CACHE_TTL,
        messages_ttl: float = settings.MESSAGES_CACHE_TTL,
        sleep: Optional[Callable[[float], None]] = None,
    ) -> None:
        self.workspace_id = workspace_id
        self.project_slug = project_slug
        self.base_url = base_url.rstrip("/")
        self._client = client
        self._manifest_cache: TtlCache[Manifest] = manifest_cache or TtlCache()
        self._messages_cache: TtlCache[Dict[str, Any]] = messages_cache or TtlCache()
        self._storage = storage
        self._retries = retries
        self._backoff = backoff_factor
        self._manifest_ttl = manifest_ttl
        self._messages_ttl = messages_ttl
        self._sleep = sleep

    @property
    def project(self) -> str:
        return f"{self.workspace_id}/{self.project_slug}"

    @property
    def project_url(self) -> str:
        return f"{self.base_url}/{self.workspace_id}/{self.project_slug}"

    # Fetch helpers ----------------------------------------------------
    def _fetch(self, url: str) -> Any:
        kwargs: Dict[str, Any] = {
            "client": self._client,
            "retries": self._retries,
            "backoff_factor": self._backoff,
        }
        if self._sleep is not None:
            kwargs["sleep"] = self._sleep
        return fetch_json(url, **kwargs)

    def _read_storage(self, key: str) -> Any:
        if self._storage is None:
            return None
        raw = self._storage.get(key)
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except json.JSONDecodeError:
            _logger.warning("Ignoring corrupt cached payload for %s", key)
            return None

    def _write_storage(self, key: str, data: Any) -> None:
        if self._storage is None:
            return
        try:
            self._storage.set(key, json.dumps(data, sort_keys=True))
        except OSError as e:
            _logger.warning("Could not persist %s: %s", key, e)

    # Public API -------------------------------------------------------
    def fetch_manifest(self, *, force_refresh: bool = False) -> Manifest:
        cache_key = build_cache_key(self.base_url, self.project, "manifest")
        if not force_refresh:
            cached = self._manifest_cache.get(cache_key)
            if cached is not None:
                return cached
        url = f"{self.project_url}/manifest.json"
        try:
            payload = self._fetch(url)
            manifest = Manifest.from_payload(payload)
        except (HttpError, RemoteStoreError) as e:
            _logger.warning("Manifest fetch failed, trying local cache: %s", e)
            stored = self._read_storage(cache_key)
            if stored is None:
                raise RemoteStoreError(f"Manifest unavailable for {self.project}: {e}") from e
            manifest = Manifest.from_payload(stored)
        else:
            self._write_storage(cache_key, payload)
        self._manifest_cache.set(cache_key, manifest, self._manifest_ttl)
        return manifest

    def translations_url(self, locale: str, manifest: Optional[Manifest] = None) -> str:
        if manifest is not None and locale in manifest.files:
            return manifest.files[locale]
        return f"{self.project_url}/translations/{locale}.json"

    def fetch_translations(
        self, locale: str, manifest: Optional[Manifest] = None, *, force_refresh: bool = False
    ) -> Dict[str, Any]:
        """Return the hierarchical translation tree for ``locale``."""
        cache_key = build_cache_key(self.base_url, self.project, "messages", locale)
        if not force_refresh:
            cached = self._messages_cache.get(cache_key)
            if cached is not None:
                return cached
        url = self.translations_url(locale, manifest)
        try:
            payload = self._fetch(url)
            if not isinstance(payload, Mapping):
                raise RemoteStoreError(f"Translations for {locale} are not a JSON object")
        except (HttpError, RemoteStoreError) as e:
            _logger.warning("Translations fetch failed for %s, trying local cache: %s", locale, e)
            payload = self._read_storage(cache_key)
            if not isinstance(payload, Mapping):
                raise RemoteStoreError(
                    f"Translations unavailable for {self.project} ({locale}): {e}"
                ) from e
        else:
            self._write_storage(cache_key, payload)
        tree = dict(payload)
        self._messages_cache.set(cache_key, tree, self._messages_ttl)
        return tree

    def close(self) -> None:
        if self._client is not None:
            self._client.close()
