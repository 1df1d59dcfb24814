"""High-level orchestration of one sync run.

Steps:
 1. resolve the project context (config file, then explicit overrides)
 2. fetch the manifest to learn the source locale (failure is a warning)
 3. collect key usages (scanner output file, or the built-in extractor)
 4. fetch the source-locale translation tree
 5. reconcile and hand the report back to the caller for rendering

Upstream failures are resolved here, before the engine runs: without a
manifest or translation tree the outcome carries only the local keys.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional

from config import settings
from config.project import ProjectContext, detect_project_context
from core.cache import FileCache
from domain.models import BindingType, KeyUsageRecord, ScanStats, SyncReport
from parsing.key_extractor import extract_usages
from parsing.usage_loader import load_usages
from reconcile import group_keys_by_namespace, reconcile
from services.remote_store import Manifest, RemoteStoreClient, RemoteStoreError

__all__ = ["SyncOptions", "SyncOutcome", "run_sync", "resolve_context"]

_logger = logging.getLogger(__name__)

StoreFactory = Callable[[ProjectContext], RemoteStoreClient]


@dataclass
class SyncOptions:
    root_dir: str = "."
    usages_path: Optional[str] = None
    locale: Optional[str] = None
    review_dynamic: bool = False
    workspace_id: Optional[str] = None
    project_slug: Optional[str] = None
    cdn_base_url: Optional[str] = None
    offline_cache: bool = True


@dataclass
class SyncOutcome:
    project: Optional[str]
    source_locale: str
    files_scanned: int
    usages: List[KeyUsageRecord]
    local_namespaces: Dict[str, List[str]]
    scan_stats: ScanStats = field(default_factory=ScanStats)
    report: Optional[SyncReport] = None
    manifest: Optional[Manifest] = None
    warnings: List[str] = field(default_factory=list)
    duration: float = 0.0

    @property
    def compared(self) -> bool:
        return self.report is not None


def resolve_context(options: SyncOptions) -> Optional[ProjectContext]:
    ctx = detect_project_context(options.root_dir)
    if ctx is None and options.workspace_id and options.project_slug:
        ctx = ProjectContext(options.workspace_id, options.project_slug)
    if ctx is None:
        return None
    if options.workspace_id:
        ctx.workspace_id = options.workspace_id
    if options.project_slug:
        ctx.project_slug = options.project_slug
    if options.cdn_base_url:
        ctx.cdn_base_url = options.cdn_base_url.rstrip("/")
    return ctx


def _default_store(ctx: ProjectContext, *, offline_cache: bool = True) -> RemoteStoreClient:
    storage = FileCache() if offline_cache else None
    return RemoteStoreClient(
        ctx.workspace_id, ctx.project_slug, base_url=ctx.cdn_base_url, storage=storage
    )


def _collect_usages(
    options: SyncOptions, ctx: Optional[ProjectContext]
) -> tuple[List[KeyUsageRecord], ScanStats, int]:
    if options.usages_path:
        usages = load_usages(options.usages_path)
        files = len({u.file for u in usages if u.file})
        stats = ScanStats(
            dynamic_keys=sum(1 for u in usages if u.is_dynamic),
            unbound_translators=sum(1 for u in usages if u.binding_type is BindingType.UNBOUND),
        )
        return usages, stats, files
    extraction = extract_usages(
        options.root_dir,
        include=ctx.include if ctx else (),
        exclude=ctx.exclude if ctx else (),
    )
    return extraction.usages, extraction.stats, extraction.files_scanned


def run_sync(options: SyncOptions, *, store_factory: Optional[StoreFactory] = None) -> SyncOutcome:
    started = time.perf_counter()
    ctx = resolve_context(options)
    warnings: List[str] = []
    store: Optional[RemoteStoreClient] = None
    if ctx is None:
        warnings.append(f"No {settings.PROJECT_CONFIG_FILENAME} found, using defaults")
    else:
        store = (
            store_factory(ctx)
            if store_factory is not None
            else _default_store(ctx, offline_cache=options.offline_cache)
        )
    try:
        outcome = _compare(options, ctx, store, warnings)
    finally:
        if store is not None:
            store.close()
    outcome.duration = time.perf_counter() - started
    return outcome


def _compare(
    options: SyncOptions,
    ctx: Optional[ProjectContext],
    store: Optional[RemoteStoreClient],
    warnings: List[str],
) -> SyncOutcome:
    source_locale = options.locale or (ctx.default_locale if ctx else settings.DEFAULT_LOCALE)
    manifest: Optional[Manifest] = None
    if ctx is not None and store is not None:
        try:
            manifest = store.fetch_manifest()
            if options.locale is None:
                source_locale = manifest.source_locale(ctx.default_locale)
        except RemoteStoreError as e:
            warnings.append(f"Could not fetch manifest: {e}")
            _logger.warning("Could not fetch manifest for %s: %s", ctx.label, e)

    usages, stats, files_scanned = _collect_usages(options, ctx)
    outcome = SyncOutcome(
        project=ctx.label if ctx else None,
        source_locale=source_locale,
        files_scanned=files_scanned,
        usages=usages,
        local_namespaces=group_keys_by_namespace(u.key for u in usages),
        scan_stats=stats,
        manifest=manifest,
        warnings=warnings,
    )

    if store is not None and manifest is not None:
        try:
            tree = store.fetch_translations(source_locale, manifest)
        except RemoteStoreError as e:
            warnings.append(f"Failed to fetch remote keys: {e}")
            _logger.warning("Failed to fetch remote keys for %s: %s", source_locale, e)
        else:
            outcome.report = reconcile(
                usages, tree, review_dynamic=options.review_dynamic, scan_stats=stats
            )
    return outcome
