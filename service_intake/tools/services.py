"""Service catalog loaded from the JSON repository, with an explicit refresh cache."""

import json
import logging
import re
import time
from pathlib import Path
from typing import Any, Callable, Optional, Sequence, Union

from pydantic import ValidationError

from service_intake.config import settings
from service_intake.errors import CatalogError
from service_intake.schemas.service_schema import ServiceDefinition
from service_intake.utils import service_key

logger = logging.getLogger(__name__)

REQUIRED_RECORD_KEYS = (
    "service_id", "service_name", "ministry", "required_fields", "optional_fields",
)

# Alias -> service_id, matched as whole words in order: specific phrases first.
SERVICE_ALIASES: dict[str, str] = {
    "birth certificate": "SVC_004", "birth record": "SVC_004",
    "driver license": "SVC_002", "drivers license": "SVC_002",
    "driver's license": "SVC_002", "driving permit": "SVC_002",
    "business permit": "SVC_003", "business license": "SVC_003",
    "register my shop": "SVC_003", "travel document": "SVC_001",
    "passport": "SVC_001",
    "property": "SVC_005", "deed": "SVC_005", "land": "SVC_005",
    "business": "SVC_003", "company": "SVC_003",
    "license": "SVC_002", "licence": "SVC_002", "learner": "SVC_002",
    "registrar": "SVC_004",
}


class ServiceCatalog:
    """
    Immutable, keyed collection of service definitions.

    Lookup works by service key (lower-cased name with underscores) or
    by service_id. Duplicate ids or names are rejected at construction.
    """

    def __init__(
        self,
        services: Sequence[ServiceDefinition] = (),
        metadata: Optional[dict[str, Any]] = None,
        warnings: Sequence[str] = (),
    ) -> None:
        by_key: dict[str, ServiceDefinition] = {}
        by_id: dict[str, ServiceDefinition] = {}
        for service in services:
            if service.service_id in by_id:
                raise CatalogError(f"Duplicate service_id: {service.service_id}")
            if service.service_key in by_key:
                raise CatalogError(f"Duplicate service_name: {service.service_name}")
            by_id[service.service_id] = service
            by_key[service.service_key] = service
        self._services: tuple[ServiceDefinition, ...] = tuple(services)
        self._by_key = by_key
        self._by_id = by_id
        self.metadata: dict[str, Any] = dict(metadata or {})
        self.warnings: tuple[str, ...] = tuple(warnings)

    def __len__(self) -> int:
        return len(self._services)

    def __iter__(self):
        return iter(self._services)

    def get(self, identifier: str) -> Optional[ServiceDefinition]:
        """Find a service by name/key first, then by service_id."""
        if not identifier:
            return None
        found = self._by_key.get(service_key(identifier))
        if found is not None:
            return found
        return self._by_id.get(identifier.strip())

    def require(self, identifier: str) -> ServiceDefinition:
        service = self.get(identifier)
        if service is None:
            raise CatalogError(f"Service '{identifier}' not found in repository")
        return service

    def all(self) -> list[ServiceDefinition]:
        return list(self._services)

    def service_names(self) -> list[str]:
        """Service keys, as offered to the intent router."""
        return list(self._by_key.keys())

    def listing(self) -> list[dict[str, Any]]:
        return [service.summary() for service in self._services]


def parse_repository(data: Any) -> ServiceCatalog:
    """Build a catalog from decoded repository JSON.

    Raises:
        CatalogError: If the document or any record is invalid. An empty
            ``services`` array is valid and yields an empty catalog.
    """
    if not isinstance(data, dict) or not isinstance(data.get("services"), list):
        raise CatalogError("Invalid service repository: missing 'services' array")

    services: list[ServiceDefinition] = []
    for record in data["services"]:
        if not isinstance(record, dict):
            raise CatalogError(f"Invalid service record: {record!r}")
        missing = [key for key in REQUIRED_RECORD_KEYS if key not in record]
        if missing:
            sid = record.get("service_id", "unknown")
            raise CatalogError(f"Service {sid} missing fields: {', '.join(missing)}")
        try:
            services.append(ServiceDefinition.model_validate(record))
        except ValidationError as exc:
            raise CatalogError(
                f"Service {record.get('service_id', 'unknown')} is invalid: {exc}"
            ) from exc

    metadata = data.get("metadata") or {}
    warnings: list[str] = []
    if not data.get("metadata"):
        warnings.append("Missing metadata section")
    elif metadata.get("total_services") != len(services):
        warnings.append(
            f"Metadata mismatch: claims {metadata.get('total_services')} "
            f"but found {len(services)}"
        )
    for warning in warnings:
        logger.warning("Service repository: %s", warning)

    return ServiceCatalog(services, metadata=metadata, warnings=warnings)


def load_catalog(path: Union[str, Path, None] = None) -> ServiceCatalog:
    """Read and parse the service repository file."""
    repo_path = Path(path or settings.portal.service_repository_path)
    try:
        raw = repo_path.read_text(encoding="utf-8")
    except OSError as exc:
        raise CatalogError(f"Cannot read service repository {repo_path}: {exc}") from exc
    try:
        data = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise CatalogError(f"Service repository {repo_path} is not valid JSON: {exc}") from exc

    catalog = parse_repository(data)
    logger.info("Loaded %d services from repository", len(catalog))
    return catalog


class CatalogCache:
    """
    Process-owned cache with ``get_or_refresh(now)`` semantics.

    A refresh builds a complete new catalog and swaps it in; catalogs are
    never mutated after construction, so readers need no locking. When a
    refresh fails and an older catalog exists, the stale catalog is served.
    """

    def __init__(
        self,
        loader: Callable[[], ServiceCatalog],
        ttl_seconds: float = 300.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._loader = loader
        self._ttl = ttl_seconds
        self._clock = clock
        self._catalog: Optional[ServiceCatalog] = None
        self._loaded_at: Optional[float] = None

    def get_or_refresh(self, now: Optional[float] = None) -> ServiceCatalog:
        now = self._clock() if now is None else now
        if (
            self._catalog is not None
            and self._loaded_at is not None
            and now - self._loaded_at < self._ttl
        ):
            return self._catalog

        try:
            catalog = self._loader()
        except CatalogError:
            if self._catalog is None:
                raise
            logger.warning("Catalog refresh failed, serving cached catalog", exc_info=True)
            return self._catalog

        self._catalog = catalog
        self._loaded_at = now
        return catalog

    def invalidate(self) -> None:
        self._loaded_at = None


def build_catalog_cache(
    path: Union[str, Path, None] = None, ttl_seconds: Optional[float] = None
) -> CatalogCache:
    """Create the default file-backed catalog cache."""
    ttl = settings.portal.catalog_cache_seconds if ttl_seconds is None else ttl_seconds
    return CatalogCache(lambda: load_catalog(path), ttl_seconds=ttl)


def match_service(query: str, catalog: ServiceCatalog) -> Optional[ServiceDefinition]:
    """Match a free-text request to a catalog service. Returns None if no match."""
    normalized = query.lower().strip()
    for alias, service_id in SERVICE_ALIASES.items():
        if re.search(rf"\b{re.escape(alias)}\b", normalized):
            found = catalog.get(service_id)
            if found is not None:
                return found
    for service in catalog:
        name = service.service_name.lower()
        if name in normalized or service.service_key in normalized:
            return service
    return None
