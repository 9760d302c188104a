"""
Durable pricing store backed by local JSON seed files.

Seed files live in one directory (plain .json or gzipped .json.gz):

    pricing/data/
        ec2.json
        s3.json
        ...

Each file holds a list of pricing documents:

    {
        "serviceCode": "ec2",
        "documents": [
            {
                "pricingType": "compute",
                "regions": ["us-east-1", "us-west-2"],
                "effectiveDate": "2024-01-01",
                "version": "1.0",
                "pricingData": {...}
            }
        ]
    }

A document naming a "regions" list is stored once per region. Several
versions of the same (service, region, category) may coexist; lookups
return the one with the latest effective date.
"""
import gzip
import json
import logging
from datetime import date
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from costcalc.domain.errors import PricingStoreError
from costcalc.domain.pricing_models import PricingCategory, PricingDocument


logger = logging.getLogger(__name__)

VALID_CATEGORIES = {category.value for category in PricingCategory}


class JsonPricingStore:
    """
    Read-only pricing document repository.

    Files are parsed on first use and indexed by (service_code, region).
    """

    def __init__(self, data_dir: str):
        """
        Initialize pricing store.

        Args:
            data_dir: Directory containing pricing seed files

        Raises:
            PricingStoreError: If the directory does not exist
        """
        self.data_dir = Path(data_dir)
        if not self.data_dir.is_dir():
            raise PricingStoreError(f"Pricing data directory not found: {data_dir}")

        # (service_code, region) -> documents, any category and version
        self._index: Dict[Tuple[str, str], List[PricingDocument]] = {}
        self._loaded = False

    def _read_seed_file(self, path: Path) -> Dict[str, Any]:
        try:
            if path.name.endswith(".gz"):
                with gzip.open(path, "rt", encoding="utf-8") as f:
                    return json.load(f)
            with open(path, "r", encoding="utf-8") as f:
                return json.load(f)
        except (json.JSONDecodeError, OSError) as error:
            raise PricingStoreError(f"Error loading pricing file {path}: {error}") from error

    def _parse_document(
        self,
        raw: Dict[str, Any],
        default_service: Optional[str],
        source: Path,
    ) -> List[PricingDocument]:
        service_code = (raw.get("serviceCode") or default_service or "").strip().lower()
        if not service_code:
            raise PricingStoreError(f"Document without serviceCode in {source}")

        category = raw.get("pricingType")
        if category is not None and category not in VALID_CATEGORIES:
            raise PricingStoreError(
                f"Unknown pricingType '{category}' for {service_code} in {source}"
            )

        regions = raw.get("regions") or ([raw["region"]] if raw.get("region") else [])
        if not regions:
            raise PricingStoreError(f"Document for {service_code} has no region in {source}")

        try:
            effective_date = date.fromisoformat(raw.get("effectiveDate", "1970-01-01"))
        except ValueError as error:
            raise PricingStoreError(
                f"Invalid effectiveDate for {service_code} in {source}: {error}"
            ) from error

        pricing_data = raw.get("pricingData")
        if not isinstance(pricing_data, dict):
            raise PricingStoreError(f"Document for {service_code} has no pricingData in {source}")

        return [
            PricingDocument(
                service_code=service_code,
                region=region.strip().lower(),
                category=category,
                pricing_data=pricing_data,
                effective_date=effective_date,
                version=str(raw.get("version", "1.0")),
            )
            for region in regions
        ]

    def _ensure_loaded(self) -> None:
        if self._loaded:
            return

        paths = sorted(self.data_dir.glob("*.json")) + sorted(self.data_dir.glob("*.json.gz"))
        document_count = 0
        for path in paths:
            seed = self._read_seed_file(path)
            for raw in seed.get("documents", []):
                for document in self._parse_document(raw, seed.get("serviceCode"), path):
                    key = (document.service_code, document.region)
                    self._index.setdefault(key, []).append(document)
                    document_count += 1

        self._loaded = True
        logger.info(f"Loaded {document_count} pricing documents from {len(paths)} files in {self.data_dir}")

    def add_document(self, document: PricingDocument) -> None:
        """Register a document directly (seeding and tests)."""
        self._ensure_loaded()
        key = (document.service_code, document.region)
        self._index.setdefault(key, []).append(document)

    async def find_latest(
        self,
        service_code: str,
        region: str,
        category: Optional[str] = None,
    ) -> Optional[PricingDocument]:
        """
        Find the most recently effective document.

        Args:
            service_code: Service code (e.g., 'ec2')
            region: Region code, matched case-insensitively
            category: Optional pricing category (e.g., 'compute')

        Returns:
            Latest matching PricingDocument, or None if nothing matches
        """
        self._ensure_loaded()
        candidates = self._index.get((service_code.lower(), region.strip().lower()), [])
        if category is not None:
            candidates = [doc for doc in candidates if doc.category == category]
        if not candidates:
            return None
        return max(candidates, key=lambda doc: doc.effective_date)

    def list_services(self) -> List[str]:
        """Service codes that have at least one document."""
        self._ensure_loaded()
        return sorted({service for service, _ in self._index})

    def list_regions(self, service_code: Optional[str] = None) -> List[str]:
        """Regions with pricing, optionally restricted to one service."""
        self._ensure_loaded()
        return sorted({
            region for service, region in self._index
            if service_code is None or service == service_code.lower()
        })
