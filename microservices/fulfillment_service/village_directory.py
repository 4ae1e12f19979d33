"""
Village / Region Directory

Read-only lookups over the village reference data: paginated village
listing, area summaries, active-village checks and shipping-region
resolution.
"""

import logging
import unicodedata
from decimal import Decimal
from typing import Dict, Iterable, List, Optional, Tuple

from .models import (
    AreaSummary,
    RegionMatch,
    RegionVillages,
    ShippingRegion,
    Village,
    VillageListResponse,
)
from .protocols import DirectoryRepositoryProtocol

logger = logging.getLogger(__name__)

DEFAULT_VILLAGE_LIMIT = 100
MAX_VILLAGE_LIMIT = 1000


def collation_key(text: str) -> str:
    """
    Accent/diacritic-insensitive, case-insensitive sort key.

    Drops combining marks (Arabic harakat, hamza forms decomposed by NFKD)
    and tatweel so that visually equal names sort together.
    """
    decomposed = unicodedata.normalize("NFKD", text or "")
    stripped = "".join(
        ch for ch in decomposed
        if not unicodedata.combining(ch) and ch != "ـ"
    )
    return stripped.casefold().strip()


def _in_governorate(village: Village, name: Optional[str]) -> bool:
    """Exact match on the first "-" segment; names without one never match"""
    segment = village.governorate_segment
    return bool(name) and segment is not None and segment == name


def sort_by_local_name(villages: Iterable[Village]) -> List[Village]:
    """
    Order by local name using collation_key, then village_id.

    This approximates Arabic locale collation: code-point order after
    folding diacritics, tatweel and case. It is not a full UCA/ICU
    collation, so letters whose alphabetical position differs from their
    code point (e.g. Persian additions) may sort differently.
    """
    return sorted(villages, key=lambda v: (collation_key(v.local_name), v.village_id))


def _dedupe(villages: Iterable[Village]) -> List[Village]:
    seen = set()
    unique = []
    for village in villages:
        if village.village_id in seen:
            continue
        seen.add(village.village_id)
        unique.append(village)
    return unique


def resolve_region_villages(
    region_name: str,
    region: Optional[ShippingRegion],
    villages: List[Village],
) -> RegionVillages:
    """
    Compute the candidate villages for a shipping region.

    First non-empty rule wins:
    1. explicit village_ids that exist in `villages`
    2. villages whose governorate segment equals region.governorate_name
    3. villages whose governorate segment equals the region's display name
    4. every active village

    Explicit ids that match nothing are reported as orphaned and resolution
    falls through. Landing on rule 4 is reported as a warning too, since it
    usually means a misspelt governorate rather than an intentional
    unrestricted region.
    """
    warnings: List[str] = []
    orphaned: List[int] = []
    pool = _dedupe(villages)

    if region and region.village_ids:
        wanted = list(dict.fromkeys(region.village_ids))
        by_id = {v.village_id: v for v in pool}
        matched = [by_id[vid] for vid in wanted if vid in by_id]
        orphaned = [vid for vid in wanted if vid not in by_id]
        if matched:
            if orphaned:
                warnings.append(
                    f"Region '{region_name}' references unknown village ids: {orphaned}"
                )
            return RegionVillages(
                region_name=region_name,
                resolved_by=RegionMatch.EXPLICIT_IDS,
                villages=sort_by_local_name(matched),
                orphaned_village_ids=orphaned,
                warnings=warnings,
            )
        warnings.append(
            f"Region '{region_name}' has configured village ids {orphaned} but none exist; "
            f"falling back to name matching"
        )

    candidates: List[Tuple[RegionMatch, Optional[str]]] = []
    if region and region.governorate_name:
        candidates.append((RegionMatch.GOVERNORATE, region.governorate_name))
    candidates.append((RegionMatch.REGION_NAME, region_name))

    for match, name in candidates:
        matched = [v for v in pool if _in_governorate(v, name)]
        if matched:
            return RegionVillages(
                region_name=region_name,
                resolved_by=match,
                villages=sort_by_local_name(matched),
                orphaned_village_ids=orphaned,
                warnings=warnings,
            )

    warnings.append(
        f"Region '{region_name}' matched no governorate; showing all active villages"
    )
    logger.warning(f"Region {region_name} fell back to all active villages")
    return RegionVillages(
        region_name=region_name,
        resolved_by=RegionMatch.ALL_ACTIVE,
        villages=sort_by_local_name(v for v in pool if v.is_active),
        orphaned_village_ids=orphaned,
        warnings=warnings,
    )


def summarize_areas(villages: Iterable[Village]) -> List[AreaSummary]:
    """Group active villages by area with delivery cost range"""
    costs: Dict[int, List[Decimal]] = {}
    for village in villages:
        if not village.is_active:
            continue
        costs.setdefault(village.area_id, []).append(village.delivery_cost)

    return [
        AreaSummary(
            area_id=area_id,
            village_count=len(values),
            min_delivery_cost=min(values),
            max_delivery_cost=max(values),
        )
        for area_id, values in sorted(costs.items())
    ]


class VillageDirectory:
    """Read-only facade over the directory repository"""

    def __init__(self, repository: DirectoryRepositoryProtocol):
        self.repository = repository

    async def get_active_village(self, village_id: Optional[int]) -> Optional[Village]:
        """Village if it exists and is active, else None"""
        if village_id is None:
            return None
        village = await self.repository.get_village(village_id)
        if village is None or not village.is_active:
            return None
        return village

    async def list_villages(
        self,
        area_id: Optional[int] = None,
        search: Optional[str] = None,
        is_active: Optional[bool] = True,
        page: int = 1,
        limit: int = DEFAULT_VILLAGE_LIMIT,
    ) -> VillageListResponse:
        """Filter, then paginate by village_id order"""
        page = max(page, 1)
        limit = min(max(limit, 1), MAX_VILLAGE_LIMIT)

        villages = await self.repository.list_villages(active_only=False)
        if is_active is not None:
            villages = [v for v in villages if v.is_active == is_active]
        if area_id is not None:
            villages = [v for v in villages if v.area_id == area_id]
        if search:
            needle = collation_key(search)
            villages = [v for v in villages if needle in collation_key(v.village_name)]

        villages = sorted(villages, key=lambda v: v.village_id)
        start = (page - 1) * limit
        page_items = villages[start:start + limit]

        return VillageListResponse(
            villages=page_items,
            total_count=len(villages),
            page=page,
            limit=limit,
            has_next=start + limit < len(villages),
        )

    async def list_areas(self) -> List[AreaSummary]:
        villages = await self.repository.list_villages(active_only=True)
        return summarize_areas(villages)

    async def list_regions(self) -> List[ShippingRegion]:
        regions = await self.repository.list_regions()
        return [r for r in regions if r.is_active]

    async def villages_for_region(self, region_name: str) -> RegionVillages:
        """Resolve a region (known or ad hoc name) against active villages"""
        region = await self.repository.get_region(region_name)
        villages = await self.repository.list_villages(active_only=True)
        result = resolve_region_villages(region_name, region, villages)
        if result.orphaned_village_ids:
            logger.warning(
                f"Region {region_name} has orphaned village ids {result.orphaned_village_ids}"
            )
        return result
