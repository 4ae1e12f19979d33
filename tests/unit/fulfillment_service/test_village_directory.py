"""
Unit Tests for village naming and shipping-region resolution
"""
from decimal import Decimal

import pytest

from microservices.fulfillment_service.models import RegionMatch, split_village_name
from microservices.fulfillment_service.village_directory import (
    collation_key,
    resolve_region_villages,
    sort_by_local_name,
    summarize_areas,
)
from tests.fixtures import make_region, make_village

pytestmark = pytest.mark.unit


def _villages():
    return [
        make_village(1, "رام الله-البيرة", area_id=1),
        make_village(2, "رام الله-بيتونيا", area_id=1),
        make_village(3, "نابلس-عصيرة", area_id=2),
        make_village(4, "الخليل-دورا", area_id=3, is_active=False),
        make_village(5, "أريحا", area_id=4),
    ]


class TestSplitVillageName:

    def test_splits_on_first_dash(self):
        assert split_village_name("رام الله-البيرة") == ("رام الله", "البيرة")

    def test_only_first_dash_is_a_separator(self):
        assert split_village_name("Gov-Local-Part") == ("Gov", "Local-Part")

    def test_name_without_dash_is_both_parts(self):
        assert split_village_name("أريحا") == ("أريحا", "أريحا")

    def test_village_properties(self):
        village = make_village(9, "نابلس-عصيرة")
        assert village.governorate_name == "نابلس"
        assert village.local_name == "عصيرة"

    def test_governorate_segment_needs_a_dash(self):
        assert make_village(9, " نابلس -عصيرة").governorate_segment == "نابلس"
        assert make_village(10, "أريحا").governorate_segment is None


class TestCollation:

    def test_case_insensitive(self):
        assert collation_key("Nablus") == collation_key("NABLUS")

    def test_ignores_diacritics_and_tatweel(self):
        assert collation_key("نَابلس") == collation_key("نابلس")
        assert collation_key("نـابلس") == collation_key("نابلس")

    def test_sort_by_local_name(self):
        villages = [make_village(1, "X-b"), make_village(2, "X-A"), make_village(3, "X-c")]
        assert [v.village_id for v in sort_by_local_name(villages)] == [2, 1, 3]

    def test_sort_folds_hamza_forms_together(self):
        villages = [make_village(1, "X-إذنا"), make_village(2, "X-ابو ديس"), make_village(3, "X-باقة")]
        assert [v.village_id for v in sort_by_local_name(villages)] == [2, 1, 3]


class TestResolveRegionVillages:

    def test_explicit_ids_win(self):
        region = make_region("Custom", governorate_name="نابلس", village_ids=[2, 1])
        result = resolve_region_villages("Custom", region, _villages())

        assert result.resolved_by == RegionMatch.EXPLICIT_IDS
        assert {v.village_id for v in result.villages} == {1, 2}
        assert result.warnings == []

    def test_orphaned_ids_are_reported(self):
        region = make_region("Custom", village_ids=[1, 999])
        result = resolve_region_villages("Custom", region, _villages())

        assert result.resolved_by == RegionMatch.EXPLICIT_IDS
        assert [v.village_id for v in result.villages] == [1]
        assert result.orphaned_village_ids == [999]
        assert result.warnings

    def test_all_orphaned_ids_fall_through_to_governorate(self):
        region = make_region("North", governorate_name="نابلس", village_ids=[998, 999])
        result = resolve_region_villages("North", region, _villages())

        assert result.resolved_by == RegionMatch.GOVERNORATE
        assert [v.village_id for v in result.villages] == [3]
        assert result.orphaned_village_ids == [998, 999]

    def test_governorate_match(self):
        region = make_region("Center", governorate_name="رام الله")
        result = resolve_region_villages("Center", region, _villages())

        assert result.resolved_by == RegionMatch.GOVERNORATE
        assert [v.village_id for v in result.villages] == [1, 2]

    def test_region_name_match_without_governorate(self):
        result = resolve_region_villages("رام الله", make_region("رام الله"), _villages())

        assert result.resolved_by == RegionMatch.REGION_NAME
        assert {v.village_id for v in result.villages} == {1, 2}

    def test_governorate_match_is_exact(self):
        villages = [make_village(1, "اريحا-النويعمة"), make_village(2, "Jericho-Aqabat Jaber")]

        hamza = resolve_region_villages("أريحا", None, villages)
        cased = resolve_region_villages("JERICHO", None, villages)

        assert hamza.resolved_by == RegionMatch.ALL_ACTIVE
        assert cased.resolved_by == RegionMatch.ALL_ACTIVE

    def test_name_without_dash_never_matches_by_name(self):
        villages = [make_village(1, "Ramallah"), make_village(2, "Nablus-Asira")]

        result = resolve_region_villages("Ramallah", make_region("Ramallah", governorate_name="Ramallah"), villages)

        assert result.resolved_by == RegionMatch.ALL_ACTIVE
        assert {v.village_id for v in result.villages} == {1, 2}

    def test_unknown_region_falls_back_to_all_active_with_warning(self):
        result = resolve_region_villages("Nowhere", None, _villages())

        assert result.resolved_by == RegionMatch.ALL_ACTIVE
        assert 4 not in {v.village_id for v in result.villages}
        assert len(result.villages) == 4
        assert any("Nowhere" in w for w in result.warnings)

    def test_duplicate_village_rows_are_collapsed(self):
        villages = _villages() + [make_village(1, "رام الله-البيرة")]
        result = resolve_region_villages("Center", make_region("Center", governorate_name="رام الله"), villages)
        assert [v.village_id for v in result.villages].count(1) == 1


class TestSummarizeAreas:

    def test_groups_active_villages_by_area(self):
        villages = [
            make_village(1, "A-a", Decimal("20"), area_id=1),
            make_village(2, "A-b", Decimal("35"), area_id=1),
            make_village(3, "B-a", Decimal("50"), area_id=2),
            make_village(4, "B-b", Decimal("10"), area_id=2, is_active=False),
        ]
        areas = summarize_areas(villages)

        assert [a.area_id for a in areas] == [1, 2]
        assert areas[0].village_count == 2
        assert areas[0].min_delivery_cost == Decimal("20")
        assert areas[0].max_delivery_cost == Decimal("35")
        assert areas[1].village_count == 1
