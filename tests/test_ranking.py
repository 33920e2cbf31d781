from __future__ import annotations

import math
from datetime import datetime, timezone

import pytest

from analytics import JurisdictionSelector, RankingFilters, latest_status, rank
from common.errors import InvalidFilterRange
from events import METERS_PER_NM
from report import format_percent, ranking_table, view_subtitle


def _utc(*args) -> datetime:
    return datetime(*args, tzinfo=timezone.utc)


@pytest.fixture
def fleet(make_meeting, make_store, make_status):
    """Three reefers: 200 (USA flag, moored in a U.S. port), 300 (PAN, in GBR EEZ), 400 (CHN, high seas)."""

    records = [
        *[make_meeting(200, vessel_name="ARCTIC BAY", vessel_flag="USA", authorization_status="authorized",
                       distance_from_shore_m=d * METERS_PER_NM) for d in (100, 200, 300)],
        make_meeting(200, type="loitering", vessel_name="ARCTIC BAY", vessel_flag="USA",
                     authorization_status="authorized", distance_from_shore_m=400 * METERS_PER_NM),
        *[make_meeting(300, vessel_name="FROST", vessel_flag="PAN", start=_utc(2016, 5, 1))
          for _ in range(2)],
        *[make_meeting(400, type="loitering", vessel_name="CHILL", vessel_flag="CHN", start=_utc(2021, 5, 1),
                       distance_from_shore_m=10 * METERS_PER_NM) for _ in range(2)],
    ]
    statuses = [
        make_status(200, flag="USA", eez="USA", navigation_status="5-Moored",
                    last_transmission_time=_utc(2023, 3, 1), longitude=-70.123, latitude=41.456),
        make_status(200, flag="USA", eez="CAN", navigation_status="Under way using engine",
                    last_transmission_time=_utc(2022, 1, 1)),
        make_status(300, flag="PAN", eez="GBR", navigation_status="0-Under way using engine",
                    last_transmission_time=_utc(2023, 3, 1)),
        make_status(400, flag="CHN", eez=None, last_transmission_time=_utc(2023, 3, 1)),
    ]
    return make_store(*records), statuses


def test_ratios_for_three_tracked_one_dark(fleet):
    store, statuses = fleet
    row = next(r for r in rank(store, statuses) if r.vessel_mmsi == 200)

    assert row.tracked_encounter_count == 3
    assert row.dark_loitering_count == 1
    assert row.total_meetings == 4
    assert row.tracked_ratio == pytest.approx(0.75)
    assert row.authorized_ratio == pytest.approx(1.0)
    assert row.median_distance_from_shore_nm == pytest.approx(250.0)
    assert row.vessel_name == "ARCTIC BAY"


def test_rows_sorted_by_total_with_stable_mmsi_ties(fleet):
    store, statuses = fleet
    rows = rank(store, statuses)
    assert [r.vessel_mmsi for r in rows] == [200, 300, 400]


def test_latest_status_wins(fleet):
    store, statuses = fleet
    row = next(r for r in rank(store, statuses) if r.vessel_mmsi == 200)

    assert row.eez == "USA"
    assert row.navigation_status == "moored"
    assert latest_status(statuses)[200].last_transmission_time == _utc(2023, 3, 1)


def test_vessel_without_status_still_ranked(fleet):
    store, _ = fleet
    rows = rank(store, [])
    assert len(rows) == 3
    assert all(r.eez is None and r.longitude is None for r in rows)


def test_min_zero_and_full_range_match_unfiltered(fleet):
    store, statuses = fleet
    unfiltered = rank(store, statuses)
    filtered = rank(store, statuses, RankingFilters(year_range=(2012, 2022), min_meetings=0))
    assert filtered == unfiltered


def test_year_distance_and_minimum_filters(fleet):
    store, statuses = fleet

    recent = rank(store, statuses, RankingFilters(year_range=(2020, 2022)))
    assert [r.vessel_mmsi for r in recent] == [200, 400]

    offshore = rank(store, statuses, RankingFilters(distance_band_nm=(25, 1400)))
    assert 400 not in {r.vessel_mmsi for r in offshore}

    busy = rank(store, statuses, RankingFilters(min_meetings=3))
    assert [r.vessel_mmsi for r in busy] == [200]


def test_flag_view_uses_vessel_flag(fleet):
    store, statuses = fleet
    rows = rank(store, statuses, RankingFilters(jurisdiction=JurisdictionSelector.single("USA"), view="flag"))
    assert [r.vessel_mmsi for r in rows] == [200]


def test_eez_view_uses_current_position(fleet):
    store, statuses = fleet
    five_eyes = RankingFilters(jurisdiction=JurisdictionSelector("five_eyes"), view="eez")
    assert [r.vessel_mmsi for r in rank(store, statuses, five_eyes)] == [200, 300]


def test_port_view_requires_moored(fleet):
    store, statuses = fleet
    port = RankingFilters(jurisdiction=JurisdictionSelector("nato"), view="port")
    assert [r.vessel_mmsi for r in rank(store, statuses, port)] == [200]


def test_any_jurisdiction_matches_no_filter(fleet):
    store, statuses = fleet
    everyone = rank(store, statuses, RankingFilters(jurisdiction=JurisdictionSelector("any")))
    assert len(everyone) == len(rank(store, statuses))


def test_ratios_stay_in_unit_interval(fleet):
    store, statuses = fleet
    for row in rank(store, statuses):
        for ratio in (row.tracked_ratio, row.authorized_ratio):
            assert 0.0 <= ratio <= 1.0
            assert not math.isnan(ratio)


def test_empty_selection_returns_no_rows(fleet):
    store, statuses = fleet
    assert rank(store, statuses, RankingFilters(year_range=(1990, 1991))) == []


@pytest.mark.parametrize(
    "kwargs",
    [
        {"year_range": (2022, 2012)},
        {"distance_band_nm": (1400, 25)},
        {"distance_band_nm": (-5, 25)},
        {"min_meetings": -1},
    ],
)
def test_malformed_filters_are_rejected(kwargs):
    with pytest.raises(InvalidFilterRange):
        RankingFilters(**kwargs)


def test_filters_are_hashable_and_normalised():
    a = RankingFilters(year_range=[2012, 2022], distance_band_nm=(25, 1400))
    b = RankingFilters(year_range=(2012, 2022), distance_band_nm=(25.0, 1400.0))
    assert a == b
    assert hash(a) == hash(b)


def test_ranking_table_renders_whole_percentages(fleet):
    store, statuses = fleet
    table = ranking_table(rank(store, statuses), view="port")

    first = table.iloc[0]
    assert first["Vessel Name"] == "Arctic Bay"
    assert first["tracked"] == "75 %"
    assert first["authorized"] == "100 %"
    assert first["Longitude"] == pytest.approx(-70.12)
    assert first["Port Country"] == "USA"
    assert "EEZ" not in table.columns


def test_format_percent_and_subtitles():
    assert format_percent(2 / 3) == "67 %"
    assert format_percent(0.0) == "0 %"
    assert view_subtitle("flag", JurisdictionSelector.single("USA")) == "flagged to U.S."
    assert view_subtitle("eez", JurisdictionSelector("any")) == "in any EEZ"
    assert view_subtitle("eez", JurisdictionSelector("nato")) == "in NATO EEZ"
    assert view_subtitle("port", JurisdictionSelector("five_eyes")) == "at Five Eyes ports"
    assert view_subtitle("port", None) == "at any port"


def test_blank_names_do_not_win_the_modal_identity(make_meeting, make_store):
    store = make_store(
        make_meeting(500, id="a", vessel_name="", vessel_flag=""),
        make_meeting(500, id="b", vessel_name="", vessel_flag=""),
        make_meeting(500, id="c", vessel_name="POLAR STAR", vessel_flag="LBR"),
        make_meeting(600, id="d", vessel_name="", vessel_flag=""),
    )

    rows = {row.vessel_mmsi: row for row in rank(store)}

    assert rows[500].vessel_name == "POLAR STAR"
    assert rows[500].flag == "LBR"
    assert rows[600].vessel_name == ""
    assert rows[600].flag == ""
