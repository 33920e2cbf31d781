from datetime import datetime, timezone
from pathlib import Path

import pytest

from analytics.jurisdiction import nato_members
from common.errors import TableFormatError
from ingest import load_store, read_meetings, read_nato_roster, read_port_visits, read_vessel_status

DATA_DIR = Path(__file__).parent / "data"


def test_read_meetings_maps_columns_and_drops_invalid_rows(caplog):
    frame = read_meetings(DATA_DIR / "encounter.csv")

    assert list(frame["id"]) == ["e1", "e2", "e3"]
    assert "dropped 1 rows" in caplog.text
    first = frame.iloc[0]
    assert first["vessel_mmsi"] == 111
    assert first["other_vessel_flag"] == "TWN"
    assert first["region_memberships"] == frozenset({"ICCAT", "NAFO"})
    assert frame.iloc[1]["authorization_status"] == "unknown"
    assert frame.iloc[1]["region_memberships"] == frozenset()
    assert first["start"] == datetime(2020, 3, 1, tzinfo=timezone.utc)


def test_read_meetings_requires_core_columns(tmp_path):
    path = tmp_path / "encounter.csv"
    path.write_text("id,type,start\ne1,encounter,2020-01-01\n")
    with pytest.raises(TableFormatError):
        read_meetings(path)


def test_read_meetings_rejects_unparseable_times(tmp_path):
    path = tmp_path / "encounter.csv"
    path.write_text(
        "id,type,start,end,vessel.mmsi,distance_from_shore_m\n"
        "e1,encounter,yesterday,2020-01-01,1,10\n"
    )
    with pytest.raises(TableFormatError):
        read_meetings(path)


def test_missing_table_raises_file_not_found(tmp_path):
    with pytest.raises(FileNotFoundError):
        read_port_visits(tmp_path / "port.csv")


def test_read_port_visits():
    frame = read_port_visits(DATA_DIR / "port.csv")
    assert list(frame["vessel_mmsi"]) == [111, 222]
    assert list(frame["port_country"]) == ["KOR", "RUS"]


def test_read_vessel_status_cleans_seavision_export():
    statuses = {status.mmsi: status for status in read_vessel_status(DATA_DIR / "current_location.csv")}

    moored = statuses[111]
    assert moored.is_moored
    assert moored.eez == "USA"
    assert moored.last_transmission_time == datetime(2023, 3, 1, 10, tzinfo=timezone.utc)

    underway = statuses[222]
    assert underway.navigation_status == "under_way_using_engine"
    assert underway.destination is None
    assert underway.eez is None


def test_read_nato_roster():
    roster = read_nato_roster(DATA_DIR / "nato_countries.csv")
    assert nato_members(roster) == frozenset({"USA", "GBR"})


def test_read_nato_roster_requires_columns(tmp_path):
    path = tmp_path / "nato_countries.csv"
    path.write_text("country\nUSA\n")
    with pytest.raises(TableFormatError):
        read_nato_roster(path)


def test_load_store_applies_lifetime_minimum():
    assert load_store(DATA_DIR, min_meetings=1).vessels() == [111, 222]

    store = load_store(DATA_DIR, min_meetings=2)
    assert store.vessels() == [111]
    assert store.meeting_counts()[111] == 3
    assert len(store.port_visits()) == 1
    types = {record.id: record.type for record in store.meetings()}
    assert types == {"e1": "encounter", "e2": "encounter", "l1": "loitering"}


def test_load_store_needs_meeting_exports(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_store(tmp_path)
