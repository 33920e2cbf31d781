
import pandas as pd
import pytest

from analytics import describe, summarize
from analytics.summary import country_name, destination_counts, distance_histogram, modal_value
from events import METERS_PER_NM


@pytest.fixture
def reefer_store(make_meeting, make_store):
    return make_store(
        make_meeting(5, id="a", vessel_name="ICE QUEEN", vessel_flag="PAN", destination_port_country="CHN",
                     destination_port_name="QINGDAO", other_vessel_flag="CHN",
                     distance_from_shore_m=10 * METERS_PER_NM),
        make_meeting(5, id="b", vessel_name="ICE QUEEN", vessel_flag="PAN", destination_port_country="CHN",
                     destination_port_name="ZHOUSHAN", other_vessel_flag="TWN",
                     distance_from_shore_m=30 * METERS_PER_NM),
        make_meeting(5, id="c", type="loitering", vessel_name="ICE QUEEN II", vessel_flag="RUS",
                     destination_port_country="PAN", distance_from_shore_m=60 * METERS_PER_NM),
        make_meeting(6, id="d", vessel_flag="CHN"),
    )


def test_summary_picks_modal_values(reefer_store):
    summary = summarize(reefer_store, 5)

    assert summary.meeting_count == 3
    assert summary.vessel_name == "ICE QUEEN"
    assert summary.vessel_flag == "PAN"
    assert summary.destination_port_country == "CHN"
    assert summary.median_distance_from_shore_nm == pytest.approx(30.0)


def test_modal_ties_go_to_first_in_table_order(reefer_store):
    # CHN and TWN each appear once; meeting "a" sorts first
    assert summarize(reefer_store, 5).encountered_vessel_flag == "CHN"
    assert modal_value(pd.Series(["b", "a", "a", "b"])) == "b"


def test_modal_value_ignores_missing():
    assert modal_value(pd.Series([None, "", "ESP", None])) == "ESP"
    assert modal_value(pd.Series([None, None], dtype=object)) is None


def test_unknown_vessel_has_no_summary(reefer_store):
    assert summarize(reefer_store, 404) is None


def test_describe_renders_country_names(reefer_store):
    text = describe(summarize(reefer_store, 5))
    assert text.startswith("Ice Queen is a reefer vessel flagged to Panama")
    assert "ports in China" in text
    assert text.endswith("is 30 nautical miles.")


def test_country_name_falls_back_to_code():
    assert country_name("PAN") == "Panama"
    assert country_name("XXX") == "XXX"
    assert country_name(None) == "unknown"


def test_distance_histogram_bins(reefer_store):
    table = distance_histogram(reefer_store, 5, bin_nm=25.0)

    assert list(table["bin_start_nm"]) == [0.0, 25.0, 50.0]
    assert list(table["tracked"]) == [1, 1, 0]
    assert list(table["dark"]) == [0, 0, 1]


def test_distance_histogram_rejects_bad_bin(reefer_store):
    with pytest.raises(ValueError):
        distance_histogram(reefer_store, 5, bin_nm=0)


def test_destination_counts_by_country_and_port(reefer_store):
    by_country = destination_counts(reefer_store, 5)
    assert list(by_country["destination"]) == ["China", "Panama"]
    assert list(by_country["total"]) == [2, 1]
    assert list(by_country["dark"]) == [0, 1]

    by_port = destination_counts(reefer_store, 5, by="port")
    assert set(by_port["destination"]) == {"Qingdao", "Zhoushan", "unknown"}


def test_destination_counts_for_unknown_vessel_is_empty(reefer_store):
    assert destination_counts(reefer_store, 404).empty
