"""
Tests for the aggregation engine: age bucketing, grouped counts,
percentages, ordering and the age-scoped sub-reports.
"""

import pytest
from PRT.record import PatientRecord
from PRT.statistics import (
    AgeBreakdownEntry,
    format_percentage,
    get_adult_age_group,
    get_age_group,
    get_pediatric_age_group,
    summarize,
)

AGE_GROUPS = ["0-17", "18-29", "30-39", "40-49", "50-59", "60-69", "70-79", "80+"]


def make(age="", gender="", diseases=()):
    return PatientRecord(age=age, gender=gender, diseases=list(diseases))


@pytest.mark.parametrize(
    "age, expected",
    [("0", "0-17"), ("17", "0-17"), ("18", "18-29"), ("29", "18-29"), ("30", "30-39"), ("49", "40-49"),
     ("59", "50-59"), ("60", "60-69"), ("79", "70-79"), ("80", "80+"), ("120", "80+"), ("45.5", "40-49"),
     ("abc", "Unknown"), ("", "Unknown"), ("٤٥", "Unknown")],
)
def test_get_age_group(age, expected):
    assert get_age_group(age) == expected


def test_age_groups_partition_integer_ages():
    for age in range(0, 130):
        group = get_age_group(str(age))
        assert group in AGE_GROUPS
        low, _, high = group.partition("-")
        low = int(low.rstrip("+"))
        assert low <= age and (not high or age <= int(high))


@pytest.mark.parametrize(
    "age, expected",
    [("0", "0-1"), ("1", "0-1"), ("2", "2-5"), ("5", "2-5"), ("6", "6-11"), ("11", "6-11"), ("12", "12-17"),
     ("17", "12-17"), ("18", "N/A"), ("-1", "N/A"), ("x", "N/A")],
)
def test_get_pediatric_age_group(age, expected):
    assert get_pediatric_age_group(age) == expected


@pytest.mark.parametrize(
    "age, expected",
    [("17", "N/A"), ("18", "18-29"), ("65", "60-69"), ("95", "80+"), ("", "N/A")],
)
def test_get_adult_age_group(age, expected):
    assert get_adult_age_group(age) == expected


def test_format_percentage():
    assert format_percentage(1, 3) == "33.3"
    assert format_percentage(1, 1) == "100.0"
    assert format_percentage(0, 0) == "0"


def test_summarize_empty():
    result = summarize([])
    assert result.total == 0
    assert result.age_groups == [] and result.diseases == [] and result.genders == []
    assert result.pediatric.total == 0 and result.adult.total == 0


def test_summarize_single_record():
    result = summarize([make(age="45", gender="M", diseases=["Cardiovascular"])])
    assert [(s.age_group, s.count, s.percentage) for s in result.age_groups] == [("40-49", 1, "100.0")]
    assert len(result.diseases) == 1
    cardio = result.diseases[0]
    assert (cardio.disease, cardio.count, cardio.percentage) == ("Cardiovascular", 1, "100.0")
    assert cardio.age_breakdown == [AgeBreakdownEntry("40-49", 1)]
    assert cardio.male == 1 and cardio.female == 0


def test_age_groups_are_sorted_as_strings():
    records = [make(age=a) for a in ["85", "", "5", "72", "33"]]
    labels = [s.age_group for s in summarize(records).age_groups]
    assert labels == ["0-17", "30-39", "70-79", "80+", "Unknown"]


def test_disease_counts_are_not_mutually_exclusive():
    records = [
        make(age="45", diseases=["Renal", "Cardiovascular"]),
        make(age="50", diseases=["Cardiovascular"]),
        make(age="8"),
    ]
    result = summarize(records)
    assert sum(s.count for s in result.age_groups) == 3
    assert sum(s.count for s in result.diseases) == sum(len(r.diseases) for r in records)
    assert [(s.disease, s.count, s.percentage) for s in result.diseases] == [
        ("Cardiovascular", 2, "66.7"),
        ("Renal", 1, "33.3"),
    ]
    cardio = result.diseases[0]
    assert [(e.age_group, e.count) for e in cardio.age_breakdown] == [("40-49", 1), ("50-59", 1)]


def test_disease_ties_keep_encounter_order():
    records = [make(diseases=["Trauma"]), make(diseases=["Blood & Blood Components"]), make(diseases=["OB"])]
    assert [s.disease for s in summarize(records).diseases] == ["Trauma", "Blood & Blood Components", "OB"]


def test_age_group_percentages_sum_to_100():
    records = [make(age=str(a)) for a in (3, 19, 25, 41, 67, 88, 90)] + [make(age="?")]
    total = sum(float(s.percentage) for s in summarize(records).age_groups)
    assert total == pytest.approx(100, abs=0.1 * len(AGE_GROUPS))


def test_gender_tallies():
    records = [make(age="30", gender="M"), make(age="31", gender="F"), make(age="32", gender="F"), make(age="33")]
    result = summarize(records)
    assert [(g.gender, g.count, g.percentage) for g in result.genders] == [
        ("M", 1, "25.0"),
        ("F", 2, "50.0"),
        ("Unspecified", 1, "25.0"),
    ]
    (group,) = result.age_groups
    assert (group.male, group.female) == (1, 2)


def test_sub_reports_use_their_own_denominator():
    records = [
        make(age="1", diseases=["Infectious"]),
        make(age="4", diseases=["Infectious", "ENT"]),
        make(age="40", diseases=["Infectious"]),
        make(age=""),
    ]
    result = summarize(records)

    assert result.pediatric.total == 2
    assert [(s.age_group, s.count, s.percentage) for s in result.pediatric.age_groups] == [
        ("0-1", 1, "50.0"),
        ("2-5", 1, "50.0"),
    ]
    assert [(s.disease, s.percentage) for s in result.pediatric.diseases] == [("Infectious", "100.0"), ("ENT", "50.0")]

    assert result.adult.total == 1
    assert [(s.age_group, s.percentage) for s in result.adult.age_groups] == [("40-49", "100.0")]


def test_to_dict_uses_chart_keys():
    payload = summarize([make(age="45", gender="M", diseases=["Cardiovascular"])]).to_dict()
    assert payload["ageGroups"] == [{"ageGroup": "40-49", "count": 1, "percentage": "100.0", "male": 1, "female": 0}]
    assert payload["diseases"][0]["ageBreakdown"] == [{"ageGroup": "40-49", "count": 1}]
    assert payload["pediatric"]["total"] == 0
    assert payload["adult"]["total"] == 1


def test_summarize_without_sub_reports():
    result = summarize([make(age="45")], include_sub_reports=False)
    assert result.pediatric is None and result.adult is None
    assert "pediatric" not in result.to_dict()
