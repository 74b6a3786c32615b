"""
Aggregation engine.

Computes grouped counts and percentages over the patient records:
  - age groups (with male/female tallies)
  - gender
  - diseases, each with a nested age breakdown
  - pediatric and adult sub-reports scoped to their own age ranges

A record with N diseases counts once per disease, so disease counts can add up
to more than the number of records. Group labels sort as plain strings
("70-79" < "80+" < "Unknown"), which is the order the charts expect.
"""

import typing
from collections import defaultdict
from dataclasses import asdict, dataclass, field

from .age import parse_age_years
from .record import PatientRecord

UNKNOWN_AGE_GROUP = "Unknown"
OUT_OF_RANGE = "N/A"
UNSPECIFIED_GENDER = "Unspecified"

# (exclusive upper bound, label); anything at or above the last bound is "80+"
AGE_GROUP_BOUNDS = (
    (18, "0-17"),
    (30, "18-29"),
    (40, "30-39"),
    (50, "40-49"),
    (60, "50-59"),
    (70, "60-69"),
    (80, "70-79"),
)
PEDIATRIC_GROUP_BOUNDS = (
    (2, "0-1"),
    (6, "2-5"),
    (12, "6-11"),
    (18, "12-17"),
)


def get_age_group(age: typing.Any) -> str:
    years = parse_age_years(age)
    if years is None:
        return UNKNOWN_AGE_GROUP
    for bound, label in AGE_GROUP_BOUNDS:
        if years < bound:
            return label
    return "80+"


def get_pediatric_age_group(age: typing.Any) -> str:
    years = parse_age_years(age)
    if years is None or years < 0:
        return OUT_OF_RANGE
    for bound, label in PEDIATRIC_GROUP_BOUNDS:
        if years < bound:
            return label
    return OUT_OF_RANGE


def get_adult_age_group(age: typing.Any) -> str:
    years = parse_age_years(age)
    if years is None or years < 18:
        return OUT_OF_RANGE
    return get_age_group(years)


def format_percentage(count: int, total: int) -> str:
    if total <= 0:
        return "0"
    return f"{count / total * 100:.1f}"


@dataclass(frozen=True)
class AgeGroupStats:
    age_group: str
    count: int
    percentage: str
    male: int = 0
    female: int = 0


@dataclass(frozen=True)
class AgeBreakdownEntry:
    age_group: str
    count: int


@dataclass(frozen=True)
class DiseaseStats:
    disease: str
    count: int
    percentage: str
    male: int = 0
    female: int = 0
    age_breakdown: list[AgeBreakdownEntry] = field(default_factory=list)


@dataclass(frozen=True)
class GenderStats:
    gender: str
    count: int
    percentage: str


@dataclass(frozen=True)
class SubReport:
    """Statistics restricted to the records whose age falls inside one domain."""
    name: str
    total: int
    age_groups: list[AgeGroupStats]
    diseases: list[DiseaseStats]


@dataclass(frozen=True)
class AggregationResult:
    total: int
    age_groups: list[AgeGroupStats]
    diseases: list[DiseaseStats]
    genders: list[GenderStats] = field(default_factory=list)
    pediatric: typing.Optional[SubReport] = None
    adult: typing.Optional[SubReport] = None

    def to_dict(self) -> dict[str, typing.Any]:
        """JSON-friendly form using the chart layer's key names."""
        payload: dict[str, typing.Any] = {
            "total": self.total,
            "ageGroups": [_age_group_dict(s) for s in self.age_groups],
            "diseases": [_disease_dict(s) for s in self.diseases],
            "genders": [asdict(s) for s in self.genders],
        }
        for report in (self.pediatric, self.adult):
            if report is not None:
                payload[report.name] = {
                    "total": report.total,
                    "ageGroups": [_age_group_dict(s) for s in report.age_groups],
                    "diseases": [_disease_dict(s) for s in report.diseases],
                }
        return payload


def _age_group_dict(stats: AgeGroupStats) -> dict[str, typing.Any]:
    return {
        "ageGroup": stats.age_group,
        "count": stats.count,
        "percentage": stats.percentage,
        "male": stats.male,
        "female": stats.female,
    }


def _disease_dict(stats: DiseaseStats) -> dict[str, typing.Any]:
    return {
        "disease": stats.disease,
        "count": stats.count,
        "percentage": stats.percentage,
        "male": stats.male,
        "female": stats.female,
        "ageBreakdown": [{"ageGroup": e.age_group, "count": e.count} for e in stats.age_breakdown],
    }


def _tally(
        records: typing.Sequence[PatientRecord],
        bucket: typing.Callable[[typing.Any], str],
) -> tuple[list[AgeGroupStats], list[DiseaseStats]]:
    """
    Single pass over `records`, bucketing ages with `bucket`. Percentages are
    relative to len(records).
    """
    age_group_counts: dict[str, int] = defaultdict(int)
    age_group_gender: dict[str, dict[str, int]] = defaultdict(lambda: defaultdict(int))
    # plain dicts keep first-encounter order for stable tie-breaking
    disease_counts: dict[str, int] = {}
    disease_gender: dict[str, dict[str, int]] = defaultdict(lambda: defaultdict(int))
    disease_age_breakdown: dict[str, dict[str, int]] = defaultdict(lambda: defaultdict(int))

    for record in records:
        age_group = bucket(record.age)
        age_group_counts[age_group] += 1
        age_group_gender[age_group][record.gender] += 1

        for disease in record.diseases:
            disease_counts[disease] = disease_counts.get(disease, 0) + 1
            disease_gender[disease][record.gender] += 1
            disease_age_breakdown[disease][age_group] += 1

    total = len(records)

    age_groups = [
        AgeGroupStats(
            age_group=age_group,
            count=count,
            percentage=format_percentage(count, total),
            male=age_group_gender[age_group]["M"],
            female=age_group_gender[age_group]["F"],
        )
        for age_group, count in sorted(age_group_counts.items())
    ]

    diseases = [
        DiseaseStats(
            disease=disease,
            count=count,
            percentage=format_percentage(count, total),
            male=disease_gender[disease]["M"],
            female=disease_gender[disease]["F"],
            age_breakdown=[
                AgeBreakdownEntry(age_group=age_group, count=age_count)
                for age_group, age_count in sorted(disease_age_breakdown[disease].items())
            ],
        )
        for disease, count in disease_counts.items()
    ]
    # sorted() is stable, so equal counts keep encounter order
    diseases = sorted(diseases, key=lambda stats: stats.count, reverse=True)
    return age_groups, diseases


def summarize_genders(records: typing.Sequence[PatientRecord]) -> list[GenderStats]:
    total = len(records)
    counts = {"M": 0, "F": 0, "": 0}
    for record in records:
        counts[record.gender] = counts.get(record.gender, 0) + 1
    labels = (("M", "M"), ("F", "F"), ("", UNSPECIFIED_GENDER))
    return [
        GenderStats(gender=label, count=counts[key], percentage=format_percentage(counts[key], total))
        for key, label in labels
        if counts[key]
    ]


def _sub_report(
        name: str,
        records: typing.Sequence[PatientRecord],
        bucket: typing.Callable[[typing.Any], str],
) -> SubReport:
    in_range = [record for record in records if bucket(record.age) != OUT_OF_RANGE]
    age_groups, diseases = _tally(in_range, bucket)
    return SubReport(name=name, total=len(in_range), age_groups=age_groups, diseases=diseases)


def summarize(records: typing.Sequence[PatientRecord], include_sub_reports: bool = True) -> AggregationResult:
    age_groups, diseases = _tally(records, get_age_group)
    pediatric = adult = None
    if include_sub_reports:
        pediatric = _sub_report("pediatric", records, get_pediatric_age_group)
        adult = _sub_report("adult", records, get_adult_age_group)
    return AggregationResult(
        total=len(records),
        age_groups=age_groups,
        diseases=diseases,
        genders=summarize_genders(records),
        pediatric=pediatric,
        adult=adult,
    )
