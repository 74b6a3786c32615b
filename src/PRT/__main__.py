"""
Command‑line interface for the PRT patient record tool.
Ingests CSV/XLSX patient lists into a session snapshot, lets you edit
age/date/gender/diseases by row index, and summarizes or exports the result.
"""

import click
import codecs
import json
import logging
import pathlib
import random
import sys
import typing

from stairval.notepad import create_notepad

from .dates import normalize_date
from .disease import DISEASES, get_disease_short_name, resolve_disease
from .export import export_filename, export_xlsx, write_template
from .ingest import ingest_file
from .loader import IngestError
from .statistics import AggregationResult, summarize
from .store import RecordStore, default_snapshot_path

snapshot_option = click.option(
    "-s",
    "--snapshot-path",
    "snapshot_path",
    default=None,
    type=click.Path(dir_okay=False, path_type=pathlib.Path),
    help="session snapshot file (default: $PRT_SNAPSHOT_PATH or .prt/session.json)",
)


@click.group()
@click.option("--verbose-logging", is_flag=True, help="Also emit debug logs to stderr")
@click.option(
    "--log-file-path",
    type=click.Path(dir_okay=False, writable=True),
    help="Append timestamped logs to this file",
)
def main(verbose_logging: bool = False, log_file_path: typing.Optional[str] = None):
    """PRT: annotate patient records and summarize them by age, gender and disease."""
    _configure_logging(verbose_logging, log_file_path)


def _configure_logging(verbose_logging: bool, log_file_path: typing.Optional[str]) -> None:
    handlers: list[logging.Handler] = []
    if log_file_path:
        handlers.append(logging.FileHandler(log_file_path, mode="a", encoding="utf-8"))
    if verbose_logging:
        handlers.append(logging.StreamHandler(sys.stderr))
    if handlers:
        logging.basicConfig(
            level=logging.DEBUG if verbose_logging else logging.INFO,
            format="%(asctime)s %(levelname)s %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
            handlers=handlers,
            force=True,
        )


def _snapshot_path(snapshot_path: typing.Optional[pathlib.Path]) -> pathlib.Path:
    return snapshot_path or default_snapshot_path()


def _load_store(snapshot_path: typing.Optional[pathlib.Path]) -> RecordStore:
    return RecordStore.restore(_snapshot_path(snapshot_path))


def _require_records(store: RecordStore) -> None:
    if not len(store):
        raise click.ClickException("No records loaded. Run `prt ingest FILE` first.")


def _report_issues(notepad):
    # if there were errors, show them
    if notepad.has_errors(include_subsections=True):
        click.echo("Errors found in mapping:")
        for err in notepad.errors():
            click.echo(f"- {err.message}")
    # show any warnings but keep going
    if notepad.has_warnings(include_subsections=True):
        click.echo("Warnings found in mapping:")
        for w in notepad.warnings():
            click.echo(f"- {w.message}")


@main.command(name="ingest")
@click.argument("input_file", type=click.Path(exists=True, dir_okay=False, path_type=pathlib.Path))
@click.option("--encoding", default="utf-8", show_default=True, help="text encoding for delimited files")
@snapshot_option
def ingest_command(input_file: pathlib.Path, encoding: str, snapshot_path: typing.Optional[pathlib.Path]):
    """
    Load a CSV or XLSX file, replacing the current session's records.
    """
    try:
        codecs.lookup(encoding)
    except LookupError:
        raise click.BadParameter(f"unknown encoding {encoding!r}", param_hint="--encoding")

    store = _load_store(snapshot_path)
    notepad = create_notepad("ingest")
    try:
        result = ingest_file(input_file, store, encoding=encoding, notepad=notepad)
    except IngestError as e:
        raise click.ClickException(str(e))

    if result.is_empty:
        click.echo(f"No rows found in {input_file}; nothing loaded.")
        return

    _report_issues(notepad)
    store.snapshot(_snapshot_path(snapshot_path))
    click.echo(f"Loaded {len(result.records)} record{'s' if len(result.records) != 1 else ''} from {input_file}")


@main.command(name="show")
@snapshot_option
def show(snapshot_path: typing.Optional[pathlib.Path]):
    """List records with their canonical fields. Rows marked * still need age or diseases."""
    store = _load_store(snapshot_path)
    _require_records(store)
    click.echo(f"{'#':>4}  {'NAME':20}  {'AGE':6}  {'DATE':10}  {'GENDER':6}  DISEASES")
    for index, record in enumerate(store.records):
        marker = "*" if record.needs_attention() else " "
        diseases = ", ".join(get_disease_short_name(d) for d in record.diseases)
        name = record.extra.get("Name", "")
        click.echo(f"{index:>4}{marker} {name:20}  {record.age:6}  {record.date:10}  {record.gender:6}  {diseases}")


def _edit(snapshot_path: typing.Optional[pathlib.Path], apply: typing.Callable[[RecordStore], None]) -> None:
    store = _load_store(snapshot_path)
    _require_records(store)
    try:
        apply(store)
    except IndexError as e:
        raise click.BadParameter(str(e), param_hint="INDEX")
    store.snapshot(_snapshot_path(snapshot_path))


@main.command(name="set-age")
@click.argument("index", type=int)
@click.argument("age")
@snapshot_option
def set_age(index: int, age: str, snapshot_path: typing.Optional[pathlib.Path]):
    """Set the age of record INDEX."""
    _edit(snapshot_path, lambda store: store.set_age(index, age.strip()))
    click.echo(f"Record {index}: age = {age.strip() or '(unknown)'}")


@main.command(name="set-date")
@click.argument("index", type=int)
@click.argument("date")
@snapshot_option
def set_date(index: int, date: str, snapshot_path: typing.Optional[pathlib.Path]):
    """Set the visit date of record INDEX (any format the ingester accepts)."""
    normalized = normalize_date(date)
    if date.strip() and not normalized:
        raise click.BadParameter(f"cannot parse {date!r} as a date", param_hint="DATE")
    _edit(snapshot_path, lambda store: store.set_date(index, normalized))
    click.echo(f"Record {index}: date = {normalized or '(none)'}")


@main.command(name="set-gender")
@click.argument("index", type=int)
@click.argument("gender", type=click.Choice(["M", "F", "-"], case_sensitive=False))
@snapshot_option
def set_gender(index: int, gender: str, snapshot_path: typing.Optional[pathlib.Path]):
    """Set the gender of record INDEX; '-' clears it."""
    value = "" if gender == "-" else gender.upper()
    _edit(snapshot_path, lambda store: store.set_gender(index, value))
    click.echo(f"Record {index}: gender = {value or '(unspecified)'}")


@main.command(name="toggle-disease")
@click.argument("index", type=int)
@click.argument("disease")
@snapshot_option
def toggle_disease(index: int, disease: str, snapshot_path: typing.Optional[pathlib.Path]):
    """Add or remove DISEASE (full label or short name) on record INDEX."""
    try:
        label = resolve_disease(disease)
    except ValueError as e:
        raise click.BadParameter(str(e), param_hint="DISEASE")

    holder: dict[str, bool] = {}

    def apply(store: RecordStore) -> None:
        store.toggle_disease(index, label)
        holder["present"] = store.records[index].has_disease(label)

    _edit(snapshot_path, apply)
    click.echo(f"Record {index}: {label} {'added' if holder['present'] else 'removed'}")


@main.command(name="autofill")
@click.option("--seed", type=int, default=None, help="seed for reproducible demo data")
@snapshot_option
def autofill(seed: typing.Optional[int], snapshot_path: typing.Optional[pathlib.Path]):
    """Fill every record with a random age and diseases (demo only)."""
    _edit(snapshot_path, lambda store: store.autofill_random(random.Random(seed)))
    click.echo("Filled all records with random demo values")


@main.command(name="summary")
@click.option("-r", "--raw", is_flag=True, help="print the summary as JSON")
@click.option("--pediatric", is_flag=True, help="include the pediatric (0-17) sub-report")
@click.option("--adult", is_flag=True, help="include the adult (18+) sub-report")
@snapshot_option
def summary(raw: bool, pediatric: bool, adult: bool, snapshot_path: typing.Optional[pathlib.Path]):
    """Aggregate the current records by age group, gender and disease."""
    store = _load_store(snapshot_path)
    result = summarize(store.records)

    if raw:
        payload = result.to_dict()
        if not pediatric:
            payload.pop("pediatric", None)
        if not adult:
            payload.pop("adult", None)
        click.echo(json.dumps(payload, indent=2))
        return

    _echo_summary(result, pediatric=pediatric, adult=adult)


def _echo_summary(result: AggregationResult, pediatric: bool, adult: bool) -> None:
    click.echo(f"Total records: {result.total}")
    click.echo("")
    click.echo(f"{'AGE GROUP':12}{'COUNT':>7}{'%':>8}{'M':>6}{'F':>6}")
    for stats in result.age_groups:
        click.echo(f"{stats.age_group:12}{stats.count:>7}{stats.percentage:>8}{stats.male:>6}{stats.female:>6}")

    click.echo("")
    click.echo(f"{'GENDER':12}{'COUNT':>7}{'%':>8}")
    for stats in result.genders:
        click.echo(f"{stats.gender:12}{stats.count:>7}{stats.percentage:>8}")

    click.echo("")
    click.echo(f"{'DISEASE':36}{'COUNT':>7}{'%':>8}  AGE BREAKDOWN")
    for stats in result.diseases:
        breakdown = ", ".join(f"{e.age_group}: {e.count}" for e in stats.age_breakdown)
        click.echo(f"{stats.disease:36}{stats.count:>7}{stats.percentage:>8}  {breakdown}")

    for wanted, report in ((pediatric, result.pediatric), (adult, result.adult)):
        if not wanted or report is None:
            continue
        click.echo("")
        click.echo(click.style(f"{report.name.upper()} ({report.total} records)", bold=True))
        for stats in report.age_groups:
            click.echo(f"{stats.age_group:12}{stats.count:>7}{stats.percentage:>8}")
        for stats in report.diseases:
            click.echo(f"{stats.disease:36}{stats.count:>7}{stats.percentage:>8}")


@main.command(name="export")
@click.option(
    "-o",
    "--output",
    "output_path",
    default=None,
    type=click.Path(dir_okay=False, path_type=pathlib.Path),
    help="where to write the workbook (default: patient-records-<date>.xlsx)",
)
@snapshot_option
def export(output_path: typing.Optional[pathlib.Path], snapshot_path: typing.Optional[pathlib.Path]):
    """Write the current records to an XLSX workbook."""
    store = _load_store(snapshot_path)
    _require_records(store)
    out = export_xlsx(output_path or pathlib.Path(export_filename()), store.headers, store.records)
    click.echo(f"Exported {len(store)} records to {out}")


@main.command(name="template")
@click.option(
    "-o",
    "--output",
    "output_path",
    default="patient-template.xlsx",
    show_default=True,
    type=click.Path(dir_okay=False, path_type=pathlib.Path),
)
def template(output_path: pathlib.Path):
    """Write a blank workbook with the recognized columns."""
    out = write_template(output_path)
    click.echo(f"Wrote template with {len(DISEASES)} disease columns to {out}")


@main.command(name="clear")
@click.option("--yes", is_flag=True, help="do not ask for confirmation")
@snapshot_option
def clear(yes: bool, snapshot_path: typing.Optional[pathlib.Path]):
    """Remove all records and the session snapshot."""
    if not yes:
        click.confirm("This will delete all loaded records. Continue?", abort=True)
    store = _load_store(snapshot_path)
    store.clear(_snapshot_path(snapshot_path))
    click.echo("Cleared all records")


if __name__ == "__main__":
    main()
