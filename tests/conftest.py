import os
import pandas as pd
import pytest

from PRT.disease import DISEASES


@pytest.fixture(scope="session")
def fpath_test_dir() -> str:
    """
    Path to `tests/data/` folder.
    """
    return os.path.join(os.path.dirname(__file__), "data")


@pytest.fixture(scope="session")
def fpath_patients_csv(fpath_test_dir: str) -> str:
    """
    Four patients, CRLF line endings, a leading BOM, one blank line,
    quoted fields and a malformed gender ('X').
    """
    return os.path.join(fpath_test_dir, "patients.csv")


@pytest.fixture
def patients_workbook(tmp_path) -> str:
    """
    A one-sheet workbook with the same columns the template uses plus a 'Name' column.
    All cells are written as text so the reader sees exactly these strings.
    """
    columns = ["Name", "Age", "Date", "Gender"] + list(DISEASES)
    rows = [
        ["Joe", "45", "2025-10-01", "M"] + ["Yes" if d == "Cardiovascular" else "No" for d in DISEASES],
        ["Ana", "7", "22/10/2025", "F"] + ["Yes" if d in ("Renal", "Infectious") else "No" for d in DISEASES],
        ["Sam", "", "", ""] + ["No" for _ in DISEASES],
    ]
    df = pd.DataFrame(rows, columns=columns)
    path = tmp_path / "patients.xlsx"
    with pd.ExcelWriter(path, engine="openpyxl") as w:
        df.to_excel(w, sheet_name="Sheet1", index=False)
    return str(path)


@pytest.fixture
def snapshot_path(tmp_path):
    """Isolated session snapshot for CLI and store tests."""
    return tmp_path / "session.json"
