import sqlite3
import textwrap

import openpyxl
import pytest
from openpyxl import Workbook

from fibr_gen.report_generator import generate_report
from fibr_gen.report_generator.errors import ConfigError, ConfigLoadError
from fibr_gen.report_generator.fetchers import CsvDataFetcher, SqlDataFetcher
from fibr_gen.report_generator.generate_report import (
    build_fetcher,
    main,
    parse_params,
    run_report_generation,
)

from conftest import save_workbook

BUNDLE = """
workbook:
  id: staff-report
  name: Staff
  template: staff.xlsx
  outputDir: reports/${env}
  sheets:
    - name: Staff
      blocks:
        - name: Rows
          type: value
          range: A2:B2
          dataView: staff
dataViews:
  - name: staff
    dataSource: main
    labels:
      - {name: dept, column: DEPT}
      - {name: name, column: NAME}
      - {name: age, column: AGE}
dataSources:
  - name: main
    driver: sqlite
    dsn: %(dsn)s
"""


@pytest.fixture
def project(tmp_path):
    templates = tmp_path / "templates"
    templates.mkdir()
    wb = Workbook()
    ws = wb.active
    ws.title = "Staff"
    ws["A1"] = "Name"
    ws["A2"] = "{name}"
    ws["B2"] = "{age}"
    save_workbook(wb, templates / "staff.xlsx")

    csv_dir = tmp_path / "csv"
    csv_dir.mkdir()
    (csv_dir / "staff.csv").write_text("DEPT,NAME,AGE\nD1,Alice,30\nD2,Bob,25\n", encoding="utf-8")

    db_path = tmp_path / "staff.db"
    conn = sqlite3.connect(db_path)
    conn.execute("CREATE TABLE staff (DEPT TEXT, NAME TEXT, AGE INTEGER)")
    conn.executemany("INSERT INTO staff VALUES (?, ?, ?)", [("D1", "Alice", 30), ("D2", "Bob", 25)])
    conn.commit()
    conn.close()

    config = tmp_path / "bundle.yaml"
    config.write_text(textwrap.dedent(BUNDLE % {"dsn": db_path}), encoding="utf-8")
    return tmp_path


def test_csv_generation(project):
    path = run_report_generation(project / "bundle.yaml", project / "templates", project / "output",
                                 csv_dir=project / "csv", params={"env": "test"})

    assert path == project / "output" / "reports" / "test" / "Staff.xlsx"
    ws = openpyxl.load_workbook(path)["Staff"]
    assert [ws["A2"].value, ws["B2"].value, ws["A3"].value, ws["B3"].value] == ["Alice", "30", "Bob", "25"]


def test_sqlite_generation_uses_data_source_dsn(project):
    path = run_report_generation(project / "bundle.yaml", project / "templates", project / "output",
                                 fetcher_type="sqlite", params={"env": "db", "dept": "D2"})

    ws = openpyxl.load_workbook(path)["Staff"]
    assert (ws["A2"].value, ws["B2"].value) == ("Bob", 25)
    assert ws["A3"].value is None


def test_default_params(project):
    path = run_report_generation(project / "bundle.yaml", project / "templates", project / "output",
                                 csv_dir=project / "csv")
    assert path.parent.name == "dev"


def test_build_fetcher(tmp_path):
    assert isinstance(build_fetcher("csv", csv_dir=tmp_path), CsvDataFetcher)

    fetcher = build_fetcher("sqlite", db_dsn=":memory:")
    assert isinstance(fetcher, SqlDataFetcher)
    fetcher.connection.close()

    with pytest.raises(ConfigError, match="db-dsn is required"):
        build_fetcher("sqlite", data_sources={})
    with pytest.raises(ConfigError, match="unknown fetcher type"):
        build_fetcher("excel")


def test_missing_config(tmp_path):
    with pytest.raises(ConfigLoadError):
        run_report_generation(tmp_path / "missing.yaml", tmp_path, tmp_path)


def test_parse_params():
    assert parse_params(None) == {"env": "dev"}
    assert parse_params(["env=prod", "filter=a=b"]) == {"env": "prod", "filter": "a=b"}


# === CLI ===

@pytest.fixture
def no_logging_setup(monkeypatch):
    monkeypatch.setattr(generate_report, "setup_logging", lambda **kwargs: None)


def test_main_success(project, capsys, no_logging_setup):
    main(["--config", str(project / "bundle.yaml"), "--templates", str(project / "templates"),
          "--output", str(project / "output"), "--fetcher", "csv", "--csv-dir", str(project / "csv"),
          "--param", "env=cli"])

    assert "Successfully generated:" in capsys.readouterr().out
    assert (project / "output" / "reports" / "cli" / "Staff.xlsx").exists()


def test_main_failure_exits_with_status_1(tmp_path, no_logging_setup):
    with pytest.raises(SystemExit) as exc_info:
        main(["--config", str(tmp_path / "missing.yaml"), "--templates", str(tmp_path),
              "--output", str(tmp_path), "--fetcher", "csv"])
    assert exc_info.value.code == 1


def test_main_rejects_malformed_param(tmp_path, no_logging_setup):
    with pytest.raises(SystemExit) as exc_info:
        main(["--config", str(tmp_path / "c.yaml"), "--param", "novalue"])
    assert exc_info.value.code == 2


class ClosingConnection:
    def __init__(self):
        self.closed = False

    def close(self):
        self.closed = True


def test_connection_closed_when_context_setup_fails(project, monkeypatch):
    connection = ClosingConnection()
    monkeypatch.setattr(generate_report, "build_fetcher", lambda *args: SqlDataFetcher(connection))

    def broken_context(*args, **kwargs):
        raise ConfigError("context setup failed")

    monkeypatch.setattr(generate_report, "GenerationContext", broken_context)

    with pytest.raises(ConfigError, match="context setup failed"):
        run_report_generation(project / "bundle.yaml", project / "templates", project / "output",
                              fetcher_type="sqlite")
    assert connection.closed is True
