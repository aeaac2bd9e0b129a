"""Unit tests for market and employee directory ingestion."""

from datetime import date

import pandas as pd
import pytest

from comprange_engine.config import IngestionSettings, RangeBuildConfig, RegionSettings
from comprange_engine.exceptions import IngestionError
from comprange_engine.ingestion import (
    employees_from_frame,
    load_market_sources,
    market_rows_from_frame,
    match_columns,
    normalize_header,
    read_employee_csv,
)
from comprange_engine.models import ApprovalStatus, PerformanceTier


def test_normalize_header():
    assert normalize_header(" Job Code ") == "jobcode"
    assert normalize_header("Base_Salary (USD)") == "basesalaryusd"
    assert normalize_header("P62.5") == "p62.5"


def test_match_columns_first_alias_wins():
    mapping = match_columns(["Employee ID", "Hire Date", "Start Date"], {"start_date": ("startdate", "hiredate")})
    assert mapping == {"start_date": "Hire Date"}


class TestMarketIngestion:

    def test_percentile_header_variants(self):
        df = pd.DataFrame(
            {
                "Job Code": ["F.P5", "F.P6", None],
                "P10": ["80,000", None, "1"],
                "25th Percentile": ["$90,000", "95000", "1"],
                "P62.5": ["120000", "", "1"],
                "90th": ["150000", "160000", "1"],
            }
        )

        rows = market_rows_from_frame(df, "US")

        assert len(rows) == 2
        first = rows[0]
        assert first.region == "US"
        assert first.job_code == "F.P5"
        assert first.p10 == 80000
        assert first.p25 == 90000
        assert first.p625 == 120000
        assert first.p90 == 150000
        assert first.p50 is None
        assert rows[1].p625 is None

    def test_missing_job_code_column(self):
        df = pd.DataFrame({"P50": [1]})
        with pytest.raises(IngestionError) as exc_info:
            market_rows_from_frame(df, "US", source="us.csv")
        assert "us.csv" in exc_info.value.message

    def test_directory_of_region_files(self, tmp_path):
        (tmp_path / "aon_us.csv").write_text("Job Code,P50\nF.P5,100000\n")
        (tmp_path / "India.csv").write_text("Job Code,P50\nF.P5,2500000\n")
        config = RangeBuildConfig(
            regions=[
                RegionSettings(name="US", market_source="aon_us"),
                RegionSettings(name="UK", currency="GBP"),
                RegionSettings(name="India", currency="INR", rounding_increment=1000),
            ]
        )

        sources = load_market_sources(config, tmp_path)

        assert list(sources) == ["US", "UK", "India"]
        assert sources["US"][0].p50 == 100000
        assert sources["UK"] == []
        assert sources["India"][0].region == "India"

    def test_workbook_with_region_tabs(self, tmp_path):
        path = tmp_path / "market.xlsx"
        with pd.ExcelWriter(path, engine="openpyxl") as writer:
            pd.DataFrame({"Job Code": ["F.P5"], "P50": [100000]}).to_excel(writer, sheet_name="Aon US", index=False)
        config = RangeBuildConfig(
            regions=[
                RegionSettings(name="US", market_source="Aon US"),
                RegionSettings(name="UK", currency="GBP", market_source="Aon UK"),
            ]
        )

        sources = load_market_sources(config, path)

        assert sources["US"][0].p50 == 100000
        assert sources["UK"] == []


class TestEmployeeIngestion:

    @pytest.fixture
    def directory_frame(self) -> pd.DataFrame:
        return pd.DataFrame(
            {
                "Employee ID": ["E1", "E2", "E3", None, "E5"],
                "Region": ["US", "US", "US", "US", "US"],
                "Job Family Code": ["F", "F", "F", "F", "F"],
                "Level": ["L5 IC", "L5 IC", "L5 IC", "L5 IC", "L5 IC"],
                "Base Salary": ["120,000", "100000", "90000", "80000", "abc"],
                "Status": ["Active", "Terminated", "Active", "Active", "Active"],
                "Employment Type": ["Permanent", "Permanent", "Contractor", "Permanent", "Permanent"],
                "Approval Status": ["Approved", "Legacy", "Approved", "Approved", "pending"],
                "Start Date": ["2025-06-01", "2019-01-15", None, "2020-01-01", "2020-01-01"],
                "Performance Rating": ["Exceeds Expectations", "Top", None, "Meets Expectations", "Below Expectations"],
            }
        )

    def test_records_are_parsed(self, directory_frame):
        records, report = employees_from_frame(directory_frame, IngestionSettings())

        assert [r.employee_id for r in records] == ["E1", "E2", "E3", "E5"]
        first = records[0]
        assert first.salary == 120000
        assert first.active is True
        assert first.approval_status is ApprovalStatus.APPROVED
        assert first.start_date == date(2025, 6, 1)
        assert first.performance_tier is PerformanceTier.TOP
        assert records[-1].approval_status is ApprovalStatus.OTHER
        assert records[-1].performance_tier is PerformanceTier.BOTTOM

        assert report.rows_read == 5
        assert report.rows_loaded == 4
        assert report.rows_skipped == 1

    def test_active_from_status_and_employment_type(self, directory_frame):
        records, _ = employees_from_frame(directory_frame, IngestionSettings())
        active = {r.employee_id: r.active for r in records}
        assert active == {"E1": True, "E2": False, "E3": False, "E5": True}

    def test_explicit_active_column_wins(self):
        df = pd.DataFrame(
            {
                "Employee ID": ["E1"],
                "Region": ["US"],
                "Family": ["F"],
                "Level": ["L5 IC"],
                "Salary": [100000],
                "Active": ["yes"],
                "Status": ["Terminated"],
            }
        )
        records, _ = employees_from_frame(df, IngestionSettings())
        assert records[0].active is True

    def test_unparseable_salary_is_kept_as_absent(self, directory_frame):
        records, _ = employees_from_frame(directory_frame, IngestionSettings())
        assert records[-1].salary is None

    def test_missing_required_columns(self):
        df = pd.DataFrame({"Employee ID": ["E1"], "Region": ["US"]})
        with pytest.raises(IngestionError) as exc_info:
            employees_from_frame(df, IngestionSettings())
        assert exc_info.value.to_dict()["metadata"]["missing_columns"] == ["family_code", "level", "salary"]

    def test_read_employee_csv(self, tmp_path):
        path = tmp_path / "base_data.csv"
        path.write_text(
            "Employee ID,Region,Job Family Code,Level,Base Salary,Active\n"
            "E1,India,EN.SODE,L4 IC,\"2,500,000\",true\n"
        )
        records, report = read_employee_csv(path)

        assert report.rows_loaded == 1
        assert records[0].region == "India"
        assert records[0].salary == 2500000
        assert records[0].active is True

    def test_unreadable_file(self, tmp_path):
        with pytest.raises(IngestionError):
            read_employee_csv(tmp_path / "missing.csv")
