"""
Tests for the batch lead importer
"""
import runpy
import sys

import pytest
from postgrest.exceptions import APIError

from database.supabase_client import DatabaseError
from leads.export import export_buyers_csv
from leads.importer import (
    ImportResult,
    LeadImporter,
    LeadImportError,
    _cli,
    generate_template,
)
from leads.parser import parse_csv
from leads.validation import validate_row


class TestImportText:

    def test_header_only_file(self, mock_gateway, owner_id, make_csv):
        result = LeadImporter(mock_gateway).import_text(make_csv(), owner_id)

        assert result.to_dict() == {"successCount": 0, "failedCount": 0, "errors": []}
        mock_gateway.create_buyer.assert_not_called()

    def test_all_valid_rows_inserted(self, mock_gateway, owner_id, make_csv, line):
        text = make_csv(line(), line(full_name="Asha Rao", phone="9123456789"))

        result = LeadImporter(mock_gateway).import_text(text, owner_id)

        assert result.success_count == 2
        assert result.failed_count == 0
        assert mock_gateway.create_buyer.call_count == 2

        owner, fields = mock_gateway.create_buyer.call_args_list[1].args
        assert owner == owner_id
        assert fields["full_name"] == "Asha Rao"
        assert fields["user_id"] == owner_id
        assert fields["tags"] == ["urgent", "premium"]

    @pytest.mark.parametrize("n", [3, 5, 12])
    def test_one_invalid_row_is_isolated(self, mock_gateway, owner_id, make_csv, line, n):
        lines = [line(phone=f"98765432{i:02d}") for i in range(n)]
        lines[2] = line(property_type="villa", bhk="")

        result = LeadImporter(mock_gateway).import_text(make_csv(*lines), owner_id)

        assert result.success_count == n - 1
        assert result.failed_count == 1
        assert len(result.errors) == 1
        error = result.errors[0]
        assert error["row"] == 4
        assert error["field"] == "bhk"
        assert error["message"] == "BHK is required for villa"
        assert error["data"]["property_type"] == "villa"
        assert mock_gateway.create_buyer.call_count == n - 1

    def test_every_violation_reported_once_row_counted_once(self, mock_gateway, owner_id, make_csv, line):
        text = make_csv(line(phone="12", email="nope", purpose="rental"))

        result = LeadImporter(mock_gateway).import_text(text, owner_id)

        assert result.failed_count == 1
        assert [e["field"] for e in result.errors] == ["email", "phone", "purpose"]
        assert {e["row"] for e in result.errors} == {2}

    def test_database_failure_recorded_and_import_continues(self, mock_gateway, owner_id, make_csv, line):
        mock_gateway.create_buyer.side_effect = [
            DatabaseError("duplicate key value violates unique constraint", code="23505"),
            {"id": "buyer-2"},
        ]
        text = make_csv(line(), line(full_name="Asha Rao"))

        result = LeadImporter(mock_gateway).import_text(text, owner_id)

        assert result.success_count == 1
        assert result.failed_count == 1
        assert result.errors == [{
            "row": 2,
            "field": "database",
            "message": "duplicate key value violates unique constraint",
            "data": parse_csv(text)[0],
        }]

    def test_rows_persisted_in_input_order(self, mock_gateway, owner_id, make_csv, line):
        names = ["Asha Rao", "Bala Iyer", "Chitra Das"]
        text = make_csv(*[line(full_name=name) for name in names])

        LeadImporter(mock_gateway).import_text(text, owner_id)

        inserted = [c.args[1]["full_name"] for c in mock_gateway.create_buyer.call_args_list]
        assert inserted == names

    def test_requires_owner(self, mock_gateway, make_csv, line):
        with pytest.raises(LeadImportError):
            LeadImporter(mock_gateway).import_text(make_csv(line()), "")

    def test_row_cap_enforced_before_any_insert(self, mock_gateway, owner_id, make_csv, line):
        text = make_csv(*[line() for _ in range(4)])

        with pytest.raises(LeadImportError, match="at most 3"):
            LeadImporter(mock_gateway, max_rows=3).import_text(text, owner_id)

        mock_gateway.create_buyer.assert_not_called()

    def test_row_cap_can_be_disabled(self, mock_gateway, owner_id, make_csv, line):
        text = make_csv(*[line() for _ in range(4)])
        result = LeadImporter(mock_gateway, max_rows=None).import_text(text, owner_id)
        assert result.success_count == 4

    def test_alias_headers(self, mock_gateway, owner_id):
        text = (
            "Name,Mobile,City,Type,BHK,Purpose,Timeline,Lead Source\n"
            "Asha Rao,98765 43210,Zirakpur,Apartment,2,End-Use,Immediate,Referral"
        )

        result = LeadImporter(mock_gateway).import_text(text, owner_id)

        assert result.success_count == 1
        fields = mock_gateway.create_buyer.call_args.args[1]
        assert fields["full_name"] == "Asha Rao"
        assert fields["phone"] == "9876543210"
        assert fields["property_type"] == "apartment"
        assert fields["source"] == "referral"


class TestImportCSV:

    def test_reads_file_with_bom(self, tmp_path, mock_gateway, owner_id, make_csv, line):
        path = tmp_path / "leads.csv"
        path.write_text(make_csv(line()), encoding="utf-8-sig")

        result = LeadImporter(mock_gateway).import_csv(str(path), owner_id)

        assert result.success_count == 1

    def test_missing_file(self, tmp_path, mock_gateway, owner_id):
        with pytest.raises(LeadImportError, match="not found"):
            LeadImporter(mock_gateway).import_csv(str(tmp_path / "nope.csv"), owner_id)

    def test_undecodable_file(self, tmp_path, mock_gateway, owner_id):
        path = tmp_path / "leads.csv"
        path.write_bytes(b"full_name\n\xff\xfe\xfa")

        with pytest.raises(LeadImportError, match="Could not read"):
            LeadImporter(mock_gateway).import_csv(str(path), owner_id)


class TestValidateText:

    def test_valid_file(self, make_csv, line):
        assert LeadImporter(None).validate_text(make_csv(line())) == (True, [])

    def test_reports_missing_columns_and_row_issues(self):
        ok, issues = LeadImporter(None).validate_text("full_name,phone\nAsha,12")

        assert not ok
        assert issues[0].startswith("Missing required columns: city, property_type")
        assert "Row 2: phone: Phone must be 10 digits" in issues


class TestTemplate:

    def test_six_lines_of_fourteen_quoted_fields(self):
        lines = generate_template().split("\n")

        assert len(lines) == 6
        for text in lines:
            fields = text.split('","')
            assert len(fields) == 14
            assert text.startswith('"') and text.endswith('"')

    def test_sample_rows_are_importable(self):
        rows = parse_csv(generate_template())
        assert len(rows) == 5
        for row in rows:
            assert validate_row(row) == []

    def test_samples_cover_property_types(self):
        types = {row["property_type"] for row in parse_csv(generate_template())}
        assert {"apartment", "villa", "plot", "office"} <= types


class TestRoundTrip:

    def test_export_then_import_reconstructs_record(self, mock_gateway, owner_id):
        stored = {
            "full_name": "Neha Gupta",
            "email": "neha@example.in",
            "phone": "9876543210",
            "city": "Panchkula",
            "property_type": "villa",
            "bhk": 4,
            "purpose": "end-use",
            "budget_min": 8000000,
            "budget_max": 12000000,
            "timeline": "immediate",
            "source": "social media",
            "notes": "Needs a garden, near school",
            "tags": ["family", "garden"],
            "status": "viewing",
        }

        result = LeadImporter(mock_gateway).import_text(export_buyers_csv([stored]), owner_id)

        assert result.success_count == 1
        fields = mock_gateway.create_buyer.call_args.args[1]
        assert fields == {**stored, "user_id": owner_id}

    def test_notes_with_quotes_survive_round_trip(self, mock_gateway, owner_id):
        stored = {
            "full_name": "Neha Gupta",
            "email": None,
            "phone": "9876543210",
            "city": "Mohali",
            "property_type": "plot",
            "bhk": None,
            "purpose": "investment",
            "budget_min": None,
            "budget_max": None,
            "timeline": "3-6 months",
            "source": "website",
            "notes": 'Wants 12" tiles, said "ASAP"',
            "tags": [],
            "status": "new",
        }

        result = LeadImporter(mock_gateway).import_text(export_buyers_csv([stored]), owner_id)

        assert result.success_count == 1
        fields = mock_gateway.create_buyer.call_args.args[1]
        assert fields["notes"] == 'Wants 12" tiles, said "ASAP"'
        assert fields == {**stored, "user_id": owner_id}

    def test_quoted_notes_from_hand_written_file(self, mock_gateway, owner_id, make_csv, line):
        text = make_csv(line(notes='"Wants 12"" tiles"'))

        LeadImporter(mock_gateway).import_text(text, owner_id)

        assert mock_gateway.create_buyer.call_args.args[1]["notes"] == 'Wants 12" tiles'


class TestImportResult:

    def test_summary(self):
        result = ImportResult(success_count=3, failed_count=1)
        assert result.summary() == "Successfully imported 3 leads. 1 failed."
        assert result.total_processed == 4


class TestDatabaseErrorFromAPIError:

    def test_wraps_postgrest_error(self):
        error = DatabaseError.from_api_error(
            APIError({"message": "permission denied", "code": "42501", "details": None})
        )
        assert error.message == "permission denied"
        assert str(error) == "permission denied (code=42501)"


class TestCLI:

    def test_template_to_file(self, tmp_path):
        output = tmp_path / "template.csv"

        assert _cli(["template", "--output", str(output)]) == 0
        assert output.read_text(encoding="utf-8").strip() == generate_template()

    def test_validate_reports_issues(self, tmp_path, capsys):
        path = tmp_path / "leads.csv"
        path.write_text("full_name,phone\nAsha,12", encoding="utf-8")

        assert _cli(["validate", str(path)]) == 1
        assert "Phone must be 10 digits" in capsys.readouterr().out

    @pytest.mark.filterwarnings("ignore::RuntimeWarning")
    def test_module_entry_point_exits_with_cli_status(self, tmp_path, monkeypatch):
        output = tmp_path / "template.csv"
        monkeypatch.setattr(sys, "argv", ["leads.importer", "template", "--output", str(output)])

        with pytest.raises(SystemExit) as excinfo:
            runpy.run_module("leads.importer", run_name="__main__")

        assert excinfo.value.code == 0
        assert output.exists()
