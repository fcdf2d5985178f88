"""
Tests for matrix export
"""

import csv
import io
import json

import pytest
import yaml

from llm_sizer.export import export_matrix, matrix_to_records
from llm_sizer.matrix import build_matrix


@pytest.fixture
def rows():
    return build_matrix([1, 7], ram_gb=16)


class TestExportMatrix:
    """Test export_matrix"""

    def test_json(self, rows):
        """Test JSON export"""
        data = json.loads(export_matrix(rows, "json"))

        assert [record["label"] for record in data] == ["1B", "7B"]
        cell = data[1]["cells"]["Q4_K_M"]
        assert cell["verdict"] == "comfortable"
        assert cell["total_memory_gb"] == 5.84
        assert cell["headroom_gb"] == 3.96
        assert data[1]["cells"]["F16"]["verdict"] == "no"

    def test_csv(self, rows):
        """Test CSV export flattens cells into columns"""
        reader = csv.DictReader(io.StringIO(export_matrix(rows, "csv")))
        records = list(reader)

        assert len(records) == 2
        assert "Q4_K_M_verdict" in reader.fieldnames
        assert "F16_headroom_gb" in reader.fieldnames
        assert records[1]["label"] == "7B"
        assert records[1]["Q8_0_verdict"] == "maybe"

    def test_yaml(self, rows):
        """Test YAML export"""
        data = yaml.safe_load(export_matrix(rows, "yaml"))
        assert data[0]["params_b"] == 1
        assert set(data[0]["cells"]) == {"Q4_K_M", "Q5_K_M", "Q8_0", "F16"}

    def test_unsupported_format(self, rows):
        """Test unknown formats raise"""
        with pytest.raises(ValueError, match="Unsupported format"):
            export_matrix(rows, "xml")

    def test_empty_csv(self):
        """Test exporting no rows"""
        assert export_matrix([], "csv") == ""


class TestMatrixToRecords:
    """Test matrix_to_records"""

    def test_unknown_ram_headroom_is_none(self):
        """Unknown RAM exports null headroom"""
        records = matrix_to_records(build_matrix([3], ram_gb=None))
        for cell in records[0]["cells"].values():
            assert cell["verdict"] == "unknown"
            assert cell["headroom_gb"] is None

    def test_unknown_ram_csv_blank(self):
        """Null headroom becomes an empty CSV field"""
        reader = csv.DictReader(io.StringIO(export_matrix(build_matrix([3]), "csv")))
        assert next(reader)["Q4_K_M_headroom_gb"] == ""


if __name__ == "__main__":
    pytest.main([__file__])
