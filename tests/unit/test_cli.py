"""
Tests for scripts/sqlcloak_cli.py (importable through the pytest pythonpath).
"""

import pytest

import sqlcloak_cli


@pytest.fixture(autouse=True)
def cli_settings(monkeypatch, settings):
    monkeypatch.setattr(sqlcloak_cli, "get_settings", lambda: settings)
    return settings


@pytest.fixture
def query_file(tmp_path):
    path = tmp_path / "query.sql"
    path.write_text("SELECT Name FROM Customers", encoding="utf-8")
    return path


class TestCli:

    def test_encrypt_file(self, query_file, capsys):
        assert sqlcloak_cli.main(["encrypt", str(query_file)]) == sqlcloak_cli.EXIT_OK
        assert capsys.readouterr().out == "SELECT Nm FROM Cst"

    def test_encrypt_with_catalog_override(self, query_file, catalog_dir, capsys):
        catalog = str(catalog_dir / "encryption_tables.json")
        assert sqlcloak_cli.main(["encrypt", str(query_file), "--catalog", catalog, "--schema", "sales"]) == 0
        assert capsys.readouterr().out == "SELECT Nm FROM Cst"

    def test_decrypt(self, tmp_path, capsys):
        path = tmp_path / "encrypted.sql"
        path.write_text("SELECT Nm FROM Cst", encoding="utf-8")
        assert sqlcloak_cli.main(["decrypt", str(path)]) == sqlcloak_cli.EXIT_OK
        assert capsys.readouterr().out == "SELECT Name_Nm FROM Cst"

    def test_check_reports_original_names(self, query_file, capsys):
        assert sqlcloak_cli.main(["check", str(query_file)]) == sqlcloak_cli.EXIT_NOT_ENCRYPTED
        assert capsys.readouterr().out.strip() == "not encrypted: Customers, Name"

    def test_check_clean_text(self, tmp_path):
        path = tmp_path / "encrypted.sql"
        path.write_text("SELECT Nm FROM Cst", encoding="utf-8")
        assert sqlcloak_cli.main(["check", str(path)]) == sqlcloak_cli.EXIT_OK

    def test_schemas(self, capsys):
        assert sqlcloak_cli.main(["schemas"]) == sqlcloak_cli.EXIT_OK
        lines = capsys.readouterr().out.splitlines()
        assert lines == ["* sales (default)\tmaps/sales.json", "  hr\tmaps/hr.yaml"]

    def test_unknown_schema(self, query_file, capsys):
        assert sqlcloak_cli.main(["encrypt", str(query_file), "--schema", "payroll"]) == sqlcloak_cli.EXIT_ERROR
        assert "payroll" in capsys.readouterr().err

    def test_missing_input_file(self, tmp_path):
        assert sqlcloak_cli.main(["encrypt", str(tmp_path / "nope.sql")]) == sqlcloak_cli.EXIT_ERROR
