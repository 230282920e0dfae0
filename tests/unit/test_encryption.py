import pytest

from sqlcloak.domain.encryption_map import EncryptionMap
from sqlcloak.repositories.encryption import QueryEncryptor, encrypt_text
from sqlcloak.repositories.verification import check_text


class TestEncryptText:

    def test_single_table_scenario(self):
        encryption_map = EncryptionMap(tables={"Customers": "Cst"}, columns={"Cst": {"Name": "Nm"}})
        assert encrypt_text("SELECT Name FROM Customers", encryption_map) == "SELECT Nm FROM Cst"

    def test_alias_scenario(self):
        encryption_map = EncryptionMap(tables={"orig_table": "enc_table"}, columns={"enc_table": {"col": "enc_col"}})
        assert encrypt_text("SELECT a.col FROM orig_table AS a", encryption_map) == "SELECT a.enc_col FROM enc_table AS a"

    @pytest.mark.parametrize("text", ["", "SELECT 1", "SELECT x FROM y WHERE z = @Name"])
    def test_text_without_original_names_unchanged(self, encryption_map, text):
        assert encrypt_text(text, encryption_map) == text

    def test_table_replaced(self, encryption_map):
        result = encrypt_text("SELECT * FROM Orders", encryption_map)
        assert result == "SELECT * FROM Ord"

    @pytest.mark.parametrize("source", [
        "SELECT Name, Email FROM Customers WHERE Id = @Id",
        "SELECT o.Total, c.Name FROM Orders o JOIN Customers c ON o.CustomerId = c.Id",
        "SELECT p.Sku, p.Name FROM Products AS p",
        "select Total from Orders order by Total",
    ])
    def test_encrypted_text_passes_check(self, encryption_map, source):
        assert check_text(encrypt_text(source, encryption_map), encryption_map) is True

    def test_encryptor_reuses_candidate_cache(self, encryption_map):
        encryptor = QueryEncryptor(encryption_map)
        assert encryptor.encrypt("SELECT Name FROM Customers") == "SELECT Nm FROM Cst"
        assert encryptor.encrypt("SELECT Name FROM Products") == "SELECT PrdNm FROM Prd"
        assert encryptor.disambiguator.first_order_candidates("Name") == ["Customers", "Products"]
