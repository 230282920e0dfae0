import pytest

from sqlcloak.repositories.table_substitution import substitute_tables


TABLES = {"Customers": "Cst", "Orders": "Ord"}


class TestSubstituteTables:

    def test_replaces_every_occurrence(self):
        result = substitute_tables("SELECT * FROM Customers JOIN Orders ON Customers.Id = Orders.Id", TABLES)
        assert result == "SELECT * FROM Cst JOIN Ord ON Cst.Id = Ord.Id"

    def test_whole_words_only(self):
        result = substitute_tables("SELECT CustomersCount, OldOrders FROM Customers", TABLES)
        assert result == "SELECT CustomersCount, OldOrders FROM Cst"

    def test_case_sensitive(self):
        assert substitute_tables("select * from customers", TABLES) == "select * from customers"

    def test_idempotent(self):
        once = substitute_tables("SELECT * FROM Orders", TABLES)
        assert substitute_tables(once, TABLES) == once

    def test_temp_table_prefix_is_a_boundary(self):
        assert substitute_tables("SELECT * INTO #Orders FROM Orders", TABLES) == "SELECT * INTO #Ord FROM Ord"

    @pytest.mark.parametrize("text", ["", "SELECT 1", "SELECT a FROM b"])
    def test_text_without_tables_unchanged(self, text):
        assert substitute_tables(text, TABLES) == text
