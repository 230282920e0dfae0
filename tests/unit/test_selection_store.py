import json

from sqlcloak.config import SelectionConfig
from sqlcloak.infrastructure.selection_store import SelectionStore


class TestSelectionStore:

    def test_round_trip_through_file(self, tmp_path, sales_schema):
        state_file = tmp_path / "state" / "last.json"
        SelectionStore(SelectionConfig(state_file=str(state_file))).save(sales_schema)

        assert json.loads(state_file.read_text()) == {"name": "sales", "url": "maps/sales.json", "default": True}
        assert SelectionStore(SelectionConfig(state_file=str(state_file))).load() == sales_schema

    def test_missing_file_means_no_selection(self, tmp_path):
        assert SelectionStore(SelectionConfig(state_file=str(tmp_path / "none.json"))).load() is None

    def test_corrupt_file_means_no_selection(self, tmp_path):
        state_file = tmp_path / "last.json"
        state_file.write_text("{not json", encoding="utf-8")
        assert SelectionStore(SelectionConfig(state_file=str(state_file))).load() is None

    def test_invalid_entry_means_no_selection(self, tmp_path):
        state_file = tmp_path / "last.json"
        state_file.write_text(json.dumps({"name": "sales"}), encoding="utf-8")
        assert SelectionStore(SelectionConfig(state_file=str(state_file))).load() is None

    def test_memory_only(self, tmp_path, hr_schema):
        state_file = tmp_path / "last.json"
        store = SelectionStore(SelectionConfig(state_file=str(state_file), persist=False))
        assert store.load() is None
        store.save(hr_schema)
        assert store.load() == hr_schema
        assert not state_file.exists()

    def test_write_failure_is_not_raised(self, tmp_path, hr_schema):
        blocker = tmp_path / "blocker"
        blocker.write_text("", encoding="utf-8")
        store = SelectionStore(SelectionConfig(state_file=str(blocker / "last.json")))
        store.save(hr_schema)
        assert store.load() is None
