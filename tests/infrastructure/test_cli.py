"""End-to-end tests of the click CLI against a temporary data directory."""

import json

import pytest
import structlog
from click.testing import CliRunner

from cylinder_ledger.infrastructure.cli.main import cli


@pytest.fixture
def run(tmp_path, monkeypatch):
    monkeypatch.setenv("CYLINDER_LEDGER_DATA_DIR", str(tmp_path))
    monkeypatch.setenv("CYLINDER_LEDGER_ACTOR", "tester")
    monkeypatch.setenv("CYLINDER_LEDGER_LOG_LEVEL", "ERROR")
    runner = CliRunner()

    def invoke(*args: str):
        return runner.invoke(cli, list(args), catch_exceptions=False)

    yield invoke
    # configure_logging bound the runner's stderr; drop it
    structlog.reset_defaults()


@pytest.fixture
def stocked(run):
    run("warehouse", "add", "--id", "W1", "--name", "Nairobi")
    run("warehouse", "add", "--id", "W2", "--name", "Mombasa")
    run("product", "add", "--sku", "LPG-13", "--name", "13kg Refill", "--price", "1200")
    run(
        "inventory", "adjust", "--warehouse", "W1", "--product", "LPG-13",
        "--full", "100", "--reason", "opening stock", "--type", "received_full",
    )
    return run


class TestCatalogCommands:

    def test_add_and_list_products(self, run):
        result = run("product", "add", "--sku", "LPG-6", "--name", "6kg Refill", "--price", "650")
        assert result.exit_code == 0
        assert "KSh 650.00" in result.output

        result = run("product", "list")
        assert "LPG-6" in result.output

    def test_duplicate_warehouse_is_an_error(self, run):
        run("warehouse", "add", "--id", "W1", "--name", "Nairobi")
        result = run("warehouse", "add", "--id", "W1", "--name", "Again")
        assert result.exit_code == 1
        assert "already exists" in result.output

    def test_empty_lists(self, run):
        assert "No products found." in run("product", "list").output
        assert "No warehouses found." in run("warehouse", "list").output
        assert "No orders found." in run("order", "list").output
        assert "No inventory records found." in run("inventory", "show").output


class TestInventoryCommands:

    def test_adjust_and_show(self, stocked):
        result = stocked("inventory", "show")
        assert result.exit_code == 0
        assert "W1" in result.output
        assert "100" in result.output

    def test_adjust_requires_reason(self, stocked):
        result = stocked("inventory", "adjust", "--id", "1", "--full", "-1")
        assert result.exit_code == 2

    def test_adjust_needs_a_target(self, stocked):
        result = stocked("inventory", "adjust", "--full", "1", "--reason", "x")
        assert result.exit_code == 2
        assert "--warehouse" in result.output

    def test_overdraw_is_reported(self, stocked):
        result = stocked("inventory", "adjust", "--id", "1", "--full", "-101", "--reason", "count")
        assert result.exit_code == 1
        assert "negative" in result.output

    def test_transfer(self, stocked):
        result = stocked(
            "inventory", "transfer", "--from", "W1", "--to", "W2",
            "--product", "LPG-13", "--full", "30",
        )
        assert result.exit_code == 0
        assert "W1/LPG-13: full=70" in result.output
        assert "W2/LPG-13: full=30" in result.output

    def test_movements_and_availability(self, stocked):
        result = stocked("inventory", "movements")
        assert "adjustment" in result.output
        assert "received_full: opening stock" in result.output
        assert "by tester" in result.output

        result = stocked("inventory", "availability", "LPG-13")
        assert "100" in result.output


class TestOrderCommands:

    def _create(self, run, items: str = "LPG-13:30") -> None:
        result = run("order", "create", "--customer", "CUST-1", "--address", "ADDR-1", "--items", items)
        assert result.exit_code == 0, result.output

    def test_create_and_show(self, stocked, tmp_path):
        self._create(stocked)
        result = stocked("order", "show", "--id", "1")
        assert "status=draft" in result.output
        assert "KSh 36,000.00" in result.output
        assert "Next: confirmed, cancelled" in result.output
        saved = json.loads((tmp_path / "orders.json").read_text())
        assert saved[0]["customer_id"] == "CUST-1"

    def test_bad_items_format(self, stocked):
        result = stocked("order", "create", "--customer", "C", "--address", "A", "--items", "LPG-13")
        assert result.exit_code == 2

    def test_lifecycle(self, stocked):
        self._create(stocked)
        assert stocked("order", "status", "--id", "1", "--to", "confirmed").exit_code == 0
        result = stocked(
            "order", "status", "--id", "1", "--to", "scheduled", "--scheduled-date", "2999-01-01"
        )
        assert "now scheduled" in result.output
        stocked("order", "status", "--id", "1", "--to", "en_route")
        stocked("order", "status", "--id", "1", "--to", "delivered")

        result = stocked("order", "status", "--id", "1", "--to", "cancelled")
        assert result.exit_code == 1
        assert "Cannot move order from 'delivered' to 'cancelled'" in result.output

        result = stocked("inventory", "availability", "LPG-13")
        assert "70" in result.output
        assert "by tester" in stocked("order", "show", "--id", "1").output

    def test_bad_date(self, stocked):
        self._create(stocked)
        result = stocked("order", "status", "--id", "1", "--to", "scheduled", "--scheduled-date", "soon")
        assert result.exit_code == 2

    def test_line_editing(self, stocked):
        self._create(stocked)
        stocked("order", "status", "--id", "1", "--to", "confirmed")
        result = stocked("order", "update-line", "--id", "1", "--line", "1", "--quantity", "40")
        assert result.exit_code == 0
        assert "KSh 48,000.00" in result.output

        result = stocked("order", "remove-line", "--id", "1", "--line", "1")
        assert result.exit_code == 1
        assert "at least one line" in result.output

    def test_bulk_status(self, stocked):
        self._create(stocked, "LPG-13:60")
        self._create(stocked, "LPG-13:60")

        result = stocked("order", "bulk-status", "--ids", "1,2", "--to", "confirmed")

        assert result.exit_code == 1
        assert "Order #1: confirmed" in result.output
        assert "Order #2: FAILED — InsufficientStock:" in result.output
        assert "1 updated, 1 failed." in result.output

        result = stocked("order", "list", "--status", "confirmed")
        assert "CUST-1" in result.output

    def test_unknown_log_level(self, run):
        result = run("--log-level", "LOUD", "product", "list")
        assert result.exit_code == 2
