"""Tests for run_sourcing.py CLI commands."""
import json
from pathlib import Path

import pytest

from run_sourcing import create_parser, main

SAMPLE_DATASET = str(Path(__file__).resolve().parent.parent / "data" / "investors_static.json")


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    monkeypatch.setattr("run_sourcing.setup_logging", lambda verbose=False: None)
    for name in ("PIPELINE_DB_PATH", "ENRICHMENT_SEED", "INVESTOR_DATASET_PATH"):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def db_path(tmp_path):
    return str(tmp_path / "pipeline.db")


class TestParser:
    """Test CLI argument parsing."""

    def test_match_flags(self):
        parser = create_parser()
        args = parser.parse_args([
            "match", "--strategy", "{}", "--seed", "5", "--limit", "3", "--explain",
        ])
        assert args.command == "match"
        assert args.seed == 5
        assert args.limit == 3
        assert args.explain is True

    def test_update_requires_known_status(self):
        parser = create_parser()
        with pytest.raises(SystemExit):
            parser.parse_args(["update", "--email", "a@b.vc", "--status", "ghosted"])

    def test_store_commands_default_founder(self):
        parser = create_parser()
        for command in ("pipeline", "stats"):
            args = parser.parse_args([command])
            assert args.founder_id == "default"
            assert args.db_path is None

    def test_clear_has_no_default_founder(self):
        args = create_parser().parse_args(["clear"])
        assert args.founder_id is None
        assert args.all is False

    def test_import_csv_defaults(self):
        args = create_parser().parse_args(["import-csv", "--input", "in.csv"])
        assert args.layout == "standard"
        assert args.output.endswith("investors.json")
        assert args.limit is None

    def test_import_csv_rejects_unknown_layout(self):
        with pytest.raises(SystemExit):
            create_parser().parse_args(["import-csv", "--input", "in.csv", "--layout", "crm"])


class TestMatchCommand:

    @pytest.mark.asyncio
    async def test_match_sample_dataset(self, capsys):
        code = await main([
            "match",
            "--dataset", SAMPLE_DATASET,
            "--seed", "1",
            "--strategy", '{"sectors": ["Fintech"], "geographicFocus": "UAE"}',
            "--explain",
        ])

        assert code == 0
        payload = json.loads(capsys.readouterr().out)
        names = [inv["name"] for inv in payload["investors"]]
        assert names[0] == "Omar Haddad"
        assert all("Fintech" in inv["sectors"] for inv in payload["investors"])
        assert payload["scores"][0]["total"] == pytest.approx(0.85)
        assert payload["total_count"] == len(names)

    @pytest.mark.asyncio
    async def test_match_without_strategy_lists_everyone(self, capsys):
        code = await main(["match", "--dataset", SAMPLE_DATASET, "--seed", "1", "--limit", "2"])

        assert code == 0
        payload = json.loads(capsys.readouterr().out)
        assert payload["total_count"] == 8
        assert len(payload["investors"]) == 2


class TestPipelineCommands:

    @pytest.mark.asyncio
    async def test_update_then_pipeline(self, capsys, db_path):
        assert await main([
            "update", "--db-path", db_path, "--founder-id", "acme",
            "--email", "jane@fund.vc", "--status", "replied",
            "--metadata", '{"thread": "t-1"}',
        ]) == 0
        updated = json.loads(capsys.readouterr().out)
        assert updated["investor_id"] == "jane@fund.vc"
        assert updated["thread"] == "t-1"

        assert await main(["pipeline", "--db-path", db_path, "--founder-id", "acme"]) == 0
        snapshot = json.loads(capsys.readouterr().out)
        assert snapshot["stats"]["replied"] == 1
        assert snapshot["investors"][0]["status"] == "replied"

    @pytest.mark.asyncio
    async def test_update_needs_an_investor(self, capsys, db_path):
        assert await main(["update", "--db-path", db_path, "--status", "contacted"]) == 1
        assert "--investor-id or --email required" in capsys.readouterr().out

    @pytest.mark.asyncio
    async def test_bulk_and_stats(self, capsys, tmp_path, db_path):
        updates = tmp_path / "updates.json"
        updates.write_text(json.dumps([
            {"investorEmail": "a@fund.vc", "status": "contacted"},
            {"investorEmail": "b@fund.vc", "status": "booked"},
        ]), encoding="utf-8")

        assert await main(["bulk", "--db-path", db_path, "--file", str(updates)]) == 0
        assert json.loads(capsys.readouterr().out)["updated"] == 2

        assert await main(["stats", "--db-path", db_path]) == 0
        stats = json.loads(capsys.readouterr().out)
        assert stats["contacted"] == 2
        assert stats["booked"] == 1
        assert stats["conversion_rate"] == 50.0

    @pytest.mark.asyncio
    async def test_bulk_rejects_non_array(self, capsys, db_path):
        assert await main(["bulk", "--db-path", db_path, "--file", '{"status": "booked"}']) == 1

    @pytest.mark.asyncio
    async def test_clear_requires_scope(self, capsys, db_path):
        assert await main(["clear", "--db-path", db_path]) == 1

        assert await main([
            "update", "--db-path", db_path, "--founder-id", "acme",
            "--investor-id", "inv-1", "--status", "contacted",
        ]) == 0
        assert await main(["clear", "--db-path", db_path, "--founder-id", "acme"]) == 0
        capsys.readouterr()

        assert await main(["pipeline", "--db-path", db_path, "--founder-id", "acme"]) == 0
        assert json.loads(capsys.readouterr().out)["investors"] == []

    @pytest.mark.asyncio
    async def test_no_command_prints_help(self, capsys):
        assert await main([]) == 1
        assert "usage" in capsys.readouterr().out.lower()

    @pytest.mark.asyncio
    async def test_wire_output(self, capsys, db_path):
        assert await main([
            "update", "--db-path", db_path, "--founder-id", "acme",
            "--investor-id", "inv-1", "--status", "not_interested",
        ]) == 0
        capsys.readouterr()

        assert await main(["pipeline", "--db-path", db_path, "--founder-id", "acme", "--wire"]) == 0
        snapshot = json.loads(capsys.readouterr().out)
        assert snapshot["stats"]["notInterested"] == 1
        assert snapshot["investors"][0]["investorId"] == "inv-1"

        assert await main(["stats", "--db-path", db_path, "--founder-id", "acme", "--wire"]) == 0
        stats = json.loads(capsys.readouterr().out)
        assert stats["responseRate"] == 0.0
        assert "response_rate" not in stats


class TestStrategyCommand:

    @pytest.mark.asyncio
    async def test_completes_from_founder(self, capsys):
        code = await main([
            "strategy",
            "--founder", '{"stage": "Seed", "fundraisingTarget": "$1.5M", "description": "Payments in Dubai"}',
        ])

        assert code == 0
        strategy = json.loads(capsys.readouterr().out)
        assert strategy["geographicFocus"] == "United Arab Emirates"
        assert strategy["stages"] == ["Seed"]
        assert strategy["checkSizeRange"] == "$1.5M"
        assert strategy["investorTypes"] == ["Venture Capital", "Angel Investors"]


class TestDatasetCommands:

    @pytest.mark.asyncio
    async def test_import_partner_csv_then_match(self, capsys, tmp_path):
        csv_path = tmp_path / "partners.csv"
        csv_path.write_text(
            "Partner,First,Last,Title,Email,Country\n"
            "Acme Ventures,Jane,Doe,GP,jane@acme.vc,India\n"
            ",,,,,\n",
            encoding="utf-8",
        )
        output = tmp_path / "investors.json"

        assert await main([
            "import-csv", "--input", str(csv_path), "--output", str(output), "--layout", "partner",
        ]) == 0
        assert "Imported 1 investors" in capsys.readouterr().out

        assert await main(["match", "--dataset", str(output), "--seed", "1"]) == 0
        payload = json.loads(capsys.readouterr().out)
        assert payload["investors"][0]["name"] == "Jane Doe"
        assert payload["investors"][0]["firm"] == "Acme Ventures"

    @pytest.mark.asyncio
    async def test_import_csv_missing_header_fails(self, capsys, tmp_path):
        csv_path = tmp_path / "in.csv"
        csv_path.write_text("name,firm\nJane,Acme\n", encoding="utf-8")

        code = await main(["import-csv", "--input", str(csv_path), "--output", str(tmp_path / "out.json")])

        assert code == 1
        assert "Missing required header" in capsys.readouterr().out
        assert not (tmp_path / "out.json").exists()

    @pytest.mark.asyncio
    async def test_fill_emails(self, capsys, tmp_path):
        dataset = tmp_path / "investors_static.json"
        dataset.write_text(json.dumps([{"name": "Jane Doe", "firm": "Acme Ventures"}]), encoding="utf-8")

        assert await main(["fill-emails", "--dataset", str(dataset)]) == 0
        assert "Updated 1 investor emails" in capsys.readouterr().out

        [row] = json.loads(dataset.read_text(encoding="utf-8"))
        assert row["email"] == "jane.doe@acme.com"
        assert (tmp_path / "investors_static.backup.json").exists()
