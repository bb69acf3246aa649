"""Tests for the hopfield-relax command line driver."""

import json
import os
import sys

import pytest

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))
from hopfield_cli import EXIT_ERROR, EXIT_NO_EQUILIBRIUM, EXIT_OK, build_parser, main
from hopfield_codec import save_file
from hopfield_network import HopfieldNetwork
from hopfield_problems import rooks_problem


class TestParser:

    def test_options_after_problem(self):
        args = build_parser().parse_args(["queens", "8", "--strategy", "random-seq", "--seed", "3"])
        assert args.problem == "queens"
        assert args.size == 8
        assert args.strategy == "random-seq"
        assert args.seed == 3

    def test_tsp_delta(self):
        args = build_parser().parse_args(["tsp", "cities.txt", "--delta", "15"])
        assert args.delta == 15.0

    def test_problem_required(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args([])


class TestMain:

    def test_rooks(self, capsys):
        assert main(["rooks", "4", "--seed", "1"]) == EXIT_OK
        out = capsys.readouterr().out
        assert "valid: True" in out
        assert "steps:" in out

    def test_queens_budget_exhausted(self, capsys):
        assert main(["queens", "6", "--max-steps", "1"]) == EXIT_NO_EQUILIBRIUM
        assert "equilibrium=False" in capsys.readouterr().out

    def test_annealed_tsp(self, tmp_path, capsys):
        path = tmp_path / "cities.txt"
        path.write_text("4\n0 0\n0 1\n1 1\n1 0\n")
        code = main(["tsp", str(path), "--delta", "20", "--schedule", "log",
                     "--temperature", "2", "--strategy", "random-seq", "--seed", "5"])
        assert code in (EXIT_OK, EXIT_NO_EQUILIBRIUM)
        assert "tour:" in capsys.readouterr().out

    def test_load_and_checkpoint(self, tmp_path, capsys):
        source = tmp_path / "net.txt"
        save_file(rooks_problem(3), source)
        checkpoint = tmp_path / "out.json"
        assert main(["load", str(source), "--print-weights",
                     "--checkpoint", str(checkpoint)]) == EXIT_OK
        restored = HopfieldNetwork()
        restored.restore(str(checkpoint))
        assert restored.count == 9
        assert "energy:" in capsys.readouterr().out

    def test_missing_file(self, tmp_path):
        assert main(["load", str(tmp_path / "missing.txt")]) == EXIT_ERROR

    def test_malformed_file(self, tmp_path):
        path = tmp_path / "bad.txt"
        path.write_text("2\n1 1\n0 1\n2 0\n")
        assert main(["load", str(path)]) == EXIT_ERROR

    def test_invalid_budget(self):
        assert main(["rooks", "3", "--max-steps", "-1"]) == EXIT_ERROR

    def test_zero_period_rejected(self):
        assert main(["rooks", "3", "--schedule", "exp", "--temperature", "5",
                     "--period", "0"]) == EXIT_ERROR

    @pytest.mark.parametrize("problem", ["queens", "rooks"])
    def test_empty_board_rejected(self, problem, capsys):
        assert main([problem, "0"]) == EXIT_ERROR
        assert capsys.readouterr().out == ""

    def test_config_file(self, tmp_path, capsys):
        path = tmp_path / "run.json"
        path.write_text(json.dumps({"run": {"strategy": "random", "seed": 2}}))
        assert main(["rooks", "4", "--config", str(path)]) == EXIT_OK
        assert "(random," in capsys.readouterr().out

    def test_run_log(self, tmp_path):
        log_file = tmp_path / "logs" / "runs.log"
        path = tmp_path / "run.json"
        path.write_text(json.dumps({"logging": {"log_file": str(log_file)}}))
        assert main(["rooks", "3", "--config", str(path)]) == EXIT_OK
        events = [json.loads(line)["event"] for line in log_file.read_text().splitlines()]
        assert events == ["start", "finish"]
