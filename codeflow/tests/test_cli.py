"""
Tests for the command-line interface.
"""

import json

import pytest

from ..cli import main
from ..engine_core.puzzle import is_solved
from ..persistence import PuzzleModel


class TestGenerateCommand:

    def test_prints_puzzle_json(self, capsys):
        main(["generate", "4", "--locked", "20", "--seed", "3"])
        data = json.loads(capsys.readouterr().out)

        assert data["size"] == 4
        assert data["locked_percent"] == 20
        assert len(data["grid"]) == 4

    def test_seed_is_reproducible(self, capsys):
        main(["generate", "5", "--seed", "9"])
        first = capsys.readouterr().out
        main(["generate", "5", "--seed", "9"])
        assert capsys.readouterr().out == first

    def test_solved_flag(self, capsys):
        main(["generate", "3", "--seed", "1", "--solved"])
        puzzle = PuzzleModel.model_validate_json(capsys.readouterr().out).to_puzzle()
        assert is_solved(puzzle)

    def test_invalid_size_exits(self, capsys):
        with pytest.raises(SystemExit) as exc_info:
            main(["generate", "2"])
        assert exc_info.value.code == 1
        assert "Error" in capsys.readouterr().out


class TestBacklogCommand:

    def test_lists_tickets(self, capsys):
        main(["backlog", "--count", "3", "--seed", "5"])
        lines = capsys.readouterr().out.strip().splitlines()

        assert sum(1 for line in lines if line.startswith("TICKET-")) == 3
        assert lines[-1].startswith("3 tickets")


def test_no_command_prints_help():
    with pytest.raises(SystemExit):
        main([])
