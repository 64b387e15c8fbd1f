"""Tests for exhaustive combination search."""

import asyncio

import pytest

from checking.base import ScriptedChecker
from conftest import entry, fix
from repair.exhaustive import ExhaustiveRepair, merged_combinations
from repair.fragments import merge
from repair.models import Program, RepairStatus
from settings import ExhaustiveConfig

PROGRAM = Program(source="def f(x):\n    return x\n", name="f.py")


class SlowBaselineChecker(ScriptedChecker):
    async def check_attempt(self, program, held=None):
        await asyncio.sleep(0.05)
        return await super().check_attempt(program, held)


class TestMergedCombinations:
    def test_smallest_first(self):
        combos = list(merged_combinations([fix(1), fix(2), fix(3)]))
        assert [len(c) for c in combos] == [1, 1, 1, 2, 2, 2, 3]

    def test_duplicate_location_sets_skipped(self):
        combos = list(merged_combinations([fix(1, text="a"), fix(1, text="b")]))
        # {1} from a, {1} from b and the merge {1} all touch the same location.
        assert combos == [fix(1, text="a")]


class TestExhaustiveRepair:
    @pytest.mark.asyncio
    async def test_finds_combination(self):
        fa, fb = fix(1), fix(2)
        checker = ScriptedChecker(
            baseline=[entry(fa, (True, False)), entry(fb, (False, True))],
            verdicts={merge(fa, fb).key_set(): True},
        )
        result = await ExhaustiveRepair(checker, ExhaustiveConfig(batch_size=2)).repair(PROGRAM)

        assert result.status == RepairStatus.SUCCESS
        assert result.fixes == [merge(fa, fb)]
        assert result.rounds == 2

    @pytest.mark.asyncio
    async def test_collects_all_passing_fixes(self):
        fa, fb = fix(1), fix(2)
        checker = ScriptedChecker(
            baseline=[entry(fa, (True, False)), entry(fb, (False, True))],
            verdicts={fa.key_set(): (True, True), merge(fa, fb).key_set(): True},
        )
        result = await ExhaustiveRepair(checker, ExhaustiveConfig(batch_size=1)).repair(PROGRAM)
        assert result.fixes == [fa, merge(fa, fb)]

    @pytest.mark.asyncio
    async def test_stop_on_results(self):
        fa, fb = fix(1), fix(2)
        checker = ScriptedChecker(
            baseline=[entry(fa, (True, False)), entry(fb, (False, True))],
            verdicts={fa.key_set(): True, merge(fa, fb).key_set(): True},
        )
        config = ExhaustiveConfig(batch_size=1, stop_on_results=True)
        result = await ExhaustiveRepair(checker, config).repair(PROGRAM)
        assert result.fixes == [fa]
        assert result.rounds == 1

    @pytest.mark.asyncio
    async def test_baseline_success_kept(self):
        checker = ScriptedChecker(baseline=[entry(fix(1), True)])
        config = ExhaustiveConfig(stop_on_results=True)
        result = await ExhaustiveRepair(checker, config).repair(PROGRAM)
        assert result.fixes == [fix(1)]
        assert result.rounds == 0

    @pytest.mark.asyncio
    async def test_nothing_found(self):
        checker = ScriptedChecker(baseline=[entry(fix(1), (True, False))])
        result = await ExhaustiveRepair(checker).repair(PROGRAM)
        assert result.status == RepairStatus.EXHAUSTED
        assert result.fixes == []

    @pytest.mark.asyncio
    async def test_budget_spent(self):
        checker = SlowBaselineChecker(
            baseline=[entry(fix(1), (True, False))],
            verdicts={fix(1).key_set(): True},
        )
        config = ExhaustiveConfig(search_budget_seconds=0.001)
        result = await ExhaustiveRepair(checker, config).repair(PROGRAM)
        assert result.status == RepairStatus.EXHAUSTED
        assert result.rounds == 0
        assert checker.programs == []


class TestExhaustiveConfig:
    def test_defaults(self):
        config = ExhaustiveConfig()
        assert config.search_budget_seconds == 300
        assert config.stop_on_results is False
        assert config.batch_size == 10

    def test_invalid_batch_size(self):
        with pytest.raises(ValueError, match="batch_size"):
            ExhaustiveConfig(batch_size=0)
