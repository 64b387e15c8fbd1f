"""Tests for the generational repair driver."""

import pytest

from checking.base import RepairChecker, ScriptedChecker
from conftest import entry, fix
from repair.fragments import FixFragment, merge
from repair.genetic import GeneticRepair, RepairState, successful
from repair.models import Program, RepairStatus
from settings import GeneticConfig

PROGRAM = Program(source="def f(x):\n    return x\n", name="f.py")


class RaisingChecker(ScriptedChecker):
    """Answers the baseline, then fails every re-check."""

    async def check_attempt(self, program, held=None):
        if held is not None:
            self.calls.append(held)
            raise RuntimeError("compiler exploded")
        return await super().check_attempt(program, held)


class TestSuccessful:
    def test_filters_full_passes(self):
        attempt = [entry(fix(1), True), entry(fix(2), (True, True)), entry(fix(3), (True, False))]
        assert [e.fix for e in successful(attempt)] == [fix(1), fix(2)]


class TestTermination:
    @pytest.mark.asyncio
    async def test_baseline_full_pass_returns_immediately(self):
        checker = ScriptedChecker(baseline=[entry(fix(1), (True, True, True)), entry(fix(2), (True, False, False))])
        result = await GeneticRepair(checker, GeneticConfig()).repair(PROGRAM)

        assert result.status == RepairStatus.SUCCESS
        assert result.fixes == [fix(1)]
        assert result.rounds == 1
        assert checker.calls == [None]  # selection never ran

    @pytest.mark.asyncio
    async def test_collapsed_pass_counts_as_success(self):
        checker = ScriptedChecker(baseline=[entry(fix(1), True)])
        result = await GeneticRepair(checker).repair(PROGRAM)
        assert result.fixes == [fix(1)]

    @pytest.mark.asyncio
    async def test_successes_deduplicated_by_locations(self):
        checker = ScriptedChecker(baseline=[entry(fix(1, text="a"), True), entry(fix(1, text="b"), True)])
        result = await GeneticRepair(checker).repair(PROGRAM)
        assert result.fixes == [fix(1, text="a")]


class TestExhaustion:
    @pytest.mark.asyncio
    async def test_zero_rounds_returns_empty(self):
        checker = ScriptedChecker(baseline=[entry(fix(1), (True, False)), entry(fix(2), (False, True))])
        result = await GeneticRepair(checker, GeneticConfig(max_rounds=0)).repair(PROGRAM)

        assert result.status == RepairStatus.EXHAUSTED
        assert result.fixes == []
        assert result.error_message

    @pytest.mark.asyncio
    async def test_nothing_to_breed(self):
        checker = ScriptedChecker(baseline=[entry(fix(1), (True, False)), entry(fix(2), False)])
        result = await GeneticRepair(checker, GeneticConfig(max_rounds=5)).repair(PROGRAM)
        assert result.status == RepairStatus.EXHAUSTED
        assert checker.calls == [None]

    @pytest.mark.asyncio
    async def test_round_budget_bounds_search(self):
        # Every re-check reports the same partial progress: never converges.
        def responder(program, held):
            return [entry(fix(7), (True, False)), entry(fix(8), (False, False))]

        checker = ScriptedChecker(
            baseline=[entry(fix(1), (True, False)), entry(fix(2), (True, False))],
            responder=responder,
        )
        result = await GeneticRepair(checker, GeneticConfig(max_rounds=3)).repair(PROGRAM)
        assert result.status == RepairStatus.EXHAUSTED
        assert result.rounds <= 3


class TestConvergence:
    @pytest.mark.asyncio
    async def test_complementary_fixes_merge_into_repair(self):
        fa, fb = fix(1), fix(2)
        child = merge(fa, fb)
        checker = ScriptedChecker(
            baseline=[entry(fa, (True, False, False)), entry(fb, (False, True, True))],
            responses={child.key_set(): [entry(FixFragment(), True)]},
        )
        result = await GeneticRepair(checker).repair(PROGRAM)

        assert result.status == RepairStatus.SUCCESS
        assert result.fixes == [merge(fb, fa)]  # fb is fitter and leads
        assert result.rounds == 2
        assert len(result.fitness_history) == 1

    @pytest.mark.asyncio
    async def test_recheck_results_keep_held_locations(self):
        fa, fb, fc = fix(1), fix(2), fix(3)
        held = merge(fa, fb)
        checker = ScriptedChecker(
            baseline=[entry(fa, (True, False)), entry(fb, (False, True))],
            responses={held.key_set(): [entry(fc, (True, True))]},
        )
        result = await GeneticRepair(checker).repair(PROGRAM)
        assert result.fixes == [merge(fc, held)]
        assert result.fixes[0].key_set() == fix(1, 2, 3).key_set()

    @pytest.mark.asyncio
    async def test_children_applied_to_original_program(self):
        fa, fb = fix(1), fix(2)
        checker = ScriptedChecker(
            baseline=[entry(fa, (True, False)), entry(fb, (False, True))],
            responses={merge(fa, fb).key_set(): [entry(FixFragment(), True)]},
        )
        seen = []

        class Spy(RepairChecker):
            async def check_attempt(self, program, held=None):
                seen.append(program)
                return await checker.check_attempt(program, held)

            async def check_program(self, program):
                return await checker.check_program(program)

        await GeneticRepair(Spy()).repair(PROGRAM)
        assert seen[0].edits == FixFragment()
        assert seen[1].source == PROGRAM.source
        assert seen[1].edits == merge(fa, fb)


class TestFailureTolerance:
    @pytest.mark.asyncio
    async def test_failing_recheck_is_skipped(self):
        checker = RaisingChecker(baseline=[entry(fix(1), (True, False)), entry(fix(2), (False, True))])
        result = await GeneticRepair(checker, GeneticConfig(max_rounds=4)).repair(PROGRAM)
        assert result.status == RepairStatus.EXHAUSTED
        assert len(checker.calls) == 2  # baseline + one failed re-check


class TestStateMachine:
    @pytest.mark.asyncio
    async def test_transitions(self):
        fa, fb = fix(1), fix(2)
        checker = ScriptedChecker(
            baseline=[entry(fa, (True, False)), entry(fb, (False, True))],
            responses={merge(fa, fb).key_set(): [entry(FixFragment(), True)]},
        )
        driver = GeneticRepair(checker)
        driver.reset(PROGRAM)
        assert driver.state == RepairState.INIT

        assert await driver.step() == RepairState.CHECKING
        assert driver.round == 1
        assert await driver.step() == RepairState.SELECTING
        assert await driver.step() == RepairState.CHECKING
        assert driver.round == 2
        assert await driver.step() == RepairState.SUCCESS
        assert driver.done
        assert driver.fixes == [merge(fa, fb)]

    @pytest.mark.asyncio
    async def test_checking_exhausts_at_budget(self):
        driver = GeneticRepair(ScriptedChecker(baseline=[]), GeneticConfig(max_rounds=1))
        driver.reset(PROGRAM)
        await driver.step()
        assert await driver.step() == RepairState.EXHAUSTED

    @pytest.mark.asyncio
    async def test_step_requires_program(self):
        driver = GeneticRepair(ScriptedChecker(baseline=[]))
        with pytest.raises(RuntimeError, match="reset"):
            await driver.step()

    @pytest.mark.asyncio
    async def test_terminal_state_is_stable(self):
        driver = GeneticRepair(ScriptedChecker(baseline=[entry(fix(1), True)]))
        result = await driver.repair(PROGRAM)
        assert result.status == RepairStatus.SUCCESS
        assert await driver.step() == RepairState.SUCCESS


class TestGeneticConfig:
    def test_defaults(self):
        config = GeneticConfig()
        assert config.population_size == 10
        assert config.max_rounds == 5
        assert config.fitness_threshold == 0.75

    def test_invalid_population_size(self):
        with pytest.raises(ValueError, match="population_size"):
            GeneticConfig(population_size=0)

    def test_invalid_rounds(self):
        with pytest.raises(ValueError, match="max_rounds"):
            GeneticConfig(max_rounds=-1)
