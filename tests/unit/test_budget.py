"""BudgetManager 테스트"""
import pytest

from src.engine.budget import BudgetConfig, BudgetManager


def test_invalid_config():
    with pytest.raises(ValueError):
        BudgetConfig(total_budget=0)
    with pytest.raises(ValueError):
        BudgetConfig(total_budget=10, stage_timeouts={"crawl": -1})


def test_remaining_and_stage_timeout(fake_clock):
    budget = BudgetManager(BudgetConfig(total_budget=60, stage_timeouts={"crawl": 45}), clock=fake_clock).start()

    assert budget.get_timeout_for("crawl") == 45
    fake_clock.advance(30)
    assert budget.remaining() == 30
    assert budget.get_timeout_for("crawl") == 30
    assert budget.get_timeout_for("unknown") == 30

    fake_clock.advance(100)
    assert budget.remaining() == 0.0
    assert budget.is_exhausted()


def test_can_execute_floor(fake_clock):
    budget = BudgetManager(BudgetConfig(total_budget=10), clock=fake_clock).start()
    fake_clock.advance(6)
    assert budget.can_execute("gemini", floor=4)
    assert not budget.can_execute("gemini", floor=5)


def test_checkpoint_requires_start():
    with pytest.raises(RuntimeError):
        BudgetManager().checkpoint("crawl")


def test_report(fake_clock):
    budget = BudgetManager(BudgetConfig(total_budget=10), clock=fake_clock).start()
    fake_clock.advance(2)
    budget.checkpoint("crawl")

    report = budget.get_report()
    assert report["checkpoints"] == {"crawl": 2}
    assert report["elapsed"] == 2
    assert report["is_exhausted"] is False
