import json
import math
from pathlib import Path

import pytest

from signalcraft.accounting.ledger import TradeRejection
from signalcraft.config import load_config
from signalcraft.engine.session import RECORD_COLUMNS, GameSession
from signalcraft.market.regime import RegimeKind
from signalcraft.utils.io import load_session_state, parse_session_state, save_session_state
from signalcraft.utils.rng import ScriptedSource
from signalcraft.utils.validation import CorruptPersistedState


def _session(**overrides) -> GameSession:
    cfg = load_config(overrides={"market": {"warm_up": False}, **overrides})
    return GameSession(cfg, rng=ScriptedSource([0.5]))


def test_buy_hold_sell_scenario() -> None:
    session = _session()
    for _ in range(5):
        session.advance_tick()
    assert session.market.regime is RegimeKind.RANGE
    assert session.price == pytest.approx(100.0)

    bought = session.buy()
    assert bought.ok
    assert session.ledger.shares == 1
    assert session.ledger.avg_cost == pytest.approx(100.0)
    assert session.ledger.balance == pytest.approx(0.0)

    session.market.current_price = 110.0
    sold = session.sell()
    assert sold.ok
    assert sold.trade.profit == pytest.approx(10.0)
    assert sold.trade.xp_gained == 10
    assert sold.trade.regime is RegimeKind.RANGE
    assert sold.trade.title == "Profit Secured"
    assert session.ledger.balance == pytest.approx(110.0)
    assert session.progression_snapshot().xp == 10
    assert session.sell().rejection is TradeRejection.NO_OPEN_POSITION


def test_history_tracks_ticks() -> None:
    session = _session(market={"warm_up": False, "history_size": 8})
    for _ in range(20):
        session.advance_tick()
    assert len(session.history_snapshot()) == 8
    assert session.history_snapshot()[-1] == session.price


def test_warm_up_fills_history_without_trading() -> None:
    cfg = load_config(overrides={"simulation": {"seed": 3}})
    session = GameSession(cfg)
    session.set_auto_trading_enabled(True)
    session.warm_up()
    assert len(session.history_snapshot()) == cfg.market.history_size
    assert session.market.tick_count == cfg.market.history_size
    assert session.trades == []
    assert session.ledger.shares == 0


def test_auto_trading_toggle() -> None:
    session = _session()
    assert not session.is_auto_trading_enabled()
    session.set_auto_trading_enabled(True)
    assert session.is_auto_trading_enabled()


def test_disabled_auto_trading_never_trades() -> None:
    cfg = load_config(overrides={"simulation": {"seed": 9, "auto_trading": False}})
    result = GameSession(cfg).run(ticks=3_000)
    assert result.trades == []
    assert (result.timeseries["action"] == "").all()


def test_strategy_respects_interval_and_cooldown_over_long_run() -> None:
    cfg = load_config(overrides={"simulation": {"seed": 17}, "account": {"starting_balance": 10_000.0}})
    result = GameSession(cfg).run(ticks=20_000)
    acted = result.timeseries.loc[result.timeseries["action"] != "", "tick"].tolist()
    assert acted, "expected the auto-trader to act at least once"
    assert all(tick % cfg.strategy.interval_ticks == 0 for tick in acted)
    gaps = [b - a for a, b in zip(acted, acted[1:])]
    assert all(gap >= cfg.strategy.cooldown_ticks for gap in gaps)
    assert (result.timeseries["price"] >= 1.0).all()
    assert (result.timeseries["shares"] >= 0).all()


def _underfunded_dip_session(**overrides) -> GameSession:
    session = _session(account={"starting_balance": 50.0}, **overrides)
    for _ in range(60):
        session.history.push(98.0)
    session.market.current_price = 98.0
    session.market.base_value = 100.0
    return session


def test_refused_intent_still_starts_cooldown() -> None:
    session = _underfunded_dip_session()
    issued = []
    for tick in (100, 110, 120):
        session.market.tick_count = tick
        result = session.run_strategy()
        if result is not None:
            assert result.rejection is TradeRejection.INSUFFICIENT_FUNDS
            issued.append((tick, session.last_decision.action.value))
    assert issued == [(100, "buy"), (120, "buy")]
    assert session.strategy.last_action_tick == 120
    assert session.ledger.balance == 50.0
    assert session.trades == []


def test_intent_blocked_by_closed_trading_day_starts_cooldown() -> None:
    session = _underfunded_dip_session(survival={"enabled": True})
    session.market.tick_count = 100
    result = session.run_strategy()
    assert result.rejection is TradeRejection.TRADING_NOT_PERMITTED
    assert session.strategy.last_action_tick == 100
    session.market.tick_count = 110
    assert session.run_strategy() is None


def test_regime_hint_unlocks_at_level_three() -> None:
    session = _session()
    assert session.regime_hint() is None
    session.progression.level = 3
    assert session.regime_hint() == "RANGE BOUND"
    assert "auto_strategy" in session.unlocked_features()


def test_snapshot_restore_resumes_without_discontinuity() -> None:
    cfg = load_config(overrides={"simulation": {"seed": 23}})
    original = GameSession(cfg)
    original.run(ticks=400)
    data = json.loads(json.dumps(original.snapshot()))

    restored = GameSession.restore(data, cfg)
    assert restored.history_snapshot() == original.history_snapshot()
    assert restored.market.to_dict() == original.market.to_dict()
    assert restored.ledger.balance == original.ledger.balance
    assert restored.ledger.shares == original.ledger.shares
    assert restored.progression_snapshot() == original.progression_snapshot()
    assert restored.is_auto_trading_enabled() == original.is_auto_trading_enabled()
    assert restored.strategy.last_action_tick == original.strategy.last_action_tick

    for session in (original, restored):
        session.process.rng = ScriptedSource([0.2, 0.7, 0.45, 0.91])
    for _ in range(300):
        assert original.advance_tick() == restored.advance_tick()
    assert restored.history_snapshot() == original.history_snapshot()
    assert restored.ledger.balance == original.ledger.balance


def test_restore_replaces_bad_fields_one_by_one() -> None:
    data = {
        "balance": float("nan"),
        "shares": -3,
        "avg_cost": 12.5,
        "level": 0,
        "xp": "lots",
        "next_level_xp": 0,
        "auto_strategy_active": "yes",
        "price_history": [100.0, None, "x", 0.5, 101.0],
        "market": {"current_price": -5, "regime": "SIDEWAYS", "tick_count": 77},
    }
    session = GameSession.restore(data)
    assert session.ledger.balance == 100.0
    assert session.ledger.shares == 0
    assert session.ledger.avg_cost == 12.5
    assert session.progression.level == 1
    assert session.progression.xp == 0.0
    assert session.progression.next_level_xp == 1000.0
    assert session.is_auto_trading_enabled() is False
    assert session.history_snapshot() == [100.0, 101.0]
    assert session.price == 101.0
    assert session.market.regime is RegimeKind.RANGE
    assert session.market.tick_count == 77
    assert math.isfinite(session.advance_tick().price)


def test_restore_drops_position_without_cost_basis() -> None:
    session = GameSession.restore({"shares": 4, "avg_cost": 0})
    assert session.ledger.shares == 0


def test_restore_settles_xp_past_the_threshold() -> None:
    session = GameSession.restore({"level": 1, "xp": 5_000, "next_level_xp": 1_000})
    snapshot = session.progression_snapshot()
    assert snapshot.level == 2
    assert snapshot.xp == 0
    assert snapshot.next_level_xp == pytest.approx(1_500.0)


def test_finished_survival_save_runs_no_ticks() -> None:
    cfg = load_config("configs/survival.yaml")
    session = GameSession.restore({"days": {"game_over": True}}, cfg)
    result = session.run(ticks=50)
    assert result.timeseries.empty
    assert list(result.timeseries.columns) == RECORD_COLUMNS
    assert result.trades == []
    assert session.game_over


def test_save_and_load_state_file(tmp_path: Path) -> None:
    session = _session()
    session.advance_tick()
    target = save_session_state(session.snapshot(), tmp_path / "save" / "session.json")
    loaded = load_session_state(target)
    assert loaded["balance"] == session.ledger.balance
    assert "saved_at" in loaded
    assert GameSession.restore(loaded).market.tick_count == 1


def test_corrupt_save_falls_back_to_defaults(tmp_path: Path) -> None:
    broken = tmp_path / "session.json"
    broken.write_text("{not json", encoding="utf-8")
    assert load_session_state(broken) == {}
    assert load_session_state(tmp_path / "missing.json") == {}
    with pytest.raises(CorruptPersistedState):
        parse_session_state("[1, 2, 3]")
    assert GameSession.restore(load_session_state(broken)).ledger.balance == 100.0


def test_restart_resets_player_but_not_market() -> None:
    session = _session()
    session.advance_tick()
    session.buy()
    session.set_auto_trading_enabled(True)
    session.progression.level = 4
    session.restart()
    assert session.ledger.balance == 100.0
    assert session.ledger.shares == 0
    assert session.progression.level == 1
    assert not session.is_auto_trading_enabled()
    assert session.market.tick_count == 1


class _FakeClock:
    def __init__(self) -> None:
        self.now = 0.0
        self.sleeps: list[float] = []

    def time(self) -> float:
        return self.now

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


def test_paced_driver_sleeps_one_period_per_tick() -> None:
    session = _session()
    clock = _FakeClock()
    seen: list[int] = []
    done = session.run_paced(5, on_tick=lambda s, sample: seen.append(sample.tick), clock=clock.time, sleep=clock.sleep)
    assert done == 5
    assert seen == [1, 2, 3, 4, 5]
    assert clock.sleeps == pytest.approx([0.1] * 5)
    assert clock.now == pytest.approx(0.5)
