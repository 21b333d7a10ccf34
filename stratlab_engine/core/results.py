"""
Result and risk records shared by the simulator, optimizers and harnesses.

All records are frozen dataclasses so they can be cached, compared and
shipped across process boundaries safely.
"""
import math
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Optional, TYPE_CHECKING

from stratlab_engine.core.bars import IndexRange
from stratlab_engine.core.params import StrategyFamily, StrategyParams

if TYPE_CHECKING:
    from stratlab_engine.utils.config import Config


EXIT_SIGNAL = 'signal'
EXIT_STOP_LOSS = 'stop_loss'
EXIT_TAKE_PROFIT = 'take_profit'
EXIT_END_OF_SERIES = 'end_of_series'


@dataclass(frozen=True)
class RiskModel:
    """
    Position sizing and protective exit settings.

    Attributes:
        initial_capital: Starting capital (> 0)
        risk_per_trade: Fraction of current capital committed per trade (0, 1]
        stop_loss_pct: Stop distance below entry as a fraction [0, 1)
        take_profit_pct: Target distance above entry as a fraction (>= 0)
    """

    initial_capital: float = 10000.0
    risk_per_trade: float = 0.15
    stop_loss_pct: float = 0.05
    take_profit_pct: float = 0.10

    def __post_init__(self):
        if not self.initial_capital > 0:
            raise ValueError(
                f"initial_capital must be positive, got {self.initial_capital}"
            )
        if not 0 < self.risk_per_trade <= 1:
            raise ValueError(
                f"risk_per_trade must be in (0, 1], got {self.risk_per_trade}"
            )
        if not 0 <= self.stop_loss_pct < 1:
            raise ValueError(
                f"stop_loss_pct must be in [0, 1), got {self.stop_loss_pct}"
            )
        if not self.take_profit_pct >= 0:
            raise ValueError(
                f"take_profit_pct must be non-negative, got {self.take_profit_pct}"
            )

    @classmethod
    def from_config(cls, config: Optional['Config'] = None) -> 'RiskModel':
        """Build a risk model from configuration defaults."""
        if config is None:
            from stratlab_engine.utils.config import get_config
            config = get_config()
        return cls(
            initial_capital=config.initial_capital,
            risk_per_trade=config.risk_per_trade,
            stop_loss_pct=config.stop_loss_pct,
            take_profit_pct=config.take_profit_pct,
        )

    def to_dict(self) -> Dict[str, float]:
        return asdict(self)


@dataclass(frozen=True)
class RiskResult:
    """
    Performance summary of one simulation.

    Every field is finite. ``RiskResult.empty()`` is the no-trade result.
    """

    rendement: float
    trade_count: int
    win_rate: float
    max_drawdown: float
    avg_pnl: float
    profit_factor: float
    avg_trade_bars: float
    max_trade_gain: float
    max_trade_loss: float
    score_swing_trade: float = 0.0

    @classmethod
    def empty(cls) -> 'RiskResult':
        return cls(
            rendement=0.0,
            trade_count=0,
            win_rate=0.0,
            max_drawdown=0.0,
            avg_pnl=0.0,
            profit_factor=0.0,
            avg_trade_bars=0.0,
            max_trade_gain=0.0,
            max_trade_loss=0.0,
            score_swing_trade=0.0,
        )

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class Trade:
    """One closed long trade."""

    entry_index: int
    exit_index: int
    entry_price: float
    exit_price: float
    position_size: float
    pnl: float
    exit_reason: str

    @property
    def bars_held(self) -> int:
        return self.exit_index - self.entry_index + 1

    @property
    def return_pct(self) -> float:
        return (self.exit_price - self.entry_price) / self.entry_price


@dataclass(frozen=True)
class WindowResult:
    """Out-of-sample outcome of one optimization/test window."""

    window_id: int
    opt_range: IndexRange
    test_range: IndexRange
    params: StrategyParams
    result: RiskResult

    def to_dict(self) -> Dict[str, Any]:
        data = {
            'window_id': self.window_id,
            'opt_start': self.opt_range.start,
            'opt_end': self.opt_range.end,
            'test_start': self.test_range.start,
            'test_end': self.test_range.end,
            'family': self.params.family.value,
            'params': self.params.tunable(),
            'in_sample_performance': self.params.performance,
        }
        data.update(self.result.to_dict())
        return data


@dataclass(frozen=True)
class BestInOutStrategy:
    """Best entry/exit family pairing found by a cross search."""

    entry_name: str
    entry_params: StrategyParams
    exit_name: str
    exit_params: StrategyParams
    result: RiskResult
    risk_model: RiskModel
    bar_count: int
    symbol: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'symbol': self.symbol,
            'entry_name': self.entry_name,
            'entry_params': self.entry_params.to_dict(),
            'exit_name': self.exit_name,
            'exit_params': self.exit_params.to_dict(),
            'result': self.result.to_dict(),
            'risk_model': self.risk_model.to_dict(),
            'bar_count': self.bar_count,
        }


@dataclass(frozen=True)
class FamilyRanking:
    """
    Best parameters per strategy family for one series.

    Families that produced the sentinel rank last.
    """

    params: Dict[StrategyFamily, StrategyParams] = field(default_factory=dict)
    symbol: Optional[str] = None

    @property
    def performance_ranking(self) -> Dict[StrategyFamily, float]:
        """Family -> performance, best first."""
        ordered = sorted(
            self.params.items(),
            key=lambda item: _rank_key(item[1].performance),
            reverse=True,
        )
        return {family: p.performance for family, p in ordered}

    def valid_families(self) -> List[StrategyFamily]:
        """Families whose params are not the sentinel, in insertion order."""
        return [family for family, p in self.params.items() if not p.is_sentinel]

    def best_family(self) -> Optional[StrategyFamily]:
        valid = self.valid_families()
        if not valid:
            return None
        return max(valid, key=lambda family: _rank_key(self.params[family].performance))

    def best_params(self) -> Optional[StrategyParams]:
        family = self.best_family()
        return self.params[family] if family is not None else None

    def to_dict(self) -> Dict[str, Any]:
        best = self.best_family()
        return {
            'symbol': self.symbol,
            'best_family': best.value if best is not None else None,
            'performance_ranking': {
                family.value: perf for family, perf in self.performance_ranking.items()
            },
            'params': {family.value: p.to_dict() for family, p in self.params.items()},
        }


def _rank_key(performance: float) -> float:
    return -math.inf if math.isnan(performance) else performance
