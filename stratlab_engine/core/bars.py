"""
Bar series primitives.

A BarSeries is an immutable, strictly time-ordered sequence of OHLCV bars.
Sub-series share nothing mutable with their parent, and column views are
exposed as float pandas Series indexed 0..n-1 so indicator code can work
with positional indices directly.
"""
from dataclasses import dataclass
from datetime import datetime
from functools import cached_property
from typing import Iterator, List, Optional, Sequence

import pandas as pd


class InvalidRangeError(ValueError):
    """Raised when a sub-series is requested with out-of-bounds indices."""
    pass


@dataclass(frozen=True)
class Bar:
    """One OHLCV observation."""

    timestamp: datetime
    open: float
    high: float
    low: float
    close: float
    volume: float = 0.0


@dataclass(frozen=True)
class IndexRange:
    """
    Inclusive index range over a parent series.

    Example:
        IndexRange(0, 99) covers bars 0 through 99 (100 bars).
    """

    start: int
    end: int

    def __len__(self) -> int:
        return self.end - self.start + 1

    def to_dict(self) -> dict:
        return {'start': self.start, 'end': self.end}


class BarSeries:
    """
    Immutable ordered sequence of bars.

    Attributes:
        symbol: Optional instrument label carried into results

    Example:
        series = BarSeries.from_dataframe(df, symbol='AAPL')
        training = series.sub_series(0, 250)
        closes = training.close  # pandas Series, index 0..249
    """

    def __init__(self, bars: Sequence[Bar], symbol: Optional[str] = None):
        """
        Build a series from bars.

        Args:
            bars: Bars in chronological order
            symbol: Optional instrument label

        Raises:
            ValueError: If timestamps are not strictly increasing
        """
        bars = tuple(bars)
        for i in range(1, len(bars)):
            if bars[i].timestamp <= bars[i - 1].timestamp:
                raise ValueError(
                    f"Bar timestamps must be strictly increasing: "
                    f"index {i} ({bars[i].timestamp}) is not after "
                    f"index {i - 1} ({bars[i - 1].timestamp})"
                )
        self._bars = bars
        self.symbol = symbol

    @classmethod
    def from_dataframe(cls, df: pd.DataFrame, symbol: Optional[str] = None) -> 'BarSeries':
        """
        Build a series from a DataFrame with open/high/low/close[/volume] columns.

        Timestamps come from a 'timestamp' column when present, otherwise
        from the index.

        Args:
            df: OHLCV frame in chronological order
            symbol: Optional instrument label

        Returns:
            BarSeries
        """
        required = ['open', 'high', 'low', 'close']
        missing = [col for col in required if col not in df.columns]
        if missing:
            raise ValueError(f"DataFrame missing required columns: {missing}")

        if 'timestamp' in df.columns:
            timestamps = pd.to_datetime(df['timestamp'])
        else:
            timestamps = pd.to_datetime(df.index)
        volumes = df['volume'] if 'volume' in df.columns else pd.Series(0.0, index=df.index)

        bars = [
            Bar(
                timestamp=ts.to_pydatetime(),
                open=float(o),
                high=float(h),
                low=float(lo),
                close=float(c),
                volume=float(v),
            )
            for ts, o, h, lo, c, v in zip(
                timestamps, df['open'], df['high'], df['low'], df['close'], volumes
            )
        ]
        return cls(bars, symbol=symbol)

    def to_frame(self) -> pd.DataFrame:
        """Export bars as a DataFrame with a 'timestamp' column."""
        return pd.DataFrame(
            {
                'timestamp': [b.timestamp for b in self._bars],
                'open': self.open.values,
                'high': self.high.values,
                'low': self.low.values,
                'close': self.close.values,
                'volume': self.volume.values,
            }
        )

    def __len__(self) -> int:
        return len(self._bars)

    def __getitem__(self, index: int) -> Bar:
        return self._bars[index]

    def __iter__(self) -> Iterator[Bar]:
        return iter(self._bars)

    def __repr__(self) -> str:
        label = self.symbol or 'series'
        return f"BarSeries({label}, {len(self)} bars)"

    @property
    def bars(self) -> List[Bar]:
        return list(self._bars)

    def sub_series(self, start: int, end: int) -> 'BarSeries':
        """
        Return bars [start, end) as a new independent series.

        Args:
            start: First index (inclusive)
            end: Last index (exclusive)

        Raises:
            InvalidRangeError: Unless 0 <= start < end <= len(self)
        """
        if not (0 <= start < end <= len(self._bars)):
            raise InvalidRangeError(
                f"Invalid sub-series range [{start}, {end}) for series of "
                f"{len(self._bars)} bars"
            )
        return BarSeries(self._bars[start:end], symbol=self.symbol)

    def slice_range(self, index_range: IndexRange) -> 'BarSeries':
        """Return the bars covered by an inclusive IndexRange."""
        return self.sub_series(index_range.start, index_range.end + 1)

    def _column(self, name: str) -> pd.Series:
        return pd.Series(
            [float(getattr(b, name)) for b in self._bars], dtype=float, name=name
        )

    @cached_property
    def open(self) -> pd.Series:
        return self._column('open')

    @cached_property
    def high(self) -> pd.Series:
        return self._column('high')

    @cached_property
    def low(self) -> pd.Series:
        return self._column('low')

    @cached_property
    def close(self) -> pd.Series:
        return self._column('close')

    @cached_property
    def volume(self) -> pd.Series:
        return self._column('volume')
