"""
ss32
threshold condition sets: per slot (entry / exit) an OR over the active comparators eq, neq, gt, lt.
also parses the json signal document:

    {"eq": [null, 0.0], "neq": [null, null], "gt": [null, null], "lt": [-1.5, null],
     "signal_type": "Long", "eq_tol": 0.1}

index 0 of each pair is the entry threshold, index 1 the exit threshold.
"""
import math
from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Optional, Tuple

from errors import ConfigurationError

Pair = Tuple[Optional[float], Optional[float]]

DEFAULT_EQ_TOL = 1e-9


class Slot(Enum):
    ENTRY = 0
    EXIT = 1


class Comparator(Enum):
    EQ = "eq"
    NEQ = "neq"
    GT = "gt"
    LT = "lt"


class Direction(Enum):
    LONG = "Long"
    SHORT = "Short"

    @property
    def sign(self) -> float:
        return 1.0 if self is Direction.LONG else -1.0

    @classmethod
    def parse(cls, raw) -> "Direction":
        if isinstance(raw, Direction):
            return raw
        for d in cls:
            if str(raw).strip().lower() == d.value.lower():
                return d
        raise ConfigurationError(f"unknown signal_type={raw!r} (expected Long or Short)")


def _check_pair(name: str, pair) -> Pair:
    if pair is None:
        return (None, None)
    if not isinstance(pair, (list, tuple)) or len(pair) != 2:
        raise ConfigurationError(f"{name} must be a 2-element [entry, exit] pair, got {pair!r}")

    out = []
    for slot_name, t in zip(("entry", "exit"), pair):
        if t is None:
            out.append(None)
            continue
        try:
            t = float(t)
        except (TypeError, ValueError):
            raise ConfigurationError(f"{name}.{slot_name} threshold is not a number: {t!r}")
        if not math.isfinite(t):
            raise ConfigurationError(f"{name}.{slot_name} threshold must be finite, got {t}")
        out.append(t)
    return out[0], out[1]


@dataclass(frozen=True)
class ThresholdSpec:
    eq: Pair = (None, None)
    neq: Pair = (None, None)
    gt: Pair = (None, None)
    lt: Pair = (None, None)
    eq_tol: float = DEFAULT_EQ_TOL

    def __post_init__(self):
        for c in Comparator:
            object.__setattr__(self, c.value, _check_pair(c.value, getattr(self, c.value)))

        try:
            tol = float(self.eq_tol)
        except (TypeError, ValueError):
            raise ConfigurationError(f"eq_tol is not a number: {self.eq_tol!r}")
        if not math.isfinite(tol) or tol < 0:
            raise ConfigurationError(f"eq_tol must be a finite non-negative number, got {self.eq_tol}")
        object.__setattr__(self, "eq_tol", tol)

        if not any(self.active(slot) for slot in Slot):
            raise ConfigurationError("threshold spec has no active comparator in any slot; it can never fire")

    def threshold(self, comparator: Comparator, slot: Slot) -> Optional[float]:
        return getattr(self, comparator.value)[slot.value]

    def active(self, slot: Slot) -> List[Tuple[Comparator, float]]:
        """(comparator, threshold) for every comparator configured in this slot."""
        out = []
        for c in Comparator:
            t = self.threshold(c, slot)
            if t is not None:
                out.append((c, t))
        return out

    def _hit(self, comparator: Comparator, threshold: float, value: float) -> bool:
        if comparator is Comparator.EQ:
            return abs(value - threshold) <= self.eq_tol
        if comparator is Comparator.NEQ:
            return abs(value - threshold) > self.eq_tol
        if comparator is Comparator.GT:
            return value > threshold
        if comparator is Comparator.LT:
            return value < threshold
        raise ConfigurationError(f"unsupported comparator {comparator!r}")

    def matches(self, slot: Slot, value: float) -> bool:
        # NaN is "no data": nothing fires on it, not even neq
        if value is None or math.isnan(value):
            return False
        return any(self._hit(c, t, value) for c, t in self.active(slot))

    def to_dict(self) -> Dict:
        out = {c.value: list(getattr(self, c.value)) for c in Comparator}
        out["eq_tol"] = self.eq_tol
        return out

    @classmethod
    def from_dict(cls, doc: Dict) -> "ThresholdSpec":
        allowed = {c.value for c in Comparator} | {"eq_tol", "signal_type"}
        unknown = set(doc) - allowed
        if unknown:
            raise ConfigurationError(f"unknown keys in signal config: {sorted(unknown)}")

        kwargs = {c.value: doc.get(c.value) for c in Comparator}
        tol = doc.get("eq_tol")
        if tol is not None:
            kwargs["eq_tol"] = tol
        return cls(**kwargs)


@dataclass(frozen=True)
class SignalConfig:
    """one engine's worth of config: the thresholds + which side it trades."""
    spec: ThresholdSpec
    direction: Direction

    @classmethod
    def from_dict(cls, doc: Dict) -> "SignalConfig":
        if not isinstance(doc, dict):
            raise ConfigurationError(f"signal config must be an object, got {type(doc).__name__}")
        if "signal_type" not in doc:
            raise ConfigurationError("signal config is missing signal_type")
        return cls(spec=ThresholdSpec.from_dict(doc), direction=Direction.parse(doc["signal_type"]))

    def to_dict(self) -> Dict:
        out = self.spec.to_dict()
        out["signal_type"] = self.direction.value
        return out
