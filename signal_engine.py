"""
ss33
pure signal logic: walks a deviation (z-score) series through a Flat / InPosition state machine
and emits a position series, then merges Long + Short position series into one net series.

timing convention:
- step 0 is the reference observation, it always emits 0 and is never evaluated.
- entry fires on step t -> position is emitted from t onwards.
- exit fires on step t -> step t still emits the position, flat from t+1.
"""
from enum import Enum
from typing import List, Sequence, Tuple, Union

import numpy as np

from conditions import Direction, SignalConfig, Slot, ThresholdSpec
from errors import ParameterError
from logger import get_logger, log_debug
from series_utils import as_series, require_same_length

log = get_logger("signals")


class State(Enum):
    FLAT = 0
    IN_POSITION = 1


def _walk(values: np.ndarray, spec: ThresholdSpec, unit: float) -> Tuple[np.ndarray, int]:
    out = np.zeros(len(values), dtype=float)
    state = State.FLAT
    entries = 0

    for i in range(1, len(values)):
        z = values[i]
        if state is State.FLAT:
            if spec.matches(Slot.ENTRY, z):
                state = State.IN_POSITION
                entries += 1
                out[i] = unit
        else:
            out[i] = unit
            if spec.matches(Slot.EXIT, z):
                state = State.FLAT

    return out, entries


def generate_positions(
    deviation: Sequence[float],
    spec: ThresholdSpec,
    direction: Direction,
    magnitude: float = 1.0,
    return_entries: bool = False,
) -> Union[np.ndarray, Tuple[np.ndarray, int]]:
    """
    position series for one direction. same length as `deviation`.
    values are 0 or direction.sign * magnitude. NaN in `deviation` means no data and never fires.
    return_entries=True -> (positions, number of Flat -> InPosition transitions).
    """
    values = as_series(deviation, name="deviation", allow_nan=True)
    direction = Direction.parse(direction)

    magnitude = float(magnitude)
    if not np.isfinite(magnitude) or magnitude <= 0:
        raise ParameterError(f"magnitude must be a positive finite number, got {magnitude}")

    positions, entries = _walk(values, spec, direction.sign * magnitude)
    log_debug(log, "positions_generated", direction=direction.value, n_steps=len(values),
              entries=entries, active_steps=int(np.count_nonzero(positions)))
    if return_entries:
        return positions, entries
    return positions


def generate_signals(deviation: Sequence[float], config: SignalConfig, magnitude: float = 1.0) -> np.ndarray:
    return generate_positions(deviation, config.spec, config.direction, magnitude=magnitude)


def count_entries(deviation: Sequence[float], spec: ThresholdSpec) -> int:
    """
    number of Flat -> InPosition transitions the machine makes over `deviation`.
    taken from the machine itself: an exit at t followed by a re-entry at t+1 leaves the
    position series unchanged but still counts as a new entry.
    """
    _, entries = generate_positions(deviation, spec, Direction.LONG, return_entries=True)
    return entries


def consolidate_signals(series: List[Sequence[float]]) -> np.ndarray:
    """
    net position = elementwise sum. no clamping: a Long and a Short engine that are both
    in position at once add up (|net| can be 0 with both open, or >1 with stacked longs).
    """
    if not series:
        raise ParameterError("consolidate_signals needs at least one position series")

    arrays = [as_series(s, name=f"positions[{i}]") for i, s in enumerate(series)]
    require_same_length(**{f"positions_{i}": a for i, a in enumerate(arrays)})

    net = np.sum(np.vstack(arrays), axis=0)

    overlap = int(np.count_nonzero(np.sum(np.vstack(arrays) != 0, axis=0) > 1))
    if overlap:
        log_debug(log, "positions_overlap", steps=overlap, max_abs_net=float(np.max(np.abs(net))))
    return net


def compute_pair_positions(deviation: Sequence[float], configs: List[SignalConfig]) -> np.ndarray:
    """run one engine per config over the same deviation series and merge them."""
    if not configs:
        raise ParameterError("no signal configs supplied")
    return consolidate_signals([generate_signals(deviation, c) for c in configs])
