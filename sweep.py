"""
ss36
parameter sweep: runs many independent pair backtests (different thresholds / costs / pairs)
on a process pool. each job carries its own copies of the series, nothing is shared between workers.
max_workers=1 runs everything in-process.
"""
import os
from concurrent.futures import ProcessPoolExecutor
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Tuple

import config
from backtest_engine import BacktestConfig
from backtest_job import run_pair_backtest
from conditions import SignalConfig
from errors import StatArbError
from logger import get_logger, log_error, log_event

log = get_logger("sweep")


@dataclass(frozen=True)
class SweepJob:
    name: str
    series_1: Tuple[float, ...]
    series_2: Tuple[float, ...]
    signals: Tuple[Dict, ...]
    trading_costs: float = 0.001
    weight_asset_1: float = 1.0
    weight_asset_2: Optional[float] = 1.0
    window: int = 21
    periods_per_year: int = config.PERIODS_PER_YEAR
    hedge: Optional[float] = None
    extra: Dict = field(default_factory=dict)


def symmetric_signals(entry: float, exit_: float) -> Tuple[Dict, Dict]:
    """Long below -entry until the z-score climbs past -exit_, Short above +entry until it drops below +exit_."""
    long_doc = {"gt": [None, -exit_], "lt": [-entry, None], "signal_type": "Long"}
    short_doc = {"gt": [entry, None], "lt": [None, exit_], "signal_type": "Short"}
    return long_doc, short_doc


def threshold_grid(
    name: str,
    series_1: Iterable[float],
    series_2: Iterable[float],
    entries: Iterable[float],
    exits: Iterable[float],
    **job_kwargs,
) -> List[SweepJob]:
    s1 = tuple(float(x) for x in series_1)
    s2 = tuple(float(x) for x in series_2)
    jobs = []
    for entry in entries:
        for exit_ in exits:
            if exit_ >= entry:
                continue
            jobs.append(SweepJob(
                name=f"{name}_e{entry:g}_x{exit_:g}",
                series_1=s1,
                series_2=s2,
                signals=symmetric_signals(entry, exit_),
                extra={"entry": entry, "exit": exit_},
                **job_kwargs,
            ))
    return jobs


def run_job(job: SweepJob) -> Dict:
    try:
        configs = [SignalConfig.from_dict(d) for d in job.signals]
        bt_config = BacktestConfig(
            trading_costs=job.trading_costs,
            weight_asset_1=job.weight_asset_1,
            weight_asset_2=job.weight_asset_2,
            periods_per_year=job.periods_per_year,
        )
    except StatArbError as e:
        log_error(log, "sweep_job_invalid", e, job=job.name)
        return {"name": job.name, "ok": False, **job.extra, **e.to_dict()}

    result = run_pair_backtest(
        list(job.series_1),
        list(job.series_2),
        configs,
        bt_config,
        window=job.window,
        hedge=job.hedge,
        run_id=job.name,
    )
    out = {"name": job.name, "ok": result["ok"], **job.extra}
    if result["ok"]:
        out.update(result["summary"])
    else:
        out.update({k: result[k] for k in ("error_type", "kind", "error")})
    return out


def _resolve_workers(n_jobs: int, max_workers: Optional[int]) -> int:
    cpu = os.cpu_count() or 1
    if max_workers is None:
        return max(1, min(cpu, n_jobs))
    return max(1, min(max_workers, n_jobs))


def run_sweep(jobs: List[SweepJob], max_workers: Optional[int] = None) -> List[Dict]:
    """results come back in the same order as `jobs`. max_workers=None -> SWEEP_WORKERS, then cpu count."""
    if not jobs:
        log_event(log, "sweep_empty")
        return []

    if max_workers is None:
        max_workers = config.SWEEP_WORKERS
    workers = _resolve_workers(len(jobs), max_workers)
    log_event(log, "sweep_start", jobs=len(jobs), workers=workers)

    if workers == 1:
        results = [run_job(j) for j in jobs]
    else:
        with ProcessPoolExecutor(max_workers=workers) as pool:
            futures = [pool.submit(run_job, j) for j in jobs]
            results = [f.result() for f in futures]

    log_event(log, "sweep_done", jobs=len(jobs), ok=sum(1 for r in results if r["ok"]))
    return results


def best_by(results: List[Dict], metric: str = "sharpe") -> Optional[Dict]:
    ok = [r for r in results if r.get("ok")]
    if not ok:
        return None
    return max(ok, key=lambda r: r[metric])
