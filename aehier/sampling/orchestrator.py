"""Run independent chains (in-process or on a process pool) and stack their draws."""

from __future__ import annotations

import multiprocessing as mp
import os
from concurrent.futures import FIRST_EXCEPTION, Future, ProcessPoolExecutor, wait
from dataclasses import dataclass
from typing import Any, Callable, List, Mapping, Optional, Sequence, TypeVar, Union

import numpy as np

from aehier.errors import ChainTimeoutError
from aehier.models.builders import HierarchicalDataset
from aehier.models.definition import HierarchicalModelSpec

from .chain_runner import run_chain
from .config import SamplerConfig
from .posterior import PosteriorSamples, concat_posteriors

InitValues = Optional[Mapping[str, Any]]
InitsLike = Union[InitValues, Sequence[InitValues]]
TaskT = TypeVar("TaskT")
ResultT = TypeVar("ResultT")


@dataclass(frozen=True)
class ChainTask:
    """Everything one worker needs to run a chain to completion."""

    chain_id: int
    model: HierarchicalModelSpec
    data: HierarchicalDataset
    init_values: InitValues
    n_adapt: int
    n_burn: int
    n_iter: int
    thin: int
    seed: int


def _run_chain_task(task: ChainTask) -> PosteriorSamples:
    return run_chain(
        task.model,
        task.data,
        task.init_values,
        n_adapt=task.n_adapt,
        n_burn=task.n_burn,
        n_iter=task.n_iter,
        thin=task.thin,
        random_seed=task.seed,
        chain_id=task.chain_id,
    )


def default_worker_count(n_chain: int) -> int:
    """One worker per chain, leaving a core free for the controlling process."""
    cpus = os.cpu_count() or 1
    return max(1, min(n_chain, cpus - 1))


def chain_seeds(random_seed: Optional[int], n_chain: int) -> List[int]:
    """Derive distinct, independent integer seeds for each chain."""
    children = np.random.SeedSequence(random_seed).spawn(n_chain)
    return [int(child.generate_state(1)[0]) for child in children]


class ChainPool:
    """Worker pool scoped to a single orchestrator call.

    With one worker the tasks run sequentially in the calling process;
    otherwise a ``spawn`` process pool is created on enter and shut down on
    exit. Leaving the block with an exception terminates the worker
    processes, including chains that are mid-sample. ``timeout=None`` waits
    for stuck chains indefinitely.
    """

    def __init__(self, max_workers: int, timeout: Optional[float] = None) -> None:
        if max_workers < 1:
            raise ValueError("max_workers must be at least 1")
        self.max_workers = max_workers
        self.timeout = timeout
        self._executor: Optional[ProcessPoolExecutor] = None

    def __enter__(self) -> "ChainPool":
        if self.max_workers > 1:
            self._executor = ProcessPoolExecutor(
                max_workers=self.max_workers,
                mp_context=mp.get_context("spawn"),
            )
        return self

    def __exit__(self, exc_type: Any, exc: Any, tb: Any) -> None:
        if self._executor is None:
            return
        executor, self._executor = self._executor, None
        if exc_type is None:
            executor.shutdown(wait=True)
            return
        # Running chains ignore cancel_futures, so their workers are stopped directly.
        workers = list((getattr(executor, "_processes", None) or {}).values())
        executor.shutdown(wait=False, cancel_futures=True)
        for process in workers:
            if process.is_alive():
                process.terminate()
        for process in workers:
            process.join()

    def run(self, fn: Callable[[TaskT], ResultT], tasks: Sequence[TaskT]) -> List[ResultT]:
        """Execute ``fn`` over ``tasks``; results come back in task order.

        The first failure aborts the run: pending tasks are cancelled and the
        exception propagates unchanged.
        """
        if self._executor is None:
            return [fn(task) for task in tasks]

        futures: List[Future] = [self._executor.submit(fn, task) for task in tasks]
        done, pending = wait(futures, timeout=self.timeout, return_when=FIRST_EXCEPTION)
        failed = [future for future in futures if future in done and future.exception() is not None]
        if failed:
            for future in pending:
                future.cancel()
            raise failed[0].exception()  # type: ignore[misc]
        if pending:
            for future in pending:
                future.cancel()
            raise ChainTimeoutError(
                f"{len(pending)} chain(s) did not finish within {self.timeout} seconds.",
                pending=len(pending),
            )
        return [future.result() for future in futures]


def _coerce_inits(inits: InitsLike, n_chain: int) -> List[InitValues]:
    if inits is None:
        return [None] * n_chain
    if isinstance(inits, Mapping):
        if n_chain != 1:
            raise ValueError(f"A single set of initial values was supplied for {n_chain} chains.")
        return [inits]
    init_list = list(inits)
    if len(init_list) != n_chain:
        raise ValueError(f"Expected {n_chain} sets of initial values, received {len(init_list)}.")
    return init_list


def run_chains(
    model: HierarchicalModelSpec,
    data: HierarchicalDataset,
    inits: InitsLike,
    n_chain: int,
    n_adapt: int,
    n_burn: int,
    n_iter: int,
    thin: int,
    max_workers: Optional[int] = None,
    random_seed: Optional[int] = None,
    timeout: Optional[float] = None,
) -> PosteriorSamples:
    """Run ``n_chain`` independent chains and concatenate them in chain order."""
    config = SamplerConfig(
        n_adapt=n_adapt,
        n_burn=n_burn,
        n_iter=n_iter,
        thin=thin,
        n_chain=n_chain,
        max_workers=max_workers,
        random_seed=random_seed,
        timeout=timeout,
    )
    config.validate()
    init_list = _coerce_inits(inits, n_chain)
    seeds = chain_seeds(random_seed, n_chain)

    if n_chain == 1:
        return run_chain(
            model,
            data,
            init_list[0],
            n_adapt=n_adapt,
            n_burn=n_burn,
            n_iter=n_iter,
            thin=thin,
            random_seed=seeds[0],
            chain_id=0,
        )

    workers = min(max_workers or default_worker_count(n_chain), n_chain)
    print(f"[sampling] Running {n_chain} chains on {workers} worker(s)")
    tasks = [
        ChainTask(
            chain_id=chain_id,
            model=model,
            data=data,
            init_values=init_values,
            n_adapt=n_adapt,
            n_burn=n_burn,
            n_iter=n_iter,
            thin=thin,
            seed=seed,
        )
        for chain_id, (init_values, seed) in enumerate(zip(init_list, seeds))
    ]
    with ChainPool(workers, timeout=timeout) as pool:
        tables = pool.run(_run_chain_task, tasks)
    return concat_posteriors(tables)


def run_with_config(
    model: HierarchicalModelSpec,
    data: HierarchicalDataset,
    inits: InitsLike,
    config: SamplerConfig,
) -> PosteriorSamples:
    """Convenience wrapper taking a :class:`SamplerConfig`."""
    return run_chains(
        model,
        data,
        inits,
        n_chain=config.n_chain,
        n_adapt=config.n_adapt,
        n_burn=config.n_burn,
        n_iter=config.n_iter,
        thin=config.thin,
        max_workers=config.max_workers,
        random_seed=config.random_seed,
        timeout=config.timeout,
    )
