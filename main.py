from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple, Union

import pandas as pd
import typer

from aehier.datahub import AERecord, read_aedata, read_inits
from aehier.datahub.config import DEFAULT_OUTPUT_ROOT, REFERENCE_INITS
from aehier.errors import HierModelError
from aehier.metrics import build_report, convergence_summary, extract_probabilities
from aehier.pipeline import sample_history
from aehier.sampling import PosteriorSamples, SamplerConfig

app = typer.Typer()

InitsPayload = Union[None, Dict[str, Any], List[Dict[str, Any]]]


def _resolve_inits(inits_path: Optional[Path], n_chain: int) -> InitsPayload:
    """Load initial values, falling back to the reference sets when none are given."""
    if inits_path is not None:
        return read_inits(inits_path)
    if n_chain == 1:
        return dict(REFERENCE_INITS[0])
    if n_chain <= len(REFERENCE_INITS):
        return [dict(values) for values in REFERENCE_INITS[:n_chain]]
    return None


def _sample(
    aedata: Path,
    inits: Optional[Path],
    config: SamplerConfig,
) -> Tuple[List[AERecord], PosteriorSamples]:
    try:
        config.validate()
        records = read_aedata(aedata)
        inits_payload = _resolve_inits(inits, config.n_chain)
    except ValueError as exc:
        raise typer.BadParameter(str(exc)) from exc

    try:
        posterior = sample_history(
            records,
            inits_payload,
            n_burn=config.n_burn,
            n_iter=config.n_iter,
            thin=config.thin,
            n_adapt=config.n_adapt,
            n_chain=config.n_chain,
            max_workers=config.max_workers,
            random_seed=config.random_seed,
            timeout=config.timeout,
        )
    except ValueError as exc:
        raise typer.BadParameter(str(exc)) from exc
    except HierModelError as exc:
        typer.echo(f"[sampling] {type(exc).__name__}: {exc}", err=True)
        raise typer.Exit(code=1) from exc
    return records, posterior


def _read_posterior(path: Path) -> PosteriorSamples:
    if not path.exists():
        raise typer.BadParameter(f"Missing posterior table at {path}")
    try:
        return PosteriorSamples.from_frame(pd.read_csv(path))
    except ValueError as exc:
        raise typer.BadParameter(str(exc)) from exc


@app.command()
def history(
    aedata: Path = typer.Option(..., "--aedata", help="AE table CSV (SoC, PT, Nt, Nc, AEt, AEc, b, j)."),
    inits: Optional[Path] = typer.Option(
        None,
        "--inits",
        help="JSON with initial values: one object, or a list with one object per chain.",
    ),
    n_adapt: int = typer.Option(1000, "--n-adapt", help="Adaptation iterations."),
    n_burn: int = typer.Option(1000, "--n-burn", help="Burn-in iterations discarded after adaptation."),
    n_iter: int = typer.Option(1000, "--n-iter", help="Sampling iterations."),
    thin: int = typer.Option(20, "--thin", help="Keep every thin-th sampling iteration."),
    n_chain: int = typer.Option(2, "--n-chain", help="Number of independent chains."),
    max_workers: Optional[int] = typer.Option(None, "--max-workers", help="Worker processes for the chains."),
    seed: Optional[int] = typer.Option(None, "--seed", help="Root seed for per-chain random streams."),
    timeout: Optional[float] = typer.Option(
        None,
        "--timeout",
        help="Seconds to wait for all chains before stopping the workers.",
    ),
    output: Path = typer.Option(
        DEFAULT_OUTPUT_ROOT / "posterior.csv",
        "--output",
        help="Where to write the posterior sample table.",
    ),
) -> None:
    """
    Sample the hierarchical model and save the OR/Diff/gamma/theta draws.
    """
    config = SamplerConfig(n_adapt, n_burn, n_iter, thin, n_chain, max_workers, seed, timeout)
    _, posterior = _sample(aedata, inits, config)
    output.parent.mkdir(parents=True, exist_ok=True)
    posterior.to_frame(include_chain=True).to_csv(output, index=False)
    print(f"[sampling] Saved {posterior.n_draws} draws × {len(posterior.columns)} columns → {output}")


@app.command()
def report(
    aedata: Path = typer.Option(..., "--aedata", help="AE table CSV (SoC, PT, Nt, Nc, AEt, AEc, b, j)."),
    inits: Optional[Path] = typer.Option(None, "--inits", help="JSON with initial values."),
    posterior_path: Optional[Path] = typer.Option(
        None,
        "--posterior",
        help="Reuse a saved posterior table instead of sampling.",
    ),
    n_adapt: int = typer.Option(1000, "--n-adapt"),
    n_burn: int = typer.Option(1000, "--n-burn"),
    n_iter: int = typer.Option(1000, "--n-iter"),
    thin: int = typer.Option(20, "--thin"),
    n_chain: int = typer.Option(2, "--n-chain"),
    max_workers: Optional[int] = typer.Option(None, "--max-workers"),
    seed: Optional[int] = typer.Option(None, "--seed"),
    timeout: Optional[float] = typer.Option(None, "--timeout"),
    output: Path = typer.Option(DEFAULT_OUTPUT_ROOT / "hier_report.csv", "--output"),
) -> None:
    """
    Write the per-AE Diff/OR summary joined with the raw counts.
    """
    if posterior_path is not None:
        try:
            records = read_aedata(aedata)
        except ValueError as exc:
            raise typer.BadParameter(str(exc)) from exc
        posterior = _read_posterior(posterior_path)
    else:
        config = SamplerConfig(n_adapt, n_burn, n_iter, thin, n_chain, max_workers, seed, timeout)
        records, posterior = _sample(aedata, inits, config)

    try:
        table = build_report(records, posterior)
    except HierModelError as exc:
        typer.echo(f"[report] {type(exc).__name__}: {exc}", err=True)
        raise typer.Exit(code=1) from exc
    output.parent.mkdir(parents=True, exist_ok=True)
    table.to_csv(output, index=False)
    print(f"[report] Saved {len(table)} rows → {output}")


@app.command()
def probabilities(
    aedata: Path = typer.Option(..., "--aedata", help="AE table CSV used for sampling."),
    posterior_path: Path = typer.Option(..., "--posterior", help="Posterior table written by `history`."),
    output_root: Path = typer.Option(DEFAULT_OUTPUT_ROOT, "--output-root", help="Directory for pit.csv/pic.csv."),
) -> None:
    """
    Write per-draw incidence probabilities (pit, pic) for each AE.
    """
    try:
        records = read_aedata(aedata)
    except ValueError as exc:
        raise typer.BadParameter(str(exc)) from exc
    posterior = _read_posterior(posterior_path)

    try:
        draws = extract_probabilities(records, posterior)
    except HierModelError as exc:
        typer.echo(f"[probabilities] {type(exc).__name__}: {exc}", err=True)
        raise typer.Exit(code=1) from exc
    output_root.mkdir(parents=True, exist_ok=True)
    draws.pit.to_csv(output_root / "pit.csv", index=False)
    draws.pic.to_csv(output_root / "pic.csv", index=False)
    print(f"[probabilities] Saved pit/pic for {len(records)} AEs under {output_root}")


@app.command()
def diagnostics(
    posterior_path: Path = typer.Option(..., "--posterior", help="Posterior table written by `history`."),
    parameter: List[str] = typer.Option(
        ["OR", "Diff"],
        "--parameter",
        help="Parameter families to diagnose.",
        show_default=True,
    ),
) -> None:
    """
    Print split R-hat and bulk ESS per column.
    """
    posterior = _read_posterior(posterior_path)
    try:
        table = convergence_summary(posterior, parameter)
    except ValueError as exc:
        raise typer.BadParameter(str(exc)) from exc
    typer.echo(table.to_string())


if __name__ == "__main__":
    app()
