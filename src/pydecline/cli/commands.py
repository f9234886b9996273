"""CLI commands for PyDecline."""

import logging
from pathlib import Path
from typing import Annotated, Optional

import typer

from ..config import PyDeclineConfig, generate_default_config

app = typer.Typer(
    name="pydecline",
    help="Arps decline curve fitting and EUR forecasting",
    add_completion=False,
)

FIT_COLUMNS = (
    "well_id", "oil_eur_k", "gas_eur_k", "boe_eur_k",
    "oil_qi", "oil_di", "oil_b", "oil_shift",
    "gas_qi", "gas_di", "gas_b", "gas_shift",
)


@app.callback()
def main(
    verbose: Annotated[
        bool,
        typer.Option(
            "-v", "--verbose",
            help="Enable debug logging",
        )
    ] = False,
) -> None:
    """Arps decline curve fitting and EUR forecasting."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


def _load_config(config: Path | None) -> PyDeclineConfig:
    if config:
        return PyDeclineConfig.from_yaml(config)
    return PyDeclineConfig()


def _load_wells(input_file: Path, pd_config: PyDeclineConfig):
    from ..data.reader import load_wells

    wells = load_wells(input_file, pd_config.data)
    if not wells:
        typer.echo("Error: No wells found in file.", err=True)
        raise typer.Exit(1)
    return wells


def _fail(message: str) -> None:
    typer.echo(f"Error: {message}", err=True)
    raise typer.Exit(1)


def _format(value) -> str:
    if isinstance(value, float):
        return f"{value:.6g}"
    return str(value)


@app.command()
def fit(
    input_file: Annotated[
        Path,
        typer.Argument(
            help="Delimited production file (one row per well-month)",
            exists=True,
        )
    ],
    config: Annotated[
        Optional[Path],
        typer.Option(
            "-c", "--config",
            help="YAML config file (use 'pydecline init' to generate template)",
            exists=True,
        )
    ] = None,
    output: Annotated[
        Optional[Path],
        typer.Option(
            "-o", "--output",
            help="Write the EUR table to this file instead of stdout",
        )
    ] = None,
    workers: Annotated[
        int,
        typer.Option(
            "-w", "--workers",
            help="Number of worker processes (default: 1 = sequential)",
        )
    ] = 1,
) -> None:
    """Fit every well and report oil, gas and BOE EUR.

    Output is tab-separated: EURs in thousands, qi per day, Di as a secant
    effective annual rate.

    Example:
        pydecline fit production.tsv -o eur.tsv
    """
    from ..batch.processor import BatchProcessor

    try:
        pd_config = _load_config(config)
        wells = _load_wells(input_file, pd_config)
    except (ValueError, OSError) as e:
        _fail(str(e))

    processor = BatchProcessor(pd_config, workers=workers, show_progress=output is not None)
    result = processor.run(wells)

    days = pd_config.forecast.days_per_year
    lines = ["\t".join(FIT_COLUMNS)]
    for forecast in result.forecasts:
        row = forecast.to_row(days)
        lines.append("\t".join(_format(row[c]) for c in FIT_COLUMNS))
    table = "\n".join(lines) + "\n"

    if output:
        output.write_text(table)
        typer.echo(f"Wrote {len(result.forecasts)} wells to {output}")
    else:
        typer.echo(table, nl=False)

    if result.failed or result.skipped:
        typer.echo(
            f"{result.successful} successful, {result.failed} failed, "
            f"{result.skipped} skipped",
            err=True,
        )
        for well_id, message in result.errors:
            typer.echo(f"  {well_id}: {message}", err=True)


@app.command()
def typecurve(
    input_file: Annotated[
        Path,
        typer.Argument(
            help="Delimited production file (one row per well-month)",
            exists=True,
        )
    ],
    config: Annotated[
        Optional[Path],
        typer.Option(
            "-c", "--config",
            help="YAML config file",
            exists=True,
        )
    ] = None,
) -> None:
    """Aggregate wells into oil and gas type curves and report EUR.

    Example:
        pydecline typecurve production.tsv
    """
    from ..batch.typecurve import build_type_curve
    from ..core.conversions import DeclineRate, convert_decline

    try:
        pd_config = _load_config(config)
        wells = _load_wells(input_file, pd_config)
        result = build_type_curve(wells, pd_config)
    except (ValueError, OSError) as e:
        _fail(str(e))

    days = pd_config.forecast.days_per_year
    for curve, unit in ((result.oil, "bbl"), (result.gas, "mcf")):
        if curve is None:
            continue
        name = curve.product.capitalize()
        model = curve.fit.model
        b = getattr(model, "b", 0.0)
        di = getattr(model, "di", getattr(model, "d", 0.0))
        di_sec = convert_decline(di, DeclineRate.NOMINAL, DeclineRate.SECANT_EFFECTIVE, b)

        typer.echo(f"{name} Avg. Shift: {curve.avg_shift:.6g} months")
        typer.echo(f"{name} Type Well ({curve.n_wells} wells):")
        typer.echo(f"Month\tVolume ({unit})\tForecast ({unit})")
        for month, (volume, forecast) in enumerate(zip(curve.type_well, curve.forecast)):
            typer.echo(f"{month}\t{volume:.6g}\t{forecast:.6g}")
        typer.echo(
            f"{name} TC: (qi = {model.qi / days:.6g} {unit}/d, "
            f"Di = {di_sec * 100:.6g} sec. %/yr, b = {b:.6g})"
        )

    typer.echo(f"Oil EUR: {result.oil_eur / 1000:.6g} Mbbl")
    typer.echo(f"Gas EUR: {result.gas_eur / 1000:.6g} MMscf")
    typer.echo(f"BOE EUR: {result.boe_eur / 1000:.6g} Mboe")


@app.command()
def peak(
    input_file: Annotated[
        Path,
        typer.Argument(
            help="Delimited production file (one row per well-month)",
            exists=True,
        )
    ],
    config: Annotated[
        Optional[Path],
        typer.Option(
            "-c", "--config",
            help="YAML config file",
            exists=True,
        )
    ] = None,
) -> None:
    """Report the peak oil month of each well.

    Example:
        pydecline peak production.tsv
    """
    from ..batch.peak import peak_report

    try:
        pd_config = _load_config(config)
        wells = _load_wells(input_file, pd_config)
    except (ValueError, OSError) as e:
        _fail(str(e))

    typer.echo("API\tName\tPeak Oil Month\tPeak Month Oil (bbl)\tPeak Oil Month Gas (mcf)")
    for record in peak_report(wells):
        typer.echo(
            f"{record.api or ''}\t{record.name or record.well_id}\t{record.month}\t"
            f"{record.oil:.6g}\t{record.gas:.6g}"
        )


@app.command()
def arps(
    model: Annotated[
        str,
        typer.Option(
            "-m", "--model",
            help="Model: exponential, hyperbolic, or hyperbolic_to_exponential",
        )
    ] = "hyperbolic",
    qi: Annotated[
        float,
        typer.Option("--qi", help="Initial rate (per year)"),
    ] = 1000.0,
    di: Annotated[
        float,
        typer.Option("--di", help="Initial decline rate"),
    ] = 0.7,
    b: Annotated[
        float,
        typer.Option("--b", help="Hyperbolic exponent"),
    ] = 1.0,
    df: Annotated[
        float,
        typer.Option("--df", help="Terminal decline rate (hyperbolic_to_exponential only)"),
    ] = 0.05,
    decline_type: Annotated[
        str,
        typer.Option(
            "--decline-type",
            help="Convention of --di and --df: nominal, tangent_effective, or secant_effective",
        )
    ] = "nominal",
    years: Annotated[
        float,
        typer.Option("--years", help="Length of the time grid in years"),
    ] = 30.0,
    step: Annotated[
        float,
        typer.Option("--step", help="Time grid step in years"),
    ] = 1.0,
    economic_limit: Annotated[
        float,
        typer.Option("--el", help="Economic limit rate for EUR (per year)"),
    ] = 365.25,
) -> None:
    """Evaluate an Arps decline model over a time grid.

    Prints time, rate, cumulative volume and instantaneous decline, then
    the EUR at the economic limit.

    Example:
        pydecline arps --model hyperbolic --qi 100000 --di 0.7 --b 1.2 --decline-type secant_effective
    """
    import numpy as np

    from ..core.conversions import decline
    from ..core.models import ModelKind
    from ..core.operations import eur, step_series

    try:
        kind = ModelKind(model)
        di_nominal = decline(di, decline_type, b)
        df_nominal = decline(df, decline_type, b)
        if kind == ModelKind.EXPONENTIAL:
            params = [qi, di_nominal]
        elif kind == ModelKind.HYPERBOLIC:
            params = [qi, di_nominal, b]
        else:
            params = [qi, di_nominal, b, df_nominal]
        curve = kind.model_class.from_vector(params)
        if not step > 0:
            raise ValueError(f"step must be positive, got {step}")
    except ValueError as e:
        _fail(str(e))

    typer.echo(repr(curve))
    t = step_series(0.0, step, int(np.floor(years / step)) + 1)
    rate = curve.rate(t)
    cumulative = curve.cumulative(t)
    d = curve.instantaneous_decline(t)
    typer.echo("t\trate\tcumulative\tD")
    for row in zip(t, rate, cumulative, d):
        typer.echo("\t".join(f"{v:.6g}" for v in row))

    volume, t_eur = eur(curve, economic_limit, years, return_time=True)
    typer.echo(f"EUR: {volume:.6g} at t = {t_eur:.6g} yr")


@app.command()
def init(
    output: Annotated[
        Path,
        typer.Option(
            "-o", "--output",
            help="Output file path",
        )
    ] = Path("pydecline.yaml"),
) -> None:
    """Generate a default configuration file.

    Example:
        pydecline init -o my_config.yaml
    """
    if output.exists():
        overwrite = typer.confirm(f"{output} already exists. Overwrite?")
        if not overwrite:
            raise typer.Exit(0)

    generate_default_config(output)
    typer.echo(f"Config file created: {output}")
    typer.echo("\nEdit this file to customize settings, then use:")
    typer.echo(f"  pydecline fit data.tsv --config {output}")
