"""aranet-probe CLI entrypoint."""

import asyncio
import json
import logging
from typing import Optional

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table
from typing_extensions import Annotated

from . import __version__
from .adapter import get_adapter
from .config import ProbeSettings, load_settings
from .const import ProbeMode
from .exception import AdapterError, ConfigError
from .pipeline import ProbeReport, run_probe

NAME = "aranet-probe"
LOG_FORMAT = "%(asctime)s %(levelname)-5s [%(name)s] %(message)s"

app = typer.Typer(add_completion=False)
logger = logging.getLogger(__name__)


def configure_logging(level: str) -> None:
    """Install the root handler, or only adjust the level if one exists."""
    if not logging.getLogger().handlers:
        logging.basicConfig(format=LOG_FORMAT)
    logging.getLogger().setLevel(level)


def _render_report(report: ProbeReport) -> None:
    """Print a table of readings to the console."""
    console = Console()
    if not report.devices_found:
        console.print("No Aranet4 devices found.")
        return
    table = Table(
        "Name",
        "Address",
        "RSSI",
        "CO2",
        "Temperature",
        "Pressure",
        "Humidity",
        "Battery",
    )
    for reading in report.readings:
        rssi = f"{reading.rssi} dBm" if reading.rssi is not None else "--"
        sample = reading.sample
        if sample is None:
            table.add_row(
                reading.name or "(unknown)",
                reading.address,
                rssi,
                f"[red]{escape(f'{reading.error_kind}: {reading.error}')}[/red]",
            )
            continue
        table.add_row(
            reading.name or "(unknown)",
            reading.address,
            rssi,
            f"{sample.co2} ppm",
            f"{sample.temp:.1f} °C",
            f"{sample.pressure:.1f} hPa",
            f"{sample.humidity} %",
            f"{sample.battery} %",
        )
    console.print(table)


@app.command()
def probe(
    scan_length: Annotated[
        Optional[str],
        typer.Option(
            help="How long to scan, e.g. 10s, 2m or 1m30s. Defaults to 10s."
        ),
    ] = None,
    mode: Annotated[
        Optional[ProbeMode],
        typer.Option(help="Read the first matching sensor or every one found."),
    ] = None,
    name_prefix: Annotated[
        Optional[str],
        typer.Option(help="Only use devices whose name starts with this."),
    ] = None,
    service_uuid: Annotated[
        Optional[str], typer.Option(help="Advertised service to scan for.")
    ] = None,
    characteristic_uuid: Annotated[
        Optional[str], typer.Option(help="Characteristic holding the readings.")
    ] = None,
    adapter: Annotated[
        Optional[str], typer.Option(help="Bluetooth adapter, e.g. hci0.")
    ] = None,
    log_level: Annotated[
        Optional[str], typer.Option(help="DEBUG, INFO, WARNING or ERROR.")
    ] = None,
    as_json: Annotated[
        bool, typer.Option("--json", help="Print the readings as JSON.")
    ] = False,
) -> None:
    """Scan for an Aranet4 sensor and print its current readings."""
    try:
        settings = load_settings(
            {
                "scan_length": scan_length,
                "mode": mode,
                "name_prefix": name_prefix,
                "service_uuid": service_uuid,
                "characteristic_uuid": characteristic_uuid,
                "adapter": adapter,
                "log_level": log_level,
            }
        )
    except ConfigError as exc:
        raise typer.BadParameter(str(exc)) from exc

    configure_logging(settings.log_level)
    logger.info("Running %s v%s, with %s", NAME, __version__, settings.describe())

    report = _run(settings)
    if as_json:
        typer.echo(json.dumps(report.as_dict(), indent=2))
    else:
        _render_report(report)


def _run(settings: ProbeSettings) -> ProbeReport:
    """Run the probe, mapping run-ending failures to a non-zero exit."""
    try:
        return asyncio.run(run_probe(get_adapter(settings.adapter), settings))
    except AdapterError as exc:
        logger.error("%s", exc)
        raise typer.Exit(code=1) from exc
    except KeyboardInterrupt as exc:  # pragma: no cover - interactive guard
        logger.error("Interrupted")
        raise typer.Exit(code=130) from exc
    except Exception as exc:
        logger.error("Unrecoverable error: %s", exc, exc_info=True)
        raise typer.Exit(code=1) from exc


def main() -> None:  # pragma: no cover - thin CLI wrapper
    """Run the Typer application."""
    app()


if __name__ == "__main__":  # pragma: no cover
    main()
