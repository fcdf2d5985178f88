"""
Command line interface for llm-sizer
"""

import asyncio
import logging
import sys
from pathlib import Path
from typing import Optional, Tuple

import click
from rich.console import Console
from rich.logging import RichHandler

from . import __version__
from .config import load_config
from .display import SizingDisplay
from .errors import SizingError
from .estimator import MemoryEstimator
from .export import EXPORT_FORMATS, export_matrix
from .hardware import HostDetector
from .matrix import build_matrix, select_best, unique_param_sizes
from .models import ModelCatalog, ModelVariant
from .platforms import PlatformClass, usable_memory
from .quantization import ALL_QUANT_KEYS, QUANT_KEYS
from .verdict import classify, explain, ram_is_known

# Setup logging
logging.basicConfig(
    level=logging.INFO,
    format="%(message)s",
    datefmt="[%X]",
    handlers=[RichHandler(rich_tracebacks=True)]
)
logger = logging.getLogger(__name__)

PLATFORM_CHOICES = [p.value for p in PlatformClass]


def _fail(ctx, console: Console, message: str, error: Exception) -> None:
    console.print(f"[red]❌ {message}: {error}[/red]")
    if ctx.obj["verbose"]:
        logger.exception("Detailed error information")
    sys.exit(1)


def _resolve_host(
    ram: Optional[float],
    platform_name: Optional[str],
    detect: bool,
) -> Tuple[Optional[float], PlatformClass, Optional[int]]:
    """Combine explicit options with detected host values; options win"""
    cores = None
    platform_class = PlatformClass(platform_name) if platform_name else PlatformClass.DEFAULT

    if detect:
        detector = HostDetector()
        system_info = asyncio.run(detector.detect_system_info())
        cores = system_info.cpu.cores
        if ram is None:
            ram = system_info.ram
        if platform_name is None:
            platform_class = detector.platform_class()

    return ram, platform_class, cores


def host_options(func):
    """Shared --ram/--platform/--detect options"""
    func = click.option("--detect", is_flag=True, help="Detect RAM and platform from this machine")(func)
    func = click.option("--platform", "platform_name", type=click.Choice(PLATFORM_CHOICES),
                        help="Platform class (default: 'default', or detected)")(func)
    func = click.option("--ram", type=float, help="Installed RAM in GB")(func)
    return func


def variant_options(func):
    """Shared options describing a single variant"""
    func = click.option("--context-override", type=int, help="Context length to size the KV cache for")(func)
    func = click.option("--context", default=8192, show_default=True, help="Variant's native context length")(func)
    func = click.option("--quant", default="Q4_K_M", show_default=True,
                        help="Quantization of the download (sizeless variants assume the default quant)")(func)
    func = click.option("--size-gb", default=0.0, show_default=True,
                        help="Download size in GB (0 = derive from params)")(func)
    func = click.argument("params_b", type=float)(func)
    return func


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose logging")
@click.option("--config", "config_file", type=click.Path(exists=True, dir_okay=False),
              help="Sizing config file (JSON or YAML)")
@click.option("--models-file", type=click.Path(exists=True, dir_okay=False), help="Path to models.json file")
@click.pass_context
def cli(ctx, verbose: bool, config_file: Optional[str], models_file: Optional[str]):
    """Check whether a local LLM fits in your machine's memory"""
    if verbose:
        logging.getLogger().setLevel(logging.DEBUG)

    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["models_file"] = Path(models_file) if models_file else None

    try:
        ctx.obj["config"] = load_config(Path(config_file) if config_file else None)
    except SizingError as e:
        _fail(ctx, Console(), "Invalid configuration", e)


@cli.command()
@variant_options
@click.pass_context
def estimate(ctx, params_b: float, size_gb: float, quant: str, context: int, context_override: Optional[int]):
    """Show the memory breakdown for a model variant"""
    console = Console()
    try:
        estimator = MemoryEstimator(ctx.obj["config"])
        variant = ModelVariant(params_b=params_b, size_gb=size_gb, quant=quant.upper(), context=context)

        if context_override is not None:
            result, impact = estimator.estimate_with_context(variant, context_override)
            effective = context_override
        else:
            result, impact = estimator.estimate(variant), None
            effective = min(context, ctx.obj["config"].default_context_cap)

        SizingDisplay(console).display_estimate(variant, result, effective, impact)
    except SizingError as e:
        _fail(ctx, console, "Estimation failed", e)


@cli.command()
@variant_options
@host_options
@click.option("--cores", type=int, help="CPU core count (used in notes)")
@click.option("--name", default="", help="Model name for the run command")
@click.pass_context
def check(ctx, params_b: float, size_gb: float, quant: str, context: int, context_override: Optional[int],
          ram: Optional[float], platform_name: Optional[str], detect: bool, cores: Optional[int], name: str):
    """Give a full feasibility verdict for a model variant"""
    console = Console()
    try:
        config = ctx.obj["config"]
        ram, platform_class, detected_cores = _resolve_host(ram, platform_name, detect)
        variant = ModelVariant(params_b=params_b, size_gb=size_gb, quant=quant.upper(), context=context,
                               tag=f"{params_b:g}b")

        result = MemoryEstimator(config).estimate(variant, context_override)
        classification = classify(result, ram, platform_class, config)
        detail = explain(variant, result, classification, name, cores or detected_cores, platform_class, config)

        display = SizingDisplay(console)
        effective = context_override if context_override is not None else min(context, config.default_context_cap)
        display.display_estimate(variant, result, effective)
        display.display_verdict(detail, classification)
    except SizingError as e:
        _fail(ctx, console, "Check failed", e)


@cli.command()
@click.option("--sizes", "-s", multiple=True, type=float, help="Parameter sizes in billions (repeatable)")
@click.option("--model", "model_id", help="Use the parameter sizes of a catalog model")
@click.option("--all-quants", is_flag=True, help="Show every quantization level")
@click.option("--context", type=int, help="Context length (default 4096)")
@host_options
@click.option("--export", "export_format", type=click.Choice(EXPORT_FORMATS), help="Export instead of displaying")
@click.option("--output", "-o", type=click.Path(dir_okay=False), help="Write the export to a file")
@click.pass_context
def matrix(ctx, sizes: tuple, model_id: Optional[str], all_quants: bool, context: Optional[int],
           ram: Optional[float], platform_name: Optional[str], detect: bool,
           export_format: Optional[str], output: Optional[str]):
    """Compare feasibility across sizes and quantization levels"""
    console = Console()
    try:
        config = ctx.obj["config"]
        param_sizes = list(sizes)
        if model_id:
            entry = ModelCatalog(ctx.obj["models_file"]).get_model(model_id)
            if not entry:
                console.print(f"[red]❌ Model '{model_id}' not found[/red]")
                sys.exit(1)
            param_sizes.extend(unique_param_sizes(entry.variants))
        if not param_sizes:
            param_sizes = [1, 3, 7, 8, 14, 32, 70]

        ram, platform_class, _ = _resolve_host(ram, platform_name, detect)
        quant_keys = ALL_QUANT_KEYS if all_quants else QUANT_KEYS
        rows = build_matrix(param_sizes, quant_keys, ram, context, platform_class, config)

        if export_format:
            data = export_matrix(rows, export_format)
            if output:
                Path(output).write_text(data)
                console.print(f"✅ Matrix saved to [bold green]{output}[/bold green]")
            else:
                click.echo(data)
            return

        SizingDisplay(console).display_matrix(rows, ram, context or config.matrix_context)
    except SizingError as e:
        _fail(ctx, console, "Matrix failed", e)


@cli.command()
@click.argument("model_id")
@host_options
@click.pass_context
def best(ctx, model_id: str, ram: Optional[float], platform_name: Optional[str], detect: bool):
    """Recommend the largest variant of a model that fits"""
    console = Console()
    try:
        config = ctx.obj["config"]
        entry = ModelCatalog(ctx.obj["models_file"]).get_model(model_id)
        if not entry:
            console.print(f"[red]❌ Model '{model_id}' not found[/red]")
            sys.exit(1)

        ram, platform_class, _ = _resolve_host(ram, platform_name, detect)
        if not ram_is_known(ram):
            console.print("[yellow]⚠️ RAM unknown. Pass --ram or --detect to get a recommendation.[/yellow]")
            return

        SizingDisplay(console).display_best(entry, select_best(entry.variants, ram, platform_class, config))
    except (SizingError, OSError, ValueError) as e:
        _fail(ctx, console, "Recommendation failed", e)


@cli.command()
@click.option("--model-id", help="Show one model's variants with verdicts")
@click.option("--category", help="Filter by category")
@host_options
@click.pass_context
def models(ctx, model_id: Optional[str], category: Optional[str],
           ram: Optional[float], platform_name: Optional[str], detect: bool):
    """List catalog models"""
    console = Console()
    try:
        config = ctx.obj["config"]
        catalog = ModelCatalog(ctx.obj["models_file"])
        display = SizingDisplay(console)

        if not model_id:
            display.display_models(catalog.get_models_by_category(category) if category else catalog.models)
            return

        entry = catalog.get_model(model_id)
        if not entry:
            console.print(f"[red]❌ Model '{model_id}' not found[/red]")
            sys.exit(1)

        ram, platform_class, _ = _resolve_host(ram, platform_name, detect)
        estimator = MemoryEstimator(config)
        results = []
        for variant in entry.variants:
            result = estimator.estimate(variant)
            results.append((variant, result, classify(result, ram, platform_class, config)))
        display.display_model(entry, results)
    except (SizingError, OSError, ValueError) as e:
        _fail(ctx, console, "Error loading models", e)


@cli.command()
@click.option("--use-cache/--no-cache", default=True, help="Use hardware detection cache")
@click.pass_context
def hardware(ctx, use_cache: bool):
    """Display detected host memory and platform"""
    console = Console()
    try:
        detector = HostDetector()
        system_info = asyncio.run(detector.detect_system_info(use_cache))
        platform_class = detector.platform_class()
        memory = usable_memory(system_info.ram, platform_class, ctx.obj["config"]) if system_info.ram else None
        SizingDisplay(console).display_hardware(system_info, platform_class, memory)
    except KeyboardInterrupt:
        console.print("\n[yellow]Operation cancelled by user.[/yellow]")
        sys.exit(0)
    except (OSError, RuntimeError) as e:
        _fail(ctx, console, "Hardware detection failed", e)


@cli.command()
@click.pass_context
def clear_cache(ctx):
    """Clear hardware detection cache"""
    console = Console()
    try:
        if HostDetector().clear_cache():
            console.print("[green]✅ Hardware cache cleared[/green]")
        else:
            console.print("[yellow]⚠️ No cache file found[/yellow]")
    except OSError as e:
        _fail(ctx, console, "Error clearing cache", e)


@cli.command()
def quants():
    """List quantization levels"""
    SizingDisplay(Console()).display_quants()


@cli.command()
def version():
    """Show version information"""
    console = Console()
    console.print(f"[cyan]llm-sizer v{__version__}[/cyan]")
    console.print(f"[dim]Python {sys.version.split()[0]}[/dim]")


if __name__ == "__main__":
    cli()
