"""
Rich rendering of estimates, verdicts and matrices
"""

import logging
from typing import Dict, List, Optional, Tuple

from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from .hardware import SystemInfo
from .matrix import QuantMatrixRow, params_label
from .models import MemoryEstimate, ModelEntry, ModelVariant
from .platforms import PlatformClass, UsableMemory
from .quantization import ALL_QUANT_KEYS, QUANT_CONFIGS
from .verdict import Classification, Verdict, VerdictDetail, recommended_max_params

logger = logging.getLogger(__name__)

VERDICT_STYLES = {
    Verdict.COMFORTABLE: "bold green",
    Verdict.TIGHT: "yellow",
    Verdict.MAYBE: "dark_orange",
    Verdict.NO: "bold red",
    Verdict.UNKNOWN: "dim",
}


def format_gb(value: float) -> str:
    """Format a GB figure, switching to MB below 1 GB"""
    if value < 1:
        return f"{value * 1024:.0f} MB"
    return f"{value:.1f} GB"


def format_headroom(headroom_gb: Optional[float]) -> str:
    if headroom_gb is None:
        return "-"
    return f"{headroom_gb:+.1f} GB"


def verdict_text(verdict: Verdict) -> Text:
    return Text(verdict.short_label, style=VERDICT_STYLES[verdict])


class SizingDisplay:
    """Renders sizing results to a rich console"""

    def __init__(self, console: Optional[Console] = None):
        self.console = console or Console()

    def display_hardware(
        self,
        system_info: SystemInfo,
        platform_class: PlatformClass,
        memory: Optional[UsableMemory],
    ) -> None:
        """Display detected host information"""
        table = Table(title="System Information", show_header=False)
        table.add_column("Property", style="cyan")
        table.add_column("Value", style="white")

        table.add_row("Operating System", f"{system_info.os} ({system_info.arch})")
        table.add_row("Platform Class", platform_class.value)
        table.add_row("CPU", system_info.cpu.name)
        table.add_row("CPU Cores", str(system_info.cpu.cores or "Unknown"))
        table.add_row("Total RAM", f"{system_info.ram} GB" if system_info.ram else "Unknown")
        if memory:
            table.add_row("Assumed OS Reserve", format_gb(memory.reserved_gb))
            table.add_row("Usable For Models", format_gb(memory.usable_ram_gb))
        if system_info.ram:
            max_params, note = recommended_max_params(system_info.ram)
            table.add_row("Suggested Max Model", f"~{max_params:g}B parameters ({note})")

        self.console.print(Panel(table, title="Host", border_style="blue"))

    def display_estimate(
        self,
        variant: ModelVariant,
        estimate: MemoryEstimate,
        context: int,
        context_impact_gb: Optional[float] = None,
    ) -> None:
        """Display a memory breakdown"""
        table = Table(title=f"{params_label(variant.params_b)} {variant.quant}", show_header=False)
        table.add_column("Component", style="cyan")
        table.add_column("Memory", style="yellow", justify="right")

        table.add_row("Weights", format_gb(estimate.weights_gb))
        table.add_row(f"KV cache ({context:,} tokens)", format_gb(estimate.kv_cache_gb))
        table.add_row("Runtime overhead", format_gb(estimate.runtime_overhead_gb))
        table.add_row(Text("Total", style="bold"), Text(format_gb(estimate.total_gb), style="bold"))
        if context_impact_gb is not None:
            table.add_row("vs. native context", f"{context_impact_gb:+.2f} GB")

        self.console.print(Panel(table, title="Memory Estimate", border_style="yellow"))

    def display_verdict(self, detail: VerdictDetail, classification: Classification) -> None:
        """Display a full verdict with notes and tips"""
        style = VERDICT_STYLES[detail.verdict]
        body = Text()
        body.append(f"{detail.stamp}\n", style=style)
        body.append(f"{detail.one_liner}\n", style="bold")

        if classification.usable_ram_gb is not None:
            body.append(
                f"\nUsable RAM: {format_gb(classification.usable_ram_gb)} "
                f"(reserved {format_gb(classification.reserved_gb)}), "
                f"headroom {format_headroom(classification.headroom_gb)}\n",
                style="dim",
            )

        if detail.notes:
            body.append("\nNotes\n", style="bold cyan")
            for note in detail.notes:
                body.append(f"  - {note}\n")
        if detail.tips:
            body.append("\nTips\n", style="bold cyan")
            for tip in detail.tips:
                body.append(f"  - {tip}\n")

        self.console.print(Panel(body, title="Verdict", border_style=style.split()[-1]))

    def display_matrix(self, rows: List[QuantMatrixRow], ram_gb: Optional[float], context: int) -> None:
        """Display the size x quantization matrix"""
        ram_label = f"{ram_gb:g} GB RAM" if ram_gb else "RAM unknown"
        table = Table(title=f"Quantization Matrix ({ram_label}, {context:,} token context)")
        table.add_column("Size", style="bold cyan", justify="right")

        quant_keys = list(rows[0].cells) if rows else []
        for key in quant_keys:
            table.add_column(QUANT_CONFIGS[key].label, justify="center")

        for row in rows:
            cells = []
            for key in quant_keys:
                cell = row.cells[key]
                text = Text(f"{format_gb(cell.total_memory_gb)}\n", style="white")
                text.append_text(verdict_text(cell.verdict))
                cells.append(text)
            table.add_row(row.label, *cells)

        self.console.print(table)

    def display_models(self, models: Dict[str, ModelEntry]) -> None:
        """Display the catalog"""
        table = Table(title=f"Available Models ({len(models)} total)")
        table.add_column("Model ID", style="cyan")
        table.add_column("Name", style="white")
        table.add_column("Category", style="yellow")
        table.add_column("Sizes", style="green")
        table.add_column("Publisher", style="blue")

        for slug, entry in models.items():
            sizes = ", ".join(variant.tag for variant in entry.variants)
            table.add_row(slug, entry.name, entry.category, sizes, entry.publisher)

        self.console.print(table)

    def display_model(
        self,
        entry: ModelEntry,
        results: List[Tuple[ModelVariant, MemoryEstimate, Classification]],
    ) -> None:
        """Display one model's variants with estimates and verdicts"""
        table = Table(title=f"{entry.name} ({entry.slug})")
        table.add_column("Variant", style="cyan")
        table.add_column("Params", style="yellow", justify="right")
        table.add_column("Quant", style="green")
        table.add_column("Download", justify="right")
        table.add_column("Needs", justify="right")
        table.add_column("Headroom", justify="right")
        table.add_column("Verdict", justify="center")

        default = entry.default_variant
        for variant, estimate, result in results:
            tag = f"{variant.tag} *" if variant is default else variant.tag
            table.add_row(
                tag,
                params_label(variant.params_b),
                variant.quant,
                format_gb(variant.size_gb),
                format_gb(estimate.total_gb),
                format_headroom(result.headroom_gb),
                verdict_text(result.verdict),
            )

        self.console.print(Panel(table, title=entry.description or entry.name, border_style="green"))

    def display_best(self, entry: ModelEntry, best: Optional[Tuple[ModelVariant, Classification]]) -> None:
        """Display the recommended variant of a model"""
        if best is None:
            self.console.print(Panel(
                f"[red]No variant of {entry.name} is likely to run on this machine.[/red]\n"
                "Consider a smaller model or more RAM.",
                title="No Suitable Variant",
                border_style="red",
            ))
            return

        variant, result = best
        text = Text()
        text.append(f"{entry.slug}:{variant.tag}", style="bold green")
        text.append(f"  ({params_label(variant.params_b)}, {variant.quant})\n")
        text.append("Verdict: ")
        text.append_text(verdict_text(result.verdict))
        text.append(f"\nHeadroom: {format_headroom(result.headroom_gb)}")
        self.console.print(Panel(text, title="Recommended Variant", border_style="green"))

    def display_quants(self) -> None:
        """Display the quantization catalog"""
        table = Table(title="Quantization Levels")
        table.add_column("Key", style="cyan")
        table.add_column("Label", style="white")
        table.add_column("Bits", justify="right")
        table.add_column("Bytes/param", style="yellow", justify="right")
        table.add_column("Description", style="dim")

        for key in ALL_QUANT_KEYS:
            config = QUANT_CONFIGS[key]
            table.add_row(key, config.label, str(config.bits), f"{config.bytes_per_param:.2f}", config.desc)

        self.console.print(table)
