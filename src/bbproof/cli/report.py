"""Human-readable rendering of a verified result record."""
from __future__ import annotations

from typing import Optional

from ..claims import ResultRecord


def record_rows(record: ResultRecord, context: Optional[dict] = None) -> list[tuple[str, str]]:
    rows = list((context or {}).items())
    if record.shape.binds_code:
        rows += [
            ("asset", "0x" + record.asset.hex()),
            ("target", "0x" + record.target.hex()),
            ("selector", "0x" + record.selector.hex()),
        ]
    op = ">=" if record.comparison.value == "ge" else ">"
    loss_label = "loss" if record.shape.computes_delta else "potential loss"
    rows += [
        ("shape", record.shape.value),
        ("threshold", str(record.threshold)),
        (loss_label, "0x" + record.loss.hex()),
        (f"{loss_label} (dec)", str(record.loss_value)),
        (f"meets threshold ({op})", "yes" if record.meets_threshold else "no"),
    ]
    return rows


def print_record(record: ResultRecord, context: Optional[dict] = None, title: str = "PROOF VERIFIED") -> None:
    """Print the record as a Rich panel and table."""
    from rich.box import ROUNDED
    from rich.console import Console
    from rich.panel import Panel
    from rich.table import Table

    console = Console()
    table = Table(box=ROUNDED, border_style="cyan", show_header=False)
    table.add_column("Field", style="bold", min_width=16)
    table.add_column("Value", overflow="fold")
    for name, value in record_rows(record, context):
        if name.startswith("meets threshold"):
            style = "green" if record.meets_threshold else "red"
            value = f"[{style}]{value}[/{style}]"
        table.add_row(name, value)

    console.print()
    console.print(Panel(table, title=f"[bold cyan]{title}[/bold cyan]", border_style="cyan", expand=False))
