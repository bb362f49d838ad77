"""
Salon Tabs CLI.

Command-line interface for common operations.
"""

import sys
from pathlib import Path

# Add backend to path for imports
sys.path.insert(0, str(Path(__file__).parent))

import typer
from rich.console import Console
from rich.table import Table

app = typer.Typer(
    name="salon",
    help="Salon Tabs billing CLI",
    add_completion=False,
)
console = Console()


def _money(cents: int) -> str:
    return f"R$ {cents / 100:,.2f}"


# =============================================================================
# Database Commands
# =============================================================================

@app.command()
def init_db():
    """Create all tables."""
    from shared.infrastructure.db import engine
    from salon_api.models import Base

    Base.metadata.create_all(bind=engine)
    console.print(f"[green]✓ Tables created on {engine.url.render_as_string(hide_password=True)}[/green]")


@app.command()
def seed_demo():
    """Seed the floor, staff, customers and menu."""
    from shared.infrastructure.db import get_db_context
    from salon_api.seed import seed

    with get_db_context() as db:
        seeded = seed(db)

    if seeded:
        console.print("[green]✓ Demo data seeded[/green]")
    else:
        console.print("[yellow]Database already seeded, nothing to do[/yellow]")


# =============================================================================
# Billing Commands
# =============================================================================

@app.command()
def show_tab(
    order_id: int = typer.Argument(..., help="Order to show"),
    tip: bool = typer.Option(False, "--tip", help="Include the service tip"),
):
    """Show an order grouped by consumer, with totals."""
    from shared.infrastructure.db import get_db_context
    from salon_api.services.engine import SalonEngine

    with get_db_context() as db:
        engine = SalonEngine(db)
        result = engine.group_lines(order_id)
        if not result.ok:
            console.print(f"[red]✗ {result.error.kind}: {result.error.detail}[/red]")
            raise typer.Exit(1)

        groups = result.value
        totals = engine.compute_totals(groups, tip).unwrap()

        for group in groups:
            title = "Mesa (compartilhado)" if group.is_shared else f"Cliente {group.consumer.customer_id}"
            if not group.seated:
                title += " [dim](saiu)[/dim]"
            table = Table(title=title)
            table.add_column("Item", style="cyan")
            table.add_column("Qtd", justify="right")
            table.add_column("Unit.", justify="right")
            table.add_column("Desc.", justify="right")
            table.add_column("Subtotal", justify="right", style="green")
            for item in group.items:
                table.add_row(
                    item.product_name,
                    str(item.quantity),
                    _money(item.unit_price_cents),
                    f"{item.discount_percent}%" if item.discount_percent else "",
                    _money(item.subtotal_cents),
                )
            table.add_row("", "", "", "Total", _money(group.subtotal_cents))
            console.print(table)

    summary = Table(title=f"Pedido {order_id}")
    summary.add_column("", style="cyan")
    summary.add_column("Valor", justify="right")
    summary.add_row("Subtotal", _money(totals.subtotal_cents))
    summary.add_row(f"Serviço ({totals.tip_rate_percent}%)", _money(totals.tip_cents))
    summary.add_row("Total", _money(totals.grand_total_cents))
    console.print(summary)


# =============================================================================
# Outbox Commands
# =============================================================================

@app.command()
def process_outbox(
    batches: int = typer.Option(1, "--batches", "-b", help="Maximum batches to process"),
):
    """Dispatch pending outbox events once, without the background loop."""
    from salon_api.services.events import CollectingSubscriber, LoggingSubscriber, OutboxProcessor

    collector = CollectingSubscriber()
    processor = OutboxProcessor(subscribers=[LoggingSubscriber(), collector])

    total = 0
    for _ in range(batches):
        processed = processor.process_batch()
        total += processed
        if processed == 0:
            break

    table = Table(title="Outbox Events Dispatched")
    table.add_column("Type", style="cyan")
    table.add_column("Aggregate")
    table.add_column("Id", justify="right")
    for event in collector.events:
        table.add_row(event.event_type, event.aggregate_type, str(event.aggregate_id))
    console.print(table)
    console.print(f"[green]✓ {total} events processed[/green]")


@app.command()
def version():
    """Show version information."""
    import platform

    table = Table(title="Salon Tabs Version")
    table.add_column("Component", style="cyan")
    table.add_column("Version", style="green")

    table.add_row("CLI", "0.1.0")
    table.add_row("Python", platform.python_version())
    table.add_row("Platform", platform.system())

    console.print(table)


if __name__ == "__main__":
    app()
