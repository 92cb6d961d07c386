"""
Scripted walk-through of a resuscitation session.

This script exercises:
1. Configuration loading
2. Session start and initial rhythm assessment
3. Clock ticks, rhythm-check and epinephrine reminders
4. Medication sequencing for a shockable rhythm
5. ROSC, pause and resume

Ticks are driven by the real SessionClock with an accelerated interval.

Run with: uv run python run_simulation.py
"""

import asyncio

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from arrest_assist.config import ClockConfig, configure_logging, get_config, print_config_summary
from arrest_assist.domain.models import Rhythm, SessionSnapshot
from arrest_assist.services.alerts import AlertEvent, AlertMonitor
from arrest_assist.services.resuscitation import ResuscitationEngine
from arrest_assist.services.session_clock import SessionClock

console = Console()


async def advance(clock: SessionClock, monitor: AlertMonitor, seconds: int) -> SessionSnapshot:
    """Let the clock deliver ``seconds`` ticks, feeding every snapshot to the monitor."""
    snapshot = clock.engine.snapshot
    delivered = 0
    async with clock.running():
        async for snapshot in clock.run():
            monitor.observe(snapshot)
            delivered += 1
            if delivered >= seconds:
                break
    return snapshot


def render_status(snapshot: SessionSnapshot, engine: ResuscitationEngine) -> None:
    table = Table(title=f"Session at {snapshot.elapsed}")
    table.add_column("Field", style="cyan")
    table.add_column("Value", style="magenta")

    table.add_row("Phase", snapshot.phase.value)
    table.add_row("Rhythm", snapshot.rhythm.value)
    table.add_row("Rhythm check in", f"{snapshot.rhythm_check_countdown}s")
    table.add_row(
        "Epinephrine window",
        f"{snapshot.epinephrine_countdown_min}s / {snapshot.epinephrine_countdown_max}s",
    )
    table.add_row("Rhythm check due", str(snapshot.rhythm_check_due))
    table.add_row("Epinephrine due", str(snapshot.epinephrine_due))
    table.add_row("Shock urgent", str(snapshot.shock_urgent))
    table.add_row("Next medication", engine.next_recommended_medication().label)

    console.print(table)


def render_timeline(engine: ResuscitationEngine) -> None:
    table = Table(title="Intervention timeline")
    table.add_column("Elapsed", style="cyan")
    table.add_column("Intervention", style="green")
    table.add_column("Detail")

    for record in engine.log:
        table.add_row(record.elapsed_at_recording, record.display_name, record.detail or "")

    console.print(table)

    summary = engine.log.summary()
    console.print(
        Panel(
            "\n".join(f"{kind.display_name}: {count}" for kind, count in summary.items()),
            title="Summary",
        )
    )


async def main() -> None:
    console.print(Panel.fit("Resuscitation session walk-through", style="bold blue"))

    config = get_config()
    configure_logging(config.logging)
    print_config_summary()

    engine = ResuscitationEngine(config.protocol)
    clock = SessionClock(engine, ClockConfig(tick_interval_seconds=0.001))
    monitor = AlertMonitor()

    def on_alert(event: AlertEvent) -> None:
        console.print(f"[bold red]ALERT[/bold red] {event.kind.value} at {event.elapsed}")

    monitor.add_listener(on_alert)

    engine.start().unwrap()
    monitor.observe(engine.select_rhythm(Rhythm.SHOCKABLE).unwrap())
    engine.record_shock().unwrap()

    for cycle in range(1, 5):
        snapshot = await advance(clock, monitor, config.protocol.rhythm_check_interval_seconds)
        render_status(snapshot, engine)

        recommendation = engine.next_recommended_medication()
        console.print(f"Cycle {cycle}: giving {recommendation.label}")
        engine.add_intervention(recommendation.medication, recommendation.label).unwrap()

        monitor.observe(engine.select_rhythm(Rhythm.SHOCKABLE).unwrap())
        engine.record_shock().unwrap()

    snapshot = engine.record_rosc().unwrap()
    render_status(snapshot, engine)
    render_timeline(engine)

    engine.acknowledge_and_resume().unwrap()
    engine.reset()
    console.print("[green]Session reset[/green]")


if __name__ == "__main__":
    asyncio.run(main())
