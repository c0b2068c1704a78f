"""Rich terminal views of a finished session and the resolved configuration."""

from typing import Optional

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from .config import Config
from .models import SessionResult
from .planning.models import OutingPlan


def _money(value: float) -> str:
	return f"${value:.2f}"


def render_plan(plan: OutingPlan, console: Optional[Console] = None) -> None:
	"""Render the outing plan with its cost breakdown."""
	console = console or Console()

	if plan.confirmed:
		status = "[green]confirmed[/green]"
	elif plan.confirmed is False:
		status = "[yellow]needs changes[/yellow]"
	else:
		status = "[dim]not voted[/dim]"

	summary = (
		f"[bold]Date:[/bold] {plan.date.date_str} ({plan.date.label}) {plan.date.start}-{plan.date.end}\n"
		f"[bold]Location:[/bold] {plan.location.name}\n"
		f"[bold]Restaurant:[/bold] {plan.restaurant.name}\n"
		f"[bold]Meeting point:[/bold] {plan.origin}\n"
		f"[bold]Status:[/bold] {status}"
	)
	if plan.weather:
		summary += f"\n[bold]Weather:[/bold] {plan.weather.condition}, {plan.weather.temp_min:g}-{plan.weather.temp_max:g}°C"
	console.print(Panel(summary, title=f"Outing in {plan.city}", border_style="green"))

	table = Table(title="Cost per person")
	table.add_column("Leg")
	table.add_column("Details", style="cyan")
	table.add_column("Cost", justify="right")
	costs = plan.costs
	table.add_row("Outbound", plan.transport_to.method if plan.transport_to else "TBD", _money(costs.transport_to))
	table.add_row("Location", plan.location.name, _money(costs.location))
	table.add_row("Restaurant", plan.restaurant.name, _money(costs.restaurant))
	table.add_row("Return", plan.transport_from.method if plan.transport_from else "TBD", _money(costs.transport_from))
	table.add_row("[bold]Total[/bold]", f"{costs.group_size} people: {_money(costs.total_for_group)}", f"[bold]{_money(costs.total_per_person)}[/bold]")
	console.print(table)

	if plan.adjustments:
		console.print(Panel("\n".join(f"- {a}" for a in plan.adjustments), title="Requested changes", border_style="yellow"))


def render_session(result: SessionResult, console: Optional[Console] = None) -> None:
	"""Render replies per stage followed by the final plan."""
	console = console or Console()
	state = result.state

	table = Table(title=f"Session ({state.stage_index} stages, {state.roster_size} participants)")
	table.add_column("Stage", style="cyan")
	table.add_column("Replies")
	table.add_column("Resolved")
	for stage_id, value in state.accumulated.items():
		replies = state.responses.get(stage_id, {})
		shown = ", ".join(f"{escape(str(sender))}: {escape(str(text))}" for sender, text in replies.items()) or "[dim]none[/dim]"
		resolved = value if isinstance(value, str) else repr(value)
		table.add_row(stage_id, shown, escape(resolved))
	console.print(table)

	if isinstance(result.artifact, OutingPlan):
		render_plan(result.artifact, console)


def render_config(config: Config, console: Optional[Console] = None) -> None:
	"""Render the resolved configuration, hiding secrets."""
	console = console or Console()
	table = Table(title="group-planner configuration")
	table.add_column("Setting", style="cyan")
	table.add_column("Value")

	rows = [
		("config_dir", str(config.config_dir)),
		("data_dir", str(config.data_dir)),
		("log_dir", str(config.log_dir)),
		("client_secrets_file", f"{config.client_secrets_file} ({'found' if config.client_secrets_file.exists() else 'missing'})"),
		("catalog_file", f"{config.catalog_file} ({'found' if config.catalog_file.exists() else 'bundled example'})"),
		("city", config.city),
		("roster", ", ".join(config.roster) or "[dim]not set[/dim]"),
		("chat_id", config.chat_id or "[dim]not set[/dim]"),
		("telegram_token", "set" if config.telegram_token else "[red]not set[/red]"),
		("use_oauth", str(config.use_oauth)),
		("auth_url", config.auth_url),
		("stage_timeout", f"{config.stage_timeout:g}s"),
		("confirmation_timeout", f"{config.confirmation_timeout:g}s"),
		("quorum_timeout", f"{config.quorum_timeout:g}s"),
		("quorum_fraction", f"{config.quorum_fraction:g}"),
		("completion_command", config.completion_command or "[dim]catalog planner[/dim]"),
		("log_level", config.log_level),
	]
	for key, value in rows:
		table.add_row(key, value)
	console.print(table)
