"""
Console report generator for Warden.

Renders an evaluation result with Rich: a header panel with the decision,
the request summary, and optionally a trace table showing why each policy
did or did not match.
"""

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from warden.schema import (
    PolicyEffect,
    PolicyEvaluationContext,
    PolicyEvaluationResult,
    PolicyMatchResult,
)


# Status icons
ICON_ALLOW = "[green]✓[/green]"
ICON_DENY = "[red]✗[/red]"
ICON_MATCH = "[green]●[/green]"
ICON_NO_MATCH = "[dim]○[/dim]"


def render_evaluation(
    result: PolicyEvaluationResult,
    context: PolicyEvaluationContext,
    console: Console | None = None,
    trace: list[PolicyMatchResult] | None = None,
) -> None:
    """
    Print an evaluation result.

    Args:
        result: The decision to render
        context: The request it was made for
        console: Rich Console instance (creates one if not provided)
        trace: Optional per-policy match results to list under the decision
    """
    if console is None:
        console = Console()

    _print_header(console, result)
    _print_request(console, context)

    if trace is not None:
        console.print()
        render_trace(trace, console=console)


def render_trace(
    trace: list[PolicyMatchResult],
    console: Console | None = None,
    title: str = "Policies",
) -> None:
    """Print one row per policy with its match status and mismatch reason."""
    if console is None:
        console = Console()

    if not trace:
        console.print(f"[dim]{title}: none[/dim]")
        return

    table = Table(title=title, show_header=True, header_style="bold", expand=True)
    table.add_column("", width=2)
    table.add_column("Priority", justify="right", width=8)
    table.add_column("Effect", width=6)
    table.add_column("Policy", style="cyan")
    table.add_column("Details")

    for item in trace:
        policy = item.policy
        effect_style = "red" if policy.effect == PolicyEffect.DENY else "green"
        table.add_row(
            ICON_MATCH if item.matched else ICON_NO_MATCH,
            str(policy.priority),
            f"[{effect_style}]{policy.effect.value}[/{effect_style}]",
            escape(policy.name),
            "matched" if item.matched else escape(item.mismatch_reason or ""),
        )

    console.print(table)


def _print_header(console: Console, result: PolicyEvaluationResult) -> None:
    if result.allowed:
        style, icon = "green", ICON_ALLOW
    else:
        style, icon = "red", ICON_DENY

    header = Text()
    header.append(" Decision ", style="bold")
    header.append(result.decision.value.upper(), style=f"bold {style}")
    header.append(" │ ", style="dim")
    if result.denied_by_policy:
        header.append("denied by policy", style="yellow")
    elif result.default_deny:
        header.append("default deny", style="yellow")
    else:
        header.append("allowed by policy", style="green")

    console.print(Panel(header, expand=False))
    console.print(f"  {icon} {escape(result.reason)}")
    for policy in result.matched_policies:
        console.print(
            f"  [dim]Policy:[/dim] {escape(policy.name)} "
            f"[dim]({policy.id}, priority {policy.priority})[/dim]"
        )


def _print_request(console: Console, context: PolicyEvaluationContext) -> None:
    subject = context.subject
    resource = context.resource

    console.print(f"  [dim]Action:[/dim]   {escape(context.action)}")
    roles = ", ".join(r.value for r in subject.functional_roles) or "none"
    admin = " [magenta]platform admin[/magenta]" if subject.is_platform_admin else ""
    console.print(
        f"  [dim]Subject:[/dim]  {escape(subject.user_id)} "
        f"({subject.role.value}; functional: {roles}){admin}"
    )
    resource_id = f" {escape(resource.id)}" if resource.id else ""
    console.print(f"  [dim]Resource:[/dim] {resource.type.value}{resource_id}")
    if context.environment is None:
        console.print("  [dim]Environment: not provided[/dim]")
