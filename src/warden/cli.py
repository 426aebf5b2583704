"""
CLI entry point for Warden.

This module provides the Typer-based command-line interface for Warden.
Every command reads a policy set and an evaluation context from YAML files
and delegates to the PolicyEngine.

Commands:
    evaluate        Decide a request (exit 0 on allow, 1 on deny)
    check           Report whether any deny policy matches (exit 1 if so)
    explain         List matching policies and the full evaluation trace
    system-policies Print the built-in system policies for an organization

Exit codes:
    0   allowed / no deny policy matched
    1   denied / a deny policy matched
    2   the policy set or context could not be loaded
"""

import json
import logging
import traceback
from pathlib import Path
from typing import Annotated, Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table

from warden import __version__
from warden.errors import WardenError
from warden.policy import PolicyEngine
from warden.report import build_result_dict, render_evaluation, render_trace, serialize_match
from warden.schema import (
    PolicyEvaluationContext,
    PolicySet,
    dump_policy_set,
    load_context,
    load_policy_set,
    to_plain,
)
from warden.seeds import create_system_policies

EXIT_ALLOW = 0
EXIT_DENY = 1
EXIT_LOAD_ERROR = 2

# Initialize Typer app with metadata
app = typer.Typer(
    name="warden",
    help="Evaluate attribute-based access control policies.",
    add_completion=False,
    no_args_is_help=True,
)

# Rich console for formatted output
console = Console()


PoliciesArg = Annotated[
    Path,
    typer.Argument(
        help="Path to the policy set YAML file.",
        exists=True,
        readable=True,
        resolve_path=True,
    ),
]
ContextArg = Annotated[
    Path,
    typer.Argument(
        help="Path to the evaluation context YAML file.",
        exists=True,
        readable=True,
        resolve_path=True,
    ),
]
JsonOpt = Annotated[bool, typer.Option("--json", help="Output results in JSON format.")]
VerboseOpt = Annotated[
    bool, typer.Option("--verbose", help="Log each evaluation step to stderr.")
]
DebugOpt = Annotated[
    bool, typer.Option("--debug", help="Enable debug mode with full error tracebacks.")
]


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        console.print(f"[bold]warden[/bold] version {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: Annotated[
        Optional[bool],
        typer.Option(
            "--version",
            "-v",
            help="Show version and exit.",
            callback=version_callback,
            is_eager=True,
        ),
    ] = None,
) -> None:
    """
    Warden - ABAC policy evaluation.

    Decide requests against a set of allow/deny policies with deny-overrides
    and default deny.
    """
    pass


@app.command()
def evaluate(
    policies_path: PoliciesArg,
    context_path: ContextArg,
    json_output: JsonOpt = False,
    trace: Annotated[
        bool,
        typer.Option("--trace", help="Show why each active policy did or did not match."),
    ] = False,
    verbose: VerboseOpt = False,
    debug: DebugOpt = False,
) -> None:
    """
    Decide a request against a policy set.

    Example:
        $ warden evaluate policies.yaml request.yaml --trace
    """
    _configure_logging(verbose)
    policy_set, context = _load_inputs(policies_path, context_path, json_output, debug)

    engine = PolicyEngine()
    result = engine.evaluate_policies(policy_set.policies, context)
    match_trace = engine.explain(policy_set.policies, context) if trace else None

    if json_output:
        print(json.dumps(build_result_dict(result, context, match_trace), indent=2))
    else:
        render_evaluation(result, context, console=console, trace=match_trace)

    raise typer.Exit(code=EXIT_ALLOW if result.allowed else EXIT_DENY)


@app.command()
def check(
    policies_path: PoliciesArg,
    context_path: ContextArg,
    json_output: JsonOpt = False,
    verbose: VerboseOpt = False,
    debug: DebugOpt = False,
) -> None:
    """
    Check whether any active deny policy matches a request.

    Allow policies are not consulted. Exits 1 when a deny policy matches.

    Example:
        $ warden check policies.yaml request.yaml
    """
    _configure_logging(verbose)
    policy_set, context = _load_inputs(policies_path, context_path, json_output, debug)

    denied = PolicyEngine().would_deny(policy_set.policies, context)

    if json_output:
        print(json.dumps({"action": context.action, "would_deny": denied}, indent=2))
    elif denied:
        console.print(f"[red]✗[/red] A deny policy matches action [bold]{escape(context.action)}[/bold]")
    else:
        console.print(f"[green]✓[/green] No deny policy matches action [bold]{escape(context.action)}[/bold]")

    raise typer.Exit(code=EXIT_DENY if denied else EXIT_ALLOW)


@app.command()
def explain(
    policies_path: PoliciesArg,
    context_path: ContextArg,
    json_output: JsonOpt = False,
    verbose: VerboseOpt = False,
    debug: DebugOpt = False,
) -> None:
    """
    List the policies that match a request, and why the others do not.

    Matching policies are listed in file order; the trace follows
    evaluation order (deny policies first, then by priority).

    Example:
        $ warden explain policies.yaml request.yaml
    """
    _configure_logging(verbose)
    policy_set, context = _load_inputs(policies_path, context_path, json_output, debug)

    engine = PolicyEngine()
    matching = engine.find_matching_policies(policy_set.policies, context)
    match_trace = engine.explain(policy_set.policies, context)

    if json_output:
        output = {
            "context": to_plain(context),
            "matching": [serialize_match(m) for m in matching],
            "trace": [serialize_match(m) for m in match_trace],
        }
        print(json.dumps(output, indent=2))
        return

    table = Table(title="Matching policies", show_header=True, header_style="bold")
    table.add_column("Policy", style="cyan")
    table.add_column("Effect", width=6)
    table.add_column("Priority", justify="right", width=8)
    for item in matching:
        effect_style = "red" if item.policy.is_deny() else "green"
        table.add_row(
            escape(item.policy.name),
            f"[{effect_style}]{item.policy.effect.value}[/{effect_style}]",
            str(item.policy.priority),
        )

    if matching:
        console.print(table)
    else:
        console.print("[dim]No active policy matches this request[/dim]")
    console.print()
    render_trace(match_trace, console=console, title="Evaluation trace")


@app.command("system-policies")
def system_policies(
    organization_id: Annotated[
        str,
        typer.Argument(help="Organization the policies belong to."),
    ],
    output: Annotated[
        Optional[Path],
        typer.Option(
            "--out",
            "-o",
            help="Write the YAML to this file instead of stdout.",
            resolve_path=True,
        ),
    ] = None,
) -> None:
    """
    Print the built-in system policies for an organization as YAML.

    Example:
        $ warden system-policies org-123 --out policies.yaml
    """
    content = dump_policy_set(PolicySet(policies=create_system_policies(organization_id)))

    if output is None:
        print(content, end="")
        return

    output.write_text(content)
    console.print(f"[green]✓[/green] Wrote system policies to {output}")


# =============================================================================
# Helpers
# =============================================================================


def _configure_logging(verbose: bool) -> None:
    """Send warden's DEBUG records to stderr through rich when verbose."""
    if not verbose:
        return
    handler = RichHandler(console=Console(stderr=True), show_path=False)
    log = logging.getLogger("warden")
    log.handlers = [handler]
    log.setLevel(logging.DEBUG)


def _load_inputs(
    policies_path: Path,
    context_path: Path,
    json_output: bool,
    debug: bool,
) -> tuple[PolicySet, PolicyEvaluationContext]:
    """Load both YAML inputs, exiting with EXIT_LOAD_ERROR on failure."""
    try:
        policy_set = load_policy_set(policies_path)
        context = load_context(context_path)
    except WardenError as e:
        if json_output:
            _output_json_error(e, debug)
        else:
            console.print(f"[red]{escape(str(e))}[/red]")
            if debug:
                console.print(f"[dim]{traceback.format_exc()}[/dim]")
        raise typer.Exit(code=EXIT_LOAD_ERROR)

    return policy_set, context


def _output_json_error(error: WardenError, include_traceback: bool = False) -> None:
    """Output an error in JSON format."""
    output = {"error": True, **error.to_dict()}
    if include_traceback:
        output["traceback"] = traceback.format_exc()
    print(json.dumps(output, indent=2))


if __name__ == "__main__":
    app()
