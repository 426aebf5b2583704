"""
Reporting module for Warden.

Renders evaluation results for humans and machines.

Output formats:
    - Console: Rich panel with the decision, the request and an optional
      per-policy trace table
    - JSON: Structured output for programmatic consumption

Example:
    from warden.report import render_evaluation, generate_json_result

    render_evaluation(result, context, trace=engine.explain(policies, context))
    print(generate_json_result(result, context))
"""

from warden.report.console import render_evaluation, render_trace
from warden.report.json import build_result_dict, generate_json_result, serialize_match

__all__ = [
    "render_evaluation",
    "render_trace",
    "generate_json_result",
    "build_result_dict",
    "serialize_match",
]
