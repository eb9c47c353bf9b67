"""Human-friendly output formatter - converts plans, results and state to readable text."""

import json
import os
from typing import Any, List, Optional
from ..execution.models import ApplyReport, ResultStatus
from ..planning.models import ActionType, Plan, PlannedAction
from ..state.models import StateRecord, StateSnapshot


def _use_ascii(ascii_mode: Optional[bool] = None) -> bool:
    """Resolve whether to use ASCII output (checked at format time)."""
    if ascii_mode is not None:
        return bool(ascii_mode)
    return os.environ.get("CONVERGE_ASCII", "").lower() in ("1", "true", "yes")


def _box(title: str, width: int = 65, ascii_mode: bool = False) -> List[str]:
    """Return box-drawing header lines."""
    b = {"tl": "+", "tr": "+", "h": "-", "v": "|"} if ascii_mode else {"tl": "┌", "tr": "┐", "h": "─", "v": "│"}
    h = b["h"] * (width - 2)
    return [
        b["tl"] + h + b["tr"],
        f"{b['v']} {title:<{width - 4}} {b['v']}",
        ("+" if ascii_mode else "└") + h + ("+" if ascii_mode else "┘"),
        "",
    ]


def _section(title: str, width: int = 65) -> List[str]:
    """Return section divider."""
    h = "-" * width
    return [h, title.center(width), h]


_SYMBOLS = {
    ActionType.CREATE: ("+", "+"),
    ActionType.UPDATE: ("~", "~"),
    ActionType.REPLACE: ("-/+", "±"),
    ActionType.DELETE: ("-", "-"),
}

_STATUS_MARKS = {
    ResultStatus.SUCCEEDED: ("[OK]", "✅"),
    ResultStatus.FAILED: ("[FAIL]", "❌"),
    ResultStatus.SKIPPED: ("[SKIP]", "⏭️ "),
}


def _value(value: Any) -> str:
    return json.dumps(value, sort_keys=True, default=str)


def _format_action(planned: PlannedAction, ascii_mode: bool) -> List[str]:
    action = ActionType(planned.action)
    symbol = _SYMBOLS[action][0 if ascii_mode else 1]
    lines = [f"  {symbol} {planned.name} ({planned.resource_type}) will be {action.value.lower()}d"
             if action != ActionType.REPLACE else
             f"  {symbol} {planned.name} ({planned.prior_type} -> {planned.resource_type}) will be replaced"]
    
    prior = planned.prior_attributes or {}
    if action == ActionType.CREATE:
        for key, value in planned.attributes.items():
            lines.append(f"      {key} = {_value(value)}")
    elif action in (ActionType.UPDATE, ActionType.REPLACE):
        for key in planned.changed_keys:
            before = _value(prior[key]) if key in prior else "(absent)"
            after = _value(planned.attributes[key]) if key in planned.attributes else "(removed)"
            lines.append(f"      {key}: {before} -> {after}")
    if planned.depends_on:
        lines.append(f"      after: {', '.join(planned.depends_on)}")
    if planned.deferred_inputs:
        lines.append(f"      known after apply: {', '.join(planned.deferred_inputs)}")
    return lines


def format_plan(plan: Plan, ascii_mode: Optional[bool] = None) -> str:
    """Render a plan in execution order."""
    ascii_mode = _use_ascii(ascii_mode)
    title = f"converge {'destroy ' if plan.destroy else ''}plan: {plan.environment}"
    lines = _box(title, ascii_mode=ascii_mode)
    
    if plan.is_empty:
        lines.append("No changes. Infrastructure matches the declarations.")
        return "\n".join(lines)
    
    lines.extend(_section("ACTIONS (in order)"))
    for planned in plan.actions:
        lines.extend(_format_action(planned, ascii_mode))
    lines.append("")
    
    counts = plan.counts()
    lines.append(
        f"Plan: {counts['CREATE']} to create, {counts['UPDATE']} to update, "
        f"{counts['REPLACE']} to replace, {counts['DELETE']} to delete."
    )
    return "\n".join(lines)


def format_report(report: ApplyReport, ascii_mode: Optional[bool] = None) -> str:
    """Render per-resource apply results with the originating error of each failure."""
    ascii_mode = _use_ascii(ascii_mode)
    lines = _box(f"converge apply: {report.environment}", ascii_mode=ascii_mode)
    
    if not report.results:
        lines.append("No changes applied.")
        return "\n".join(lines)
    
    lines.extend(_section("RESULTS"))
    for result in report.results:
        status = ResultStatus(result.status)
        mark = _STATUS_MARKS[status][0 if ascii_mode else 1]
        line = f"  {mark} {result.action:<8} {result.name}"
        if status == ResultStatus.SUCCEEDED and result.attempts > 1:
            line += f" (after {result.attempts} attempts)"
        lines.append(line)
        if status == ResultStatus.FAILED:
            lines.append(f"      error: {result.error_type}: {result.error}")
        elif status == ResultStatus.SKIPPED:
            lines.append(f"      reason: {result.reason}")
    lines.append("")
    
    summary = report.summary()
    lines.append(
        f"Outcome: {report.outcome.value} - {summary['SUCCEEDED']} succeeded, "
        f"{summary['FAILED']} failed, {summary['SKIPPED']} skipped."
    )
    if report.cancelled:
        lines.append("Apply was cancelled; remaining actions were not started.")
    return "\n".join(lines)


def format_state(snapshot: StateSnapshot, ascii_mode: Optional[bool] = None) -> str:
    """List resources recorded for an environment."""
    ascii_mode = _use_ascii(ascii_mode)
    lines = _box(f"converge state: {snapshot.environment} (serial {snapshot.serial})", ascii_mode=ascii_mode)
    if not snapshot.records:
        lines.append("No resources recorded.")
        return "\n".join(lines)
    for record in snapshot.records.values():
        lines.append(f"  {record.name:<24} {record.type:<20} {record.provider_id}")
    return "\n".join(lines)


def format_record(record: StateRecord) -> str:
    """Show one state record in full."""
    lines = [
        f"name:         {record.name}",
        f"type:         {record.type}",
        f"provider:     {record.provider}",
        f"provider_id:  {record.provider_id}",
        f"dependencies: {', '.join(record.dependencies) or '(none)'}",
        "attributes:",
    ]
    lines.extend(f"  {key} = {_value(value)}" for key, value in record.attributes.items())
    lines.append("outputs:")
    lines.extend(f"  {key} = {_value(value)}" for key, value in record.outputs.items())
    return "\n".join(lines)
