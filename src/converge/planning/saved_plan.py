"""Write plans to disk and load them back for a later apply."""

import json
from pathlib import Path
from pydantic import ValidationError
from .models import Plan, PLAN_FORMAT_VERSION
from ..state.models import StateSnapshot
from ..utils.errors import PlanError
from ..utils.logging import get_logger

logger = get_logger("planning.saved_plan")


def save_plan(plan: Plan, path: Path) -> None:
    """
    Write a plan as JSON.
    
    Raises:
        PlanError: If the file cannot be written
    """
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, 'w', encoding='utf-8') as f:
            json.dump(plan.model_dump(), f, indent=2, default=str)
        logger.info(f"Saved plan to {path}")
    except (OSError, TypeError) as e:
        raise PlanError(f"Failed to write plan file {path}: {e}")


def load_plan(path: str) -> Plan:
    """
    Load a plan written by :func:`save_plan`.
    
    Raises:
        PlanError: If the file is missing, not JSON, or not a plan
    """
    plan_path = Path(path)
    if not plan_path.is_file():
        raise PlanError(f"Plan file not found: {path}")
    
    try:
        with open(plan_path, 'r', encoding='utf-8') as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        raise PlanError(f"Invalid JSON in plan file: {e}")
    except OSError as e:
        raise PlanError(f"Error reading plan file: {e}")
    
    try:
        plan = Plan(**data)
    except (ValidationError, TypeError) as e:
        raise PlanError(f"Invalid plan file {path}: {e}")
    
    if plan.version != PLAN_FORMAT_VERSION:
        raise PlanError(f"Unsupported plan version {plan.version} (expected {PLAN_FORMAT_VERSION})")
    return plan


def ensure_plan_current(plan: Plan, snapshot: StateSnapshot) -> None:
    """
    Refuse to apply a plan computed against a different state.
    
    Raises:
        PlanError: If environment or state serial no longer match
    """
    if plan.environment != snapshot.environment:
        raise PlanError(
            f"Plan was computed for environment '{plan.environment}', "
            f"not '{snapshot.environment}'"
        )
    if plan.state_serial != snapshot.serial:
        raise PlanError(
            f"Saved plan is stale: computed against state serial {plan.state_serial}, "
            f"current serial is {snapshot.serial}. Run plan again."
        )
