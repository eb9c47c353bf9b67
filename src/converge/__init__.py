"""converge - Declarative infrastructure planner and applier."""

from typing import Optional
from .config import load_settings, resolve_environment
from .execution.context import DeploymentContext
from .execution.executor import Executor
from .execution.models import ApplyReport
from .graph.resource_graph import ResourceGraph
from .ingest.declaration_loader import load_declarations
from .planning.models import Plan
from .planning.planner import Planner
from .planning.saved_plan import load_plan, ensure_plan_current
from .providers.registry import ProviderSet
from .state.store import FileStateStore, StateStore
from .utils.logging import setup_logging, get_logger
from .utils.errors import ConvergeError

__version__ = "0.1.0"

__all__ = ["plan", "apply", "destroy", "load_graph", "build_context", "open_store"]

setup_logging()
logger = get_logger("converge")


def build_context(
    environment: Optional[str] = None,
    config_path: Optional[str] = None,
    credentials: Optional[str] = None,
) -> DeploymentContext:
    """Resolve environment and settings into a DeploymentContext."""
    settings = load_settings(config_path)
    return DeploymentContext(
        environment=resolve_environment(environment),
        settings=settings,
        credentials=credentials,
    )


def open_store(context: DeploymentContext) -> StateStore:
    """File-backed state store for the context's environment."""
    return FileStateStore(context.settings.state.directory, context.environment)


def load_graph(declaration_path: str, environment: str) -> ResourceGraph:
    """Load declarations and build a validated resource graph."""
    declarations = load_declarations(declaration_path, environment)
    graph = ResourceGraph()
    graph.build_from_declarations(declarations.resources)
    return graph


def plan(
    declaration_path: str,
    context: DeploymentContext,
    store: Optional[StateStore] = None,
    destroy: bool = False,
) -> Plan:
    """Compute a plan for the declarations without applying it."""
    try:
        graph = load_graph(declaration_path, context.environment)
        store = store or open_store(context)
        return Planner(context).plan(graph, store.load(), destroy=destroy)
    except ConvergeError:
        raise
    except Exception as e:
        logger.error(f"Unexpected error during planning: {e}", exc_info=True)
        raise ConvergeError(f"Planning failed: {e}") from e


def apply(
    declaration_path: Optional[str],
    context: DeploymentContext,
    store: Optional[StateStore] = None,
    providers: Optional[ProviderSet] = None,
    plan_file: Optional[str] = None,
    destroy: bool = False,
) -> ApplyReport:
    """
    Compute (or load) a plan and execute it.

    Args:
        declaration_path: Declaration file; unused when ``plan_file`` is given
        context: Deployment context
        store: State store (defaults to the file store of the environment)
        providers: Provider set (defaults to providers built from settings)
        plan_file: Previously saved plan to apply instead of planning again
        destroy: Plan a full teardown

    Returns:
        ApplyReport with per-resource results
    """
    store = store or open_store(context)
    if plan_file:
        current = load_plan(plan_file)
        ensure_plan_current(current, store.load())
    else:
        current = plan(declaration_path, context, store=store, destroy=destroy)

    if current.is_empty:
        logger.info("No changes. Infrastructure matches the declarations.")

    try:
        return Executor(context, store, providers=providers).apply(current)
    except ConvergeError:
        raise
    except Exception as e:
        logger.error(f"Unexpected error during apply: {e}", exc_info=True)
        raise ConvergeError(f"Apply failed: {e}") from e


def destroy(
    declaration_path: str,
    context: DeploymentContext,
    store: Optional[StateStore] = None,
    providers: Optional[ProviderSet] = None,
) -> ApplyReport:
    """Tear down everything recorded in state for the environment."""
    return apply(declaration_path, context, store=store, providers=providers, destroy=True)
