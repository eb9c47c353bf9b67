"""Apply a plan through providers, honouring its dependency order."""

import heapq
import time
from concurrent.futures import FIRST_COMPLETED, ThreadPoolExecutor, wait
from typing import Any, Dict, List, Optional
from .context import DeploymentContext
from .models import ActionResult, ApplyReport, ResultStatus
from .retry import RetryExhausted, RetryPolicy, call_with_retry
from ..ingest.references import VARIABLE_SCOPE, substitute
from ..planning.models import ActionType, Plan, PlannedAction
from ..providers.registry import ProviderSet
from ..state.models import StateRecord
from ..state.store import StateStore
from ..utils.errors import PermanentError, PlanError, ProviderError
from ..utils.logging import get_logger

logger = get_logger("execution.executor")


class _Outcome:
    """What a worker reports back to the coordinator for one action."""

    def __init__(self):
        self.provider_id: Optional[str] = None
        self.outputs: Dict[str, Any] = {}
        self.prior_deleted = False
        self.error: Optional[ProviderError] = None
        self.attempts = 0
        self.duration_ms = 0


class Executor:
    """
    Runs plan actions on a worker pool.

    The coordinating thread owns all bookkeeping: each action has a readiness
    count of unfinished predecessors and is dispatched when it reaches zero.
    After a success the state store is updated before any dependent is
    released. A failure marks every transitive successor SKIPPED while
    unrelated branches continue.
    """

    def __init__(
        self,
        context: DeploymentContext,
        store: StateStore,
        providers: Optional[ProviderSet] = None,
        retry_policy: Optional[RetryPolicy] = None,
    ):
        self.context = context
        self.store = store
        self.providers = providers or ProviderSet(context)
        self.retry_policy = retry_policy or RetryPolicy.from_settings(context.settings.executor)
        self.max_workers = context.settings.executor.max_workers
        self._records: Dict[str, StateRecord] = {}
        self._actions: Dict[str, PlannedAction] = {}

    def apply(self, plan: Plan) -> ApplyReport:
        """
        Execute ``plan`` and return per-resource results.

        Raises:
            PlanError: If the plan targets another environment or its
                ordering references actions it does not contain
        """
        if plan.environment != self.context.environment:
            raise PlanError(
                f"Plan targets environment '{plan.environment}', "
                f"current environment is '{self.context.environment}'"
            )

        actions = {planned.name: planned for planned in plan.actions}
        self._actions = actions
        position = {planned.name: idx for idx, planned in enumerate(plan.actions)}
        successors: Dict[str, List[str]] = {name: [] for name in actions}
        pending: Dict[str, int] = {}
        for planned in plan.actions:
            for predecessor in planned.depends_on:
                if predecessor not in actions:
                    raise PlanError(f"Action '{planned.name}' waits for unknown action '{predecessor}'")
                successors[predecessor].append(planned.name)
            pending[planned.name] = len(planned.depends_on)

        self._records = dict(self.store.load().records)
        results: Dict[str, ActionResult] = {}
        ready = [(position[name], name) for name, count in pending.items() if count == 0]
        heapq.heapify(ready)

        logger.info(f"Applying {len(actions)} actions to {plan.environment} with {self.max_workers} workers")

        with ThreadPoolExecutor(max_workers=self.max_workers, thread_name_prefix="converge") as pool:
            running = {}
            while ready or running:
                while ready and len(running) < self.max_workers and not self.context.cancelled:
                    _, name = heapq.heappop(ready)
                    planned = actions[name]
                    try:
                        inputs = self._resolve_inputs(planned)
                    except PermanentError as e:
                        self._record_failure(planned, e, 0, 0, results, successors)
                        continue
                    logger.debug(f"Dispatching {ActionType(planned.action).value} {name}")
                    running[pool.submit(self._run, planned, inputs)] = name

                if not running:
                    break

                done, _ = wait(running, return_when=FIRST_COMPLETED)
                for future in done:
                    name = running.pop(future)
                    planned = actions[name]
                    outcome = future.result()
                    if outcome.prior_deleted:
                        self.store.remove(name)
                        self._records.pop(name, None)
                    if outcome.error is not None:
                        self._record_failure(
                            planned, outcome.error, outcome.attempts, outcome.duration_ms, results, successors
                        )
                        continue

                    self._commit(planned, outcome)
                    results[name] = ActionResult(
                        name=name,
                        action=ActionType(planned.action).value,
                        status=ResultStatus.SUCCEEDED,
                        attempts=outcome.attempts,
                        duration_ms=outcome.duration_ms,
                        provider_id=outcome.provider_id,
                    )
                    logger.info(f"{ActionType(planned.action).value} {name} succeeded")
                    for successor in successors[name]:
                        pending[successor] -= 1
                        if pending[successor] == 0 and successor not in results:
                            heapq.heappush(ready, (position[successor], successor))

        cancelled = self.context.cancelled
        for planned in plan.actions:
            if planned.name not in results:
                results[planned.name] = ActionResult(
                    name=planned.name,
                    action=ActionType(planned.action).value,
                    status=ResultStatus.SKIPPED,
                    reason="cancelled" if cancelled else "not dispatched",
                )

        report = ApplyReport(
            environment=plan.environment,
            results=[results[planned.name] for planned in plan.actions],
            cancelled=cancelled,
        )
        logger.info(f"Apply finished: {report.outcome.value} {report.summary()}")
        return report

    def _resolve_inputs(self, planned: PlannedAction) -> Dict[str, Any]:
        """Substitute ``${resource.output}`` references from committed state."""
        if ActionType(planned.action) == ActionType.DELETE:
            return {}

        def lookup(target: str, key: str) -> Any:
            record = self._records.get(target)
            if record is None:
                raise PermanentError(f"Unresolved reference ${{{target}.{key}}}: '{target}' has no state")
            if key == "id":
                return record.provider_id
            if key not in record.outputs:
                raise PermanentError(f"Unresolved reference ${{{target}.{key}}}: no output '{key}'")
            return record.outputs[key]

        return substitute(planned.attributes, lookup, lambda scope: scope != VARIABLE_SCOPE)

    def _run(self, planned: PlannedAction, inputs: Dict[str, Any]) -> _Outcome:
        """Worker body: perform the provider calls for one action."""
        outcome = _Outcome()
        action = ActionType(planned.action)
        started = time.monotonic()
        label = f"{action.value} {planned.name}"
        try:
            if action in (ActionType.DELETE, ActionType.REPLACE):
                prior_kind = planned.prior_provider or planned.provider
                prior_type = planned.prior_type or planned.resource_type
                _, attempts = call_with_retry(
                    self.retry_policy, f"{label} (delete)",
                    self.providers.get(prior_kind).delete, prior_type, planned.provider_id,
                )
                outcome.attempts += attempts
                outcome.prior_deleted = True

            provider = None
            if action != ActionType.DELETE:
                provider = self.providers.get(planned.provider)

            if action in (ActionType.CREATE, ActionType.REPLACE):
                created, attempts = call_with_retry(
                    self.retry_policy, label, provider.create, planned.resource_type, inputs
                )
                outcome.attempts += attempts
                outcome.provider_id = created.provider_id
                outcome.outputs = dict(created.outputs)
            elif action == ActionType.UPDATE:
                outputs, attempts = call_with_retry(
                    self.retry_policy, label, provider.update, planned.resource_type, planned.provider_id, inputs
                )
                outcome.attempts += attempts
                outcome.provider_id = planned.provider_id
                outcome.outputs = dict(outputs or {})
        except RetryExhausted as e:
            outcome.attempts += e.attempts
            outcome.error = e.error
        except ProviderError as e:
            outcome.error = e
        except Exception as e:
            logger.error(f"{label} failed unexpectedly: {e}", exc_info=True)
            outcome.error = PermanentError(f"{type(e).__name__}: {e}")
        outcome.duration_ms = int((time.monotonic() - started) * 1000)
        return outcome

    def _commit(self, planned: PlannedAction, outcome: _Outcome) -> None:
        if ActionType(planned.action) == ActionType.DELETE:
            return
        record = self.store.commit(
            name=planned.name,
            type=planned.resource_type,
            attributes=planned.attributes,
            provider_id=outcome.provider_id,
            outputs=outcome.outputs,
            dependencies=planned.dependencies,
            provider=planned.provider,
        )
        self._records[planned.name] = record

    def _record_failure(
        self,
        planned: PlannedAction,
        error: ProviderError,
        attempts: int,
        duration_ms: int,
        results: Dict[str, ActionResult],
        successors: Dict[str, List[str]],
    ) -> None:
        name = planned.name
        results[name] = ActionResult(
            name=name,
            action=ActionType(planned.action).value,
            status=ResultStatus.FAILED,
            error=str(error),
            error_type=type(error).__name__,
            attempts=attempts,
            duration_ms=duration_ms,
        )
        logger.error(f"{ActionType(planned.action).value} {name} failed: {error}")

        stack = list(successors[name])
        while stack:
            successor = stack.pop()
            if successor in results:
                continue
            results[successor] = ActionResult(
                name=successor,
                action=ActionType(self._actions[successor].action).value,
                status=ResultStatus.SKIPPED,
                reason=f"dependency '{name}' failed",
            )
            logger.warning(f"Skipping {successor}: dependency '{name}' failed")
            stack.extend(successors[successor])
