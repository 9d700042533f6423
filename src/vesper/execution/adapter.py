"""Execution adapter: runs an action in simulated or live mode."""

import asyncio
import itertools
import logging
from collections.abc import Awaitable, Callable, Coroutine

import httpx

from vesper.config import Settings
from vesper.execution.handlers import HANDLERS, ActionHandler
from vesper.execution.providers import create_provider
from vesper.execution.providers.base import ProviderAdapter, ProviderCall
from vesper.models.actions import Action, ActionResult, ExecutionMode, ModelRef
from vesper.models.errors import (
    CatalogError,
    ConfigurationError,
    OperationCancelled,
    ProviderError,
)
from vesper.models.outputs import OUTPUT_MODELS
from vesper.pipeline.parser import validate_output
from vesper.registry.catalog import ModelRegistry

logger = logging.getLogger(__name__)

Sleep = Callable[[float], Awaitable[None]]


class Outcome:
    """What an executor produced for one call."""

    def __init__(
        self, output: dict, units: int, fallback: bool = False, ref: ModelRef | None = None
    ):
        self.output = output
        self.units = units
        self.fallback = fallback
        self.ref = ref


class SimulatedExecutor:
    """No I/O: deterministic, schema-valid content after an artificial delay."""

    mode = ExecutionMode.SIMULATED

    def __init__(self, delay: float = 0.5, render_polls: int = 2, sleep: Sleep = asyncio.sleep):
        self.delay = delay
        self.render_polls = render_polls
        self._sleep = sleep
        self._submissions = itertools.count(1)
        self._polls: dict[str, int] = {}

    async def run(
        self, handler: ActionHandler, action: Action, call: ProviderCall, payload: dict
    ) -> Outcome:
        await self._sleep(self.delay)
        if handler.action_id == "render-status":
            return Outcome(self._render_status(handler, payload), 0)
        output = validate_output(OUTPUT_MODELS[handler.action_id], handler.simulate(payload))
        if handler.action_id == "render-video":
            # Every submission is a new job, even for identical scenes.
            output["job_id"] = f"{output['job_id']}-{next(self._submissions)}"
            self._polls[output["job_id"]] = 0
        return Outcome(output, action.estimated_units)

    def _render_status(self, handler: ActionHandler, payload: dict) -> dict:
        job_id = payload["job_id"]
        seen = self._polls.get(job_id, 0) + 1
        if seen < self.render_polls:
            self._polls[job_id] = seen
            return {"status": "processing", "result_url": None}
        self._polls.pop(job_id, None)
        return handler.simulate(payload)

    @property
    def pending_jobs(self) -> int:
        """Submitted simulated renders that have not reported a terminal status."""
        return len(self._polls)


class LiveExecutor:
    """Real provider calls with an explicit per-call timeout."""

    mode = ExecutionMode.LIVE

    def __init__(
        self,
        settings: Settings,
        http_client: httpx.AsyncClient | None = None,
        provider_factory: Callable[..., ProviderAdapter] = create_provider,
    ):
        self.settings = settings
        self._http_client = http_client
        self._provider_factory = provider_factory
        self._adapters: dict[str, ProviderAdapter] = {}

    def _adapter(self, provider: str) -> ProviderAdapter:
        api_key = self.settings.api_key_for(provider)
        if not api_key:
            raise ConfigurationError(
                f"No API key configured for provider {provider}",
                details={"provider": provider},
            )
        cached = self._adapters.get(provider)
        if cached is None or cached.api_key != api_key:
            cached = self._provider_factory(
                provider,
                api_key=api_key,
                timeout=self.settings.request_timeout_seconds,
                http_client=self._http_client,
                **self.settings.provider_options(provider),
            )
            self._adapters[provider] = cached
        return cached

    def _chain(
        self, handler: ActionHandler, action: Action, call: ProviderCall, payload: dict, provider: str
    ) -> list[tuple[ModelRef, ProviderCall]]:
        """The selected model first, then configured alternates in catalog order."""
        selected = ModelRef(provider=provider, model=call.model)
        chain = [(selected, call)]
        for ref in action.alternates:
            if ref == selected or ref.provider == provider:
                continue
            if not self.settings.api_key_for(ref.provider):
                logger.debug(f"{action.action_id}: skipping {ref}, no API key configured")
                continue
            chain.append((ref, handler.build_call(payload, ref.model)))
        return chain

    async def run(
        self,
        handler: ActionHandler,
        action: Action,
        call: ProviderCall,
        payload: dict,
        provider: str,
    ) -> Outcome:
        # The selected provider must be configured before anything is sent.
        self._adapter(provider)
        output_model = OUTPUT_MODELS[handler.action_id]
        empty: Outcome | None = None
        error: ProviderError | None = None

        for ref, attempt in self._chain(handler, action, call, payload, provider):
            try:
                reply = await self._adapter(ref.provider).call(attempt)
                output = validate_output(output_model, handler.normalize(reply, payload))
            except ProviderError as e:
                if not e.provider:
                    e.provider = ref.provider
                    e.details["provider"] = ref.provider
                logger.info(f"{action.action_id} via {ref} failed ({e.kind})")
                error = error or e
                continue
            outcome = Outcome(output, reply.units or action.estimated_units, ref=ref)
            if not handler.is_empty(output):
                return outcome
            logger.info(f"{action.action_id} via {ref} found nothing")
            empty = empty or outcome

        if empty is not None:
            return empty
        fallback = None if action.critical else handler.fallback(payload)
        if fallback is None:
            raise error
        logger.warning(
            f"{action.action_id} via {provider}/{call.model} failed ({error.kind}), "
            f"using fallback: {error.message}"
        )
        return Outcome(validate_output(output_model, fallback), 0, fallback=True)

    async def aclose(self) -> None:
        for adapter in self._adapters.values():
            await adapter.aclose()
        self._adapters.clear()


class ExecutionAdapter:
    """Executes actions; the mode flag picks the strategy once per call."""

    def __init__(
        self,
        settings: Settings,
        registry: ModelRegistry | None = None,
        simulated: SimulatedExecutor | None = None,
        live: LiveExecutor | None = None,
    ):
        self.settings = settings
        self.registry = registry or ModelRegistry()
        self.simulated = simulated or SimulatedExecutor(
            delay=settings.simulated_delay_seconds,
            render_polls=settings.simulated_render_polls,
        )
        self.live = live or LiveExecutor(settings)

    async def execute(
        self,
        action: Action,
        provider: str,
        model: str,
        payload: dict,
        mode: ExecutionMode,
        cancel_event: asyncio.Event | None = None,
    ) -> ActionResult:
        """Run ``action`` on ``provider/model``; raises ProviderError for critical failures."""
        self.registry.get_model(provider, model)
        handler = HANDLERS.get(action.action_id)
        if handler is None:
            raise CatalogError(f"No handler for action: {action.action_id}")

        # Built in both modes so payload problems surface the same way.
        call = handler.build_call(payload, model)

        if mode == ExecutionMode.SIMULATED:
            work = self.simulated.run(handler, action, call, payload)
        else:
            work = self.live.run(handler, action, call, payload, provider)
        outcome = await _cancellable(work, cancel_event)

        units = outcome.units
        # An alternate in the chain may have answered instead of the selection.
        used = outcome.ref or ModelRef(provider=provider, model=model)
        return ActionResult(
            action_id=action.action_id,
            provider=used.provider,
            model=used.model,
            mode=mode,
            simulated=mode == ExecutionMode.SIMULATED,
            fallback=outcome.fallback,
            output=outcome.output,
            units=units,
            cost_usd=self.registry.estimate_cost(used.provider, used.model, units, mode),
        )

    async def aclose(self) -> None:
        await self.live.aclose()


async def _cancellable(work: Coroutine, cancel_event: asyncio.Event | None) -> Outcome:
    """Await ``work`` unless ``cancel_event`` fires first."""
    if cancel_event is None:
        return await work
    if cancel_event.is_set():
        work.close()
        raise OperationCancelled()

    task = asyncio.ensure_future(work)
    waiter = asyncio.ensure_future(cancel_event.wait())
    try:
        done, _ = await asyncio.wait({task, waiter}, return_when=asyncio.FIRST_COMPLETED)
        if task in done:
            return task.result()
        raise OperationCancelled()
    finally:
        waiter.cancel()
        task.cancel()
