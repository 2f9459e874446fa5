"""
Sequential saga with compensations, used by checkout.

Steps run in order against a shared ctx dict. When one raises, the steps that
already completed are compensated newest-first and the original error is
re-raised. The failing step itself is not compensated: it is expected to have
written nothing, or to have rolled back its own transaction.
"""
import structlog
from shared.observability import restyle_saga_compensation_total

logger = structlog.get_logger(__name__)


class SagaStep:
    def __init__(self, name, action, compensation=None):
        self.name = name
        self.action = action
        self.compensation = compensation


class SagaOrchestrator:
    def __init__(self, name: str = "saga"):
        self.name = name
        self.steps: list[SagaStep] = []

    def add_step(self, name: str, action, compensation=None):
        self.steps.append(SagaStep(name, action, compensation))
        return self

    async def execute(self, ctx: dict) -> dict:
        completed: list[SagaStep] = []
        for step in self.steps:
            try:
                await step.action(ctx)
            except Exception as e:
                logger.error("Saga step failed", saga=self.name, step=step.name, error=str(e))
                await self._compensate(completed, ctx)
                raise
            completed.append(step)
        return ctx

    async def _compensate(self, completed: list[SagaStep], ctx: dict):
        logger.info("Initiating saga rollback", saga=self.name, steps=[s.name for s in completed])
        for step in reversed(completed):
            if step.compensation is None:
                continue
            try:
                await step.compensation(ctx)
            except Exception as ce:
                # Keep going: one stuck compensation must not strand the others
                logger.critical(
                    "Compensation failed, manual intervention may be required",
                    saga=self.name,
                    step=step.name,
                    error=str(ce),
                )
                continue
            restyle_saga_compensation_total.labels(step_name=step.name).inc()
            logger.info("Rollback successful", saga=self.name, step=step.name)
