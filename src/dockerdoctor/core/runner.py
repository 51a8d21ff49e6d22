"""Runner executing registered checks against a context."""

from __future__ import annotations

import asyncio
from typing import Callable, Iterable

from dockerdoctor import __version__
from dockerdoctor.core.registry import CheckRegistry
from dockerdoctor.models.check import CheckDescriptor
from dockerdoctor.models.common import CheckCategory, Severity
from dockerdoctor.models.context import CheckContext
from dockerdoctor.models.findings import Finding, Report, ReportSummary
from dockerdoctor.utils.config import DockerDoctorConfig
from dockerdoctor.utils.errors import CheckExecutionError
from dockerdoctor.utils.logging import bind_logger, get_logger

logger = get_logger(__name__)

CheckStartCallback = Callable[[CheckDescriptor], None]
CheckCompleteCallback = Callable[[CheckDescriptor, list[Finding]], None]


class Runner:
    """Runs eligible checks and assembles a report.

    A check that raises never aborts the run: its failure is reported as an
    informational finding in the internal category. Findings always appear
    in registration order, whether checks ran concurrently or not.

    Example:
        runner = Runner(build_default_registry(), config)
        report = await runner.run(context, categories=["dockerfile"])
        print(report.summary.errors)
    """

    def __init__(self, registry: CheckRegistry, config: DockerDoctorConfig | None = None) -> None:
        self._registry = registry
        self._config = config or DockerDoctorConfig()

    def eligible_checks(
        self,
        context: CheckContext,
        categories: Iterable[CheckCategory | str] | None = None,
    ) -> list[CheckDescriptor]:
        """Checks that would run for this context, in registration order.

        A check is eligible when it matches the category filter, is not
        disabled in config, and either does not need Docker or Docker is
        available.
        """
        if not categories:
            categories = self._config.checks.categories or None
        disabled = set(self._config.checks.disabled)
        return [
            descriptor
            for descriptor in self._registry.select(
                categories=categories,
                docker_available=context.docker_available,
            )
            if descriptor.id not in disabled
        ]

    async def run(
        self,
        context: CheckContext,
        categories: Iterable[CheckCategory | str] | None = None,
        min_severity: Severity | str | None = None,
        on_check_start: CheckStartCallback | None = None,
        on_check_complete: CheckCompleteCallback | None = None,
    ) -> Report:
        """Run all eligible checks.

        Args:
            context: Shared read-only context
            categories: Only run these categories; None or empty means all
            min_severity: Drop findings below this severity, except internal
                check-failure findings
            on_check_start: Called before each check runs
            on_check_complete: Called with each check's findings

        Returns:
            Report with post-filter findings and summary
        """
        eligible = self.eligible_checks(context, categories)
        logger.debug(f"Running {len(eligible)} of {len(self._registry)} checks")

        if self._config.runner.concurrent:
            results = await asyncio.gather(
                *(self._run_check(d, context, on_check_start, on_check_complete) for d in eligible)
            )
        else:
            results = []
            for descriptor in eligible:
                results.append(await self._run_check(descriptor, context, on_check_start, on_check_complete))

        # gather preserves argument order, so this is registration order
        findings = [finding for check_findings in results for finding in check_findings]

        if min_severity is None:
            min_severity = self._config.checks.min_severity
        if min_severity is not None:
            threshold = Severity(min_severity)
            # A failed check stays visible whatever the threshold
            findings = [
                f for f in findings if f.category is CheckCategory.INTERNAL or f.severity.at_least(threshold)
            ]

        return Report(
            version=__version__,
            docker_available=context.docker_available,
            findings=findings,
            summary=ReportSummary.from_findings(len(eligible), findings),
            checks_run=[d.id for d in eligible],
        )

    async def _run_check(
        self,
        descriptor: CheckDescriptor,
        context: CheckContext,
        on_check_start: CheckStartCallback | None,
        on_check_complete: CheckCompleteCallback | None,
    ) -> list[Finding]:
        check_logger = bind_logger(__name__, check_id=descriptor.id)
        if on_check_start is not None:
            on_check_start(descriptor)
        check_logger.debug("Check started")

        try:
            findings = await self._invoke(descriptor, context)
        except Exception as e:
            error = CheckExecutionError(
                descriptor.id,
                e,
                check_name=descriptor.name,
                category=descriptor.category.value,
            )
            check_logger.warning(error.message)
            findings = [error.to_finding()]

        check_logger.debug(f"Check finished with {len(findings)} findings")
        if on_check_complete is not None:
            on_check_complete(descriptor, findings)
        return findings

    async def _invoke(self, descriptor: CheckDescriptor, context: CheckContext) -> list[Finding]:
        if not descriptor.requires_docker:
            return list(await descriptor(context))

        timeout = self._config.runner.check_timeout
        task = asyncio.ensure_future(descriptor(context))
        try:
            done, _ = await asyncio.wait({task}, timeout=timeout)
        except asyncio.CancelledError:
            task.cancel()
            raise

        if not done:
            # Let the check unwind so any docker child it started is reaped
            task.cancel()
            await asyncio.gather(task, return_exceptions=True)
            logger.warning(f"Check {descriptor.id} timed out after {timeout}s")
            return []
        # A TimeoutError raised by the check itself is a failure, not our timeout
        return list(task.result())


async def run_checks(
    context: CheckContext,
    registry: CheckRegistry,
    config: DockerDoctorConfig | None = None,
    categories: Iterable[CheckCategory | str] | None = None,
    min_severity: Severity | str | None = None,
) -> Report:
    """Run checks with a one-off Runner."""
    return await Runner(registry, config).run(context, categories=categories, min_severity=min_severity)
