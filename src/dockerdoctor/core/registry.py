"""Check registry."""

from typing import Iterable, Iterator

from dockerdoctor.models.check import CheckDescriptor
from dockerdoctor.models.common import CheckCategory
from dockerdoctor.utils.errors import DuplicateCheckError
from dockerdoctor.utils.logging import get_logger

logger = get_logger(__name__)


class CheckRegistry:
    """Ordered collection of checks.

    Registration order is significant: it is the order checks appear in a
    report. A registry is built once (see ``build_default_registry``) and
    is read-only while a scan runs.

    Example:
        registry = CheckRegistry()
        registry.register(layer_order)
        registry.register(missing_multistage)

        for descriptor in registry.select(categories=[CheckCategory.DOCKERFILE]):
            findings = await descriptor(context)
    """

    def __init__(self, checks: Iterable[CheckDescriptor] = ()) -> None:
        self._checks: dict[str, CheckDescriptor] = {}
        for descriptor in checks:
            self.register(descriptor)

    def register(self, descriptor: CheckDescriptor) -> None:
        """Register a check.

        Args:
            descriptor: The check to register

        Raises:
            DuplicateCheckError: If a check with the same id is already registered
        """
        if descriptor.id in self._checks:
            raise DuplicateCheckError(descriptor.id)
        self._checks[descriptor.id] = descriptor
        logger.debug(f"Registered check: {descriptor.id}")

    def register_all(self, descriptors: Iterable[CheckDescriptor]) -> None:
        """Register several checks in order."""
        for descriptor in descriptors:
            self.register(descriptor)

    def get(self, check_id: str) -> CheckDescriptor | None:
        """Get a check by id, or None if not registered."""
        return self._checks.get(check_id)

    def __contains__(self, check_id: str) -> bool:
        return check_id in self._checks

    def __iter__(self) -> Iterator[CheckDescriptor]:
        """Iterate over checks in registration order."""
        return iter(self._checks.values())

    def __len__(self) -> int:
        return len(self._checks)

    @property
    def ids(self) -> list[str]:
        """Ids of all registered checks, in registration order."""
        return list(self._checks.keys())

    def select(
        self,
        categories: Iterable[CheckCategory | str] | None = None,
        requires_docker: bool | None = None,
        docker_available: bool | None = None,
    ) -> list[CheckDescriptor]:
        """Select checks, preserving registration order.

        Args:
            categories: Only these categories; None or empty means all
            requires_docker: Only checks whose requires_docker matches
            docker_available: When False, drop checks that need Docker

        Returns:
            Matching checks
        """
        wanted = {CheckCategory(c) for c in categories} if categories else None

        selected = []
        for descriptor in self._checks.values():
            if wanted is not None and descriptor.category not in wanted:
                continue
            if requires_docker is not None and descriptor.requires_docker != requires_docker:
                continue
            if docker_available is False and descriptor.requires_docker:
                continue
            selected.append(descriptor)
        return selected
