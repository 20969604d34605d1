"""Clear ``required`` on generated parameters that the endpoint declared optional."""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog

if TYPE_CHECKING:
    from collections.abc import Iterable

    from platformdocs.models.document import DeclaredParameter, Operation

log = structlog.get_logger()


def normalize_optional_parameters(
    operation: Operation,
    declared_parameters: Iterable[DeclaredParameter],
) -> None:
    """Mark each optional declared parameter as not required on ``operation``.

    Names are matched exactly; the first generated parameter with that name
    wins. A declared name with no generated counterpart is skipped.
    """
    for declared in declared_parameters:
        if not declared.optional:
            continue

        parameter = next((p for p in operation.parameters if p.name == declared.name), None)
        if parameter is None:
            log.debug(
                "optional_parameter_unmatched",
                operation_id=operation.operation_id,
                parameter=declared.name,
            )
            continue
        parameter.required = False
