"""Errors raised while validating and converting workflow graphs."""

from typing import Iterable, Optional, Sequence, Tuple


class ConversionError(Exception):
    """Base error for the conversion pipeline.

    Carries the ids of the offending nodes and connections so callers can
    point at the exact part of the workflow that failed.
    """

    def __init__(
        self,
        message: str,
        node_ids: Iterable[str] = (),
        connection_ids: Iterable[str] = (),
    ):
        super().__init__(message)
        self.message = message
        self.node_ids: Tuple[str, ...] = tuple(node_ids)
        self.connection_ids: Tuple[str, ...] = tuple(connection_ids)

    def __str__(self) -> str:
        parts = [self.message]
        if self.node_ids:
            parts.append(f"nodes: {', '.join(self.node_ids)}")
        if self.connection_ids:
            parts.append(f"connections: {', '.join(self.connection_ids)}")
        return " | ".join(parts)

    def to_dict(self) -> dict:
        return {
            "type": type(self).__name__,
            "message": self.message,
            "node_ids": list(self.node_ids),
            "connection_ids": list(self.connection_ids),
        }


class ValidationError(ConversionError):
    """Structural problem in the workflow graph."""

    def __init__(
        self,
        message: str,
        node_ids: Iterable[str] = (),
        connection_ids: Iterable[str] = (),
        causes: Sequence["ValidationError"] = (),
    ):
        super().__init__(message, node_ids, connection_ids)
        self.causes: Tuple[ValidationError, ...] = tuple(causes)

    @classmethod
    def aggregate(cls, errors: Sequence["ValidationError"]) -> "ValidationError":
        """Fold several structural errors into one, keeping every id."""
        node_ids = []
        connection_ids = []
        for error in errors:
            for node_id in error.node_ids:
                if node_id not in node_ids:
                    node_ids.append(node_id)
            for connection_id in error.connection_ids:
                if connection_id not in connection_ids:
                    connection_ids.append(connection_id)

        summary = "; ".join(error.message for error in errors)
        return cls(
            f"{len(errors)} structural errors: {summary}",
            node_ids=node_ids,
            connection_ids=connection_ids,
            causes=errors,
        )


class CyclicDependencyError(ValidationError):
    """The connection graph contains a cycle.

    ``node_ids`` lists the participating nodes in cycle order.
    """

    def __init__(self, cycle: Sequence[str], connection_ids: Iterable[str] = ()):
        path = " -> ".join(list(cycle) + [cycle[0]]) if cycle else ""
        super().__init__(f"Cycle detected: {path}", node_ids=cycle, connection_ids=connection_ids)

    @property
    def cycle(self) -> Tuple[str, ...]:
        return self.node_ids


class ParameterValidationError(ValidationError):
    """A node parameter is missing or has the wrong kind of value."""

    def __init__(self, node_id: str, parameter: str, reason: str, expected: Optional[str] = None):
        message = f"Node '{node_id}' parameter '{parameter}' {reason}"
        super().__init__(message, node_ids=(node_id,))
        self.parameter = parameter
        self.reason = reason
        self.expected = expected
