"""
Error Taxonomy
==============
Typed failures raised (or recorded) while turning a grid into a scene.

Only InsufficientGridError and LifecycleError ever leave the core. The other
classes describe conditions that are absorbed and logged: a degenerate range
falls back to a unit range, a failed grid point becomes a hole and a failed
resource release must never block unmount.
"""


class SurfaceError(Exception):
    """Base class for all surface engine failures."""


class InsufficientGridError(SurfaceError, ValueError):
    """The grid cannot form a surface (fewer than 2 rows/columns or no finite cell)."""

    def __init__(self, rows: int, columns: int, reason: str = "") -> None:
        self.rows = rows
        self.columns = columns
        detail = reason or "at least a 2x2 grid is required"
        super().__init__(f"Cannot build a surface from a {rows}x{columns} grid: {detail}.")


class DegenerateRangeError(SurfaceError):
    """Every finite cell normalizes to the same value."""

    def __init__(self, value: float) -> None:
        self.value = value
        super().__init__(f"All grid values normalize to {value!r}; using a unit range.")


class PerPointComputeFailure(SurfaceError):
    """A single grid point could not be computed; it is rendered as a hole."""

    def __init__(self, row: int, column: int, cause: object = None) -> None:
        self.row = row
        self.column = column
        self.cause = cause
        super().__init__(f"Metric computation failed at row={row}, column={column}: {cause}")


class ResourceDisposalFailure(SurfaceError):
    """The render platform failed to release a graphics resource."""

    def __init__(self, name: str, cause: BaseException) -> None:
        self.name = name
        self.cause = cause
        super().__init__(f"Failed to release '{name}': {cause}")


class LifecycleError(SurfaceError, RuntimeError):
    """An operation was requested in a viewport state that does not allow it."""
