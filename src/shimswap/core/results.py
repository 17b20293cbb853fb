"""Result values returned by override and restore operations.

Nothing in the engine raises for a failure on an individual file. Each
failure is recorded here, the pass continues, and the caller decides how
to surface it.
"""

from dataclasses import dataclass, field
from pathlib import Path

from .markers import MarkerKind


@dataclass
class PathFailure:
    """A mutation that was abandoned for one path"""
    path: Path
    operation: str
    message: str

    def __str__(self) -> str:
        return f"{self.operation} failed for {self.path}: {self.message}"


@dataclass
class OperationResult:
    """Outcome of one apply, revert or restore pass over a root.

    Attributes:
        root: The install or drive root that was walked
        operation: "apply", "revert" or "restore"
        changed: Paths newly overridden or restored
        repaired: Paths whose missing override was rewritten (apply only)
        skipped: Matched paths left untouched (backup already present)
        failures: Per-path I/O failures
        inconsistencies: Marker state that disagreed with backups on disk
    """
    root: Path
    operation: str
    changed: list[Path] = field(default_factory=list)
    repaired: list[Path] = field(default_factory=list)
    skipped: list[Path] = field(default_factory=list)
    failures: list[PathFailure] = field(default_factory=list)
    inconsistencies: list[str] = field(default_factory=list)

    @property
    def count(self) -> int:
        """Number of paths newly overridden or restored."""
        return len(self.changed)

    @property
    def ok(self) -> bool:
        """True when no path failed. Zero matches is still a success."""
        return not self.failures

    def add_failure(self, path: Path, operation: str, error: BaseException) -> None:
        self.failures.append(PathFailure(path=path, operation=operation, message=str(error)))

    def summary(self) -> str:
        parts = [f"{self.operation}: {self.count} changed"]
        if self.repaired:
            parts.append(f"{len(self.repaired)} repaired")
        if self.skipped:
            parts.append(f"{len(self.skipped)} skipped")
        if self.failures:
            parts.append(f"{len(self.failures)} failed")
        return ", ".join(parts)


@dataclass
class OverrideStatus:
    """Read-only view of an install root's override state.

    Backups on disk are authoritative; markers are advisory.
    """
    root: Path
    targets: list[Path] = field(default_factory=list)
    backups: list[Path] = field(default_factory=list)
    markers: set[MarkerKind] = field(default_factory=set)

    @property
    def active(self) -> bool:
        """True when at least one backup exists, whatever the markers say."""
        return bool(self.backups)

    @property
    def consistent(self) -> bool:
        return self.active == (MarkerKind.OVERRIDE_ACTIVE in self.markers)
