"""Case-insensitive matching of file names against targets and backup suffixes."""

from dataclasses import dataclass
from typing import Iterable, Optional

from ..config.schema import DEFAULT_TARGETS

# Naming contract shared with the launcher
BACKUP_SUFFIX = ".orig"
ORIGINAL_EXE_SUFFIX = ".original.exe"

# Hidden ".<name>.<random>.tmp" files written next to a file being replaced
TEMP_SUFFIX = ".tmp"


def fold(name: str) -> str:
    """Locale-invariant case fold used for every name comparison."""
    return name.casefold()


@dataclass(frozen=True)
class SuffixPattern:
    """Matches names ending in a fixed suffix, ignoring case."""
    suffix: str

    def matches(self, name: str) -> bool:
        return len(name) > len(self.suffix) and fold(name).endswith(fold(self.suffix))

    def strip(self, name: str) -> str:
        """Remove the suffix from a matching name, keeping the remaining casing.

        Raises:
            ValueError: If the name does not end in the suffix
        """
        if not self.matches(name):
            raise ValueError(f"{name!r} does not end with {self.suffix!r}")
        return name[:-len(self.suffix)]


BACKUP_PATTERN = SuffixPattern(BACKUP_SUFFIX)
ORIGINAL_EXE_PATTERN = SuffixPattern(ORIGINAL_EXE_SUFFIX)


class TargetSpec:
    """Ordered set of basenames a single traversal pass may touch.

    Every target is matched case-insensitively. Lookups return the canonical
    spelling given at construction, which is the key used for asset content.
    """

    def __init__(self, basenames: Iterable[str]):
        self._by_fold: dict[str, str] = {}
        for name in basenames:
            name = name.strip()
            if not name:
                raise ValueError("Target basename must not be empty")
            if "/" in name or "\\" in name:
                raise ValueError(f"Target must be a basename, got {name!r}")
            self._by_fold.setdefault(fold(name), name)
        if not self._by_fold:
            raise ValueError("TargetSpec needs at least one basename")

    @classmethod
    def default(cls) -> "TargetSpec":
        """The 32-bit and 64-bit Steam API libraries."""
        return cls(DEFAULT_TARGETS)

    @property
    def basenames(self) -> tuple[str, ...]:
        return tuple(self._by_fold.values())

    def match(self, name: str) -> Optional[str]:
        """Return the canonical target equal to name after folding, if any."""
        return self._by_fold.get(fold(name))

    def match_backup(self, name: str, suffix: str = BACKUP_SUFFIX) -> Optional[str]:
        """Return the canonical target whose backup name equals name, if any.

        Args:
            name: Candidate backup file name (e.g. "STEAM_API.DLL.ORIG")
            suffix: Backup suffix appended to the target name

        Returns:
            Canonical target basename or None
        """
        pattern = SuffixPattern(suffix)
        if not pattern.matches(name):
            return None
        return self.match(pattern.strip(name))

    def match_temp(self, name: str) -> Optional[str]:
        """Return the canonical target whose unfinished atomic write left name, if any."""
        if not name.startswith(".") or not fold(name).endswith(TEMP_SUFFIX):
            return None
        base, sep, _ = name[1:-len(TEMP_SUFFIX)].rpartition(".")
        if not sep:
            return None
        return self.match(base)

    def __contains__(self, name: str) -> bool:
        return self.match(name) is not None

    def __iter__(self):
        return iter(self.basenames)

    def __len__(self) -> int:
        return len(self._by_fold)

    def __repr__(self) -> str:
        return f"TargetSpec({list(self.basenames)!r})"
