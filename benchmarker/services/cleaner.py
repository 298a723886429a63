"""Removal of generated artifacts listed in .gitignore files."""
import glob
import os
import shutil
from pathlib import Path
from typing import List, Sequence

from benchmarker.core.errors import IOFailure
from benchmarker.core.logger import get_logger

logger = get_logger(__name__)

IGNORE_FILE = ".gitignore"
PROTECTED_ROOTS = ("lib", "bin")


def pattern_lines(ignore_file: Path) -> List[str]:
    """Return the deletable patterns of one ignore file."""
    try:
        text = Path(ignore_file).read_text()
    except OSError as exc:
        raise IOFailure(f"Failed to read {ignore_file}: {exc}") from exc

    patterns = []
    for line in text.splitlines():
        line = line.strip()
        if not line or line.startswith(("!", "#", ".env")):
            continue
        patterns.append(line)
    return patterns


class WorkspaceCleaner:
    """Deletes every path matched by the ignore files of a tree. No dry run."""

    def __init__(self, root: Path, protected: Sequence[str] = PROTECTED_ROOTS):
        self.root = Path(root)
        self.protected = tuple(protected)

    def is_protected(self, directory: Path) -> bool:
        relative = directory.relative_to(self.root).as_posix()
        return relative.startswith(self.protected)

    def is_hidden(self, ignore_file: Path) -> bool:
        # Ignore files under .git, .cache, .bundle and similar are never evaluated
        return any(part.startswith(".") for part in ignore_file.parent.relative_to(self.root).parts)

    def ignore_files(self) -> List[Path]:
        return sorted(
            path for path in self.root.glob(f"**/{IGNORE_FILE}")
            if not self.is_protected(path.parent) and not self.is_hidden(path)
        )

    def clean(self) -> List[Path]:
        """Delete every match; returns the deleted paths."""
        deleted: List[Path] = []
        for ignore_file in self.ignore_files():
            directory = ignore_file.parent
            for pattern in pattern_lines(ignore_file):
                for match in sorted(glob.glob(os.path.join(str(directory), pattern))):
                    path = Path(match)
                    try:
                        if path.is_file() or path.is_symlink():
                            logger.warning(f"Deleting file {path}")
                            path.unlink()
                        elif path.is_dir():
                            logger.warning(f"Deleting directory {path}")
                            shutil.rmtree(path)
                        else:
                            continue
                    except FileNotFoundError:
                        # Already removed through an earlier directory match
                        continue
                    except OSError as exc:
                        raise IOFailure(f"Failed to delete {path}: {exc}") from exc
                    deleted.append(path)
        return deleted
