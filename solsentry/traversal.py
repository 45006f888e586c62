"""
File system traversal: walk directories and collect Solidity source files.

Dependency and build directories (node_modules, lib, artifacts, ...) are
skipped so that only the project's own contracts are analyzed.

Typical usage:
    from pathlib import Path
    from solsentry.traversal import find_sol_files

    files = find_sol_files(Path("./contracts"))
    files = find_sol_files(Path("."), ignore_dirs={"node_modules", "mocks"})
"""

import logging
from pathlib import Path
from typing import Callable, Optional, Set

logger = logging.getLogger(__name__)

SOLIDITY_SUFFIX = ".sol"

# Default directories to ignore during traversal
DEFAULT_IGNORE_DIRS: Set[str] = {
    # Dependencies (npm packages, forge libraries)
    "node_modules",
    "lib",
    "vendor",

    # Framework build output
    "artifacts",
    "cache",
    "out",
    "build",
    "typechain",
    "typechain-types",
    "coverage",

    # Version control
    ".git",
    ".svn",
    ".hg",

    # IDE and editor directories
    ".vscode",
    ".idea",

    # Python virtual environments and caches
    "venv",
    ".venv",
    "__pycache__",
}


def is_sol_file(path: Path) -> bool:
    """
    Check if a file is a Solidity source file.

    Examples:
        >>> is_sol_file(Path("Token.sol"))
        True
        >>> is_sol_file(Path("Token.sol.ast.json"))
        False
    """
    return path.suffix.lower() == SOLIDITY_SUFFIX


def should_ignore_directory(dir_path: Path, ignore_dirs: Set[str]) -> bool:
    """Only the directory name is checked, not the full path."""
    return dir_path.name in ignore_dirs


def find_sol_files(
    root: Path,
    ignore_dirs: Optional[Set[str]] = None,
    follow_symlinks: bool = False,
    filter_fn: Optional[Callable[[Path], bool]] = None,
) -> list[Path]:
    """
    Recursively find all .sol files in a directory tree.

    Args:
        root: Root directory to start traversal from.
        ignore_dirs: Directory names to skip. If None, uses DEFAULT_IGNORE_DIRS.
        follow_symlinks: If True, follow symbolic links during traversal.
        filter_fn: Optional extra filter; only files for which it returns True
                   are included.

    Returns:
        Matching files, sorted by path for deterministic ordering.

    Raises:
        FileNotFoundError: If the root directory does not exist.
        NotADirectoryError: If root is not a directory.

    Permission errors on subdirectories are logged and do not stop traversal.
    """
    if ignore_dirs is None:
        ignore_dirs = DEFAULT_IGNORE_DIRS

    root = root.resolve()

    if not root.exists():
        logger.error("Root directory does not exist: %s", root)
        raise FileNotFoundError(f"Root directory does not exist: {root}")

    if not root.is_dir():
        logger.error("Root path is not a directory: %s", root)
        raise NotADirectoryError(f"Root path is not a directory: {root}")

    logger.info("Starting traversal from: %s", root)
    logger.debug("Traversal config: follow_symlinks=%s, ignore_dirs=%s", follow_symlinks, ignore_dirs)

    collected_files: list[Path] = []

    def _walk_directory(current_dir: Path) -> None:
        try:
            for entry in current_dir.iterdir():
                if entry.is_symlink() and not follow_symlinks:
                    logger.debug("Skipping symlink: %s", entry)
                    continue

                if entry.is_dir():
                    if should_ignore_directory(entry, ignore_dirs):
                        logger.debug("Ignoring directory: %s", entry)
                        continue
                    _walk_directory(entry)

                elif entry.is_file() and is_sol_file(entry):
                    if filter_fn is not None and not filter_fn(entry):
                        logger.debug("Filtered out by custom filter: %s", entry)
                        continue
                    logger.debug("Found source file: %s", entry)
                    collected_files.append(entry)

        except PermissionError as e:
            logger.warning("Permission denied accessing directory %s: %s", current_dir, e)
        except OSError as e:
            logger.warning("Error accessing directory %s: %s", current_dir, e)

    _walk_directory(root)

    collected_files.sort()

    logger.info("Traversal complete: found %d source file(s) in %s", len(collected_files), root)
    return collected_files
