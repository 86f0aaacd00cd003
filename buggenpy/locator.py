import fnmatch
import os
from pathlib import Path
from typing import Callable, Dict, Iterator, List, Optional, Set, Tuple

from buggenpy.config import ScanConfig

WalkErrorHandler = Callable[[OSError], None]


def _read_gitignore_patterns(gitignore_path: str) -> List[str]:
    """Reads the non-comment patterns of a single .gitignore file."""
    if not os.path.isfile(gitignore_path):
        return []
    patterns = []
    try:
        with open(gitignore_path, "r", encoding="utf-8") as f:
            for line in f:
                stripped_line = line.strip()
                if stripped_line and not stripped_line.startswith(("#", "!")):
                    patterns.append(stripped_line)
    except (OSError, UnicodeDecodeError):
        return []
    return patterns


class IgnoreMatcher:
    """
    Decides whether a path under ``root`` is ignored.

    Patterns without a slash match basenames; patterns with a slash match
    paths relative to the root (or to the .gitignore that declared them).
    """

    def __init__(self, root: str, patterns: Tuple[str, ...], use_gitignore: bool):
        self.root = os.path.abspath(root)
        self.patterns = patterns
        self.use_gitignore = use_gitignore
        self._gitignore_cache: Dict[str, List[str]] = {}
        self._dir_patterns_cache: Dict[str, Tuple[Set[str], Set[str]]] = {}

    def _gitignore(self, directory: str) -> List[str]:
        if directory not in self._gitignore_cache:
            self._gitignore_cache[directory] = _read_gitignore_patterns(
                os.path.join(directory, ".gitignore")
            )
        return self._gitignore_cache[directory]

    def _patterns_for(self, directory: str) -> Tuple[Set[str], Set[str]]:
        """
        Gathers the patterns that apply inside ``directory``, split into
        basename patterns and path patterns.
        """
        if directory in self._dir_patterns_cache:
            return self._dir_patterns_cache[directory]

        basename_patterns: Set[str] = set()
        path_patterns: Set[str] = set()

        for p in self.patterns:
            if "/" in p.rstrip("/"):
                path_patterns.add(p.strip("/"))
            else:
                basename_patterns.add(p.rstrip("/"))

        if self.use_gitignore:
            current_dir = directory
            while True:
                patterns_from_file = self._gitignore(current_dir)
                if patterns_from_file:
                    gitignore_dir_rel = os.path.relpath(current_dir, self.root)
                    if gitignore_dir_rel == ".":
                        gitignore_dir_rel = ""
                    for p in patterns_from_file:
                        if "/" in p.rstrip("/"):
                            # Path patterns are relative to the .gitignore file's location
                            path_patterns.add(
                                os.path.join(gitignore_dir_rel, p.strip("/"))
                            )
                        else:
                            basename_patterns.add(p.rstrip("/"))

                if current_dir == self.root or not current_dir.startswith(self.root):
                    break
                parent = os.path.dirname(current_dir)
                if parent == current_dir:
                    break
                current_dir = parent

        self._dir_patterns_cache[directory] = (basename_patterns, path_patterns)
        return basename_patterns, path_patterns

    def is_ignored(self, path: str) -> bool:
        path_abs = os.path.abspath(path)
        if path_abs == self.root:
            return False

        basename_patterns, path_patterns = self._patterns_for(
            os.path.dirname(path_abs)
        )

        path_basename = os.path.basename(path_abs)
        for pattern in basename_patterns:
            if fnmatch.fnmatch(path_basename, pattern):
                return True

        if not path_patterns:
            return False

        path_parts = Path(os.path.relpath(path_abs, self.root)).parts
        path_prefixes = [
            os.path.join(*path_parts[: i + 1]) for i in range(len(path_parts))
        ]
        for prefix in path_prefixes:
            for pattern in path_patterns:
                if fnmatch.fnmatch(prefix, pattern):
                    return True
        return False


def is_test_file(name: str, config: ScanConfig) -> bool:
    return any(fnmatch.fnmatch(name, pattern) for pattern in config.test_patterns)


def is_source_file(name: str, config: ScanConfig) -> bool:
    """True for files with the source extension that are not test files."""
    return name.endswith(config.extension) and not is_test_file(name, config)


def iter_source_files(
    root: str,
    config: ScanConfig,
    on_error: Optional[WalkErrorHandler] = None,
) -> Iterator[str]:
    """
    Walks ``root`` recursively and yields candidate source file paths.

    Entries of each directory are visited in lexical order, files and
    subdirectories interleaved, so the sequence is reproducible. Paths are
    joined onto ``root`` exactly as given. Unreadable directories are passed
    to ``on_error`` and skipped. A ``root`` that is itself a file is yielded
    when it is a source file.
    """
    if os.path.isfile(root):
        if is_source_file(os.path.basename(root), config):
            yield root
        return

    matcher = IgnoreMatcher(root, config.ignore_patterns, config.use_gitignore)
    yield from _walk(root, config, matcher, on_error)


def _walk(
    directory: str,
    config: ScanConfig,
    matcher: IgnoreMatcher,
    on_error: Optional[WalkErrorHandler],
) -> Iterator[str]:
    try:
        with os.scandir(directory) as it:
            entries = sorted(it, key=lambda entry: entry.name)
    except OSError as e:
        if on_error is not None:
            on_error(e)
        return

    for entry in entries:
        path = os.path.join(directory, entry.name)
        try:
            is_dir = entry.is_dir(follow_symlinks=False)
        except OSError as e:
            if on_error is not None:
                on_error(e)
            continue

        if matcher.is_ignored(path):
            continue
        if is_dir:
            yield from _walk(path, config, matcher, on_error)
        elif is_source_file(entry.name, config):
            yield path
