"""Assembling rewrite candidates for a whole repository."""

import concurrent.futures
from dataclasses import asdict, dataclass, field
from itertools import repeat
from typing import Any, Dict, Iterable, Iterator, List, Optional, Union

from buggenpy.config import ScanConfig
from buggenpy.discovery import discover_functions
from buggenpy.errors import BuggenError, ParseError, RenderError
from buggenpy.locator import iter_source_files
from buggenpy.logger import get_logger
from buggenpy.parsing import ParsedFile, parse_file
from buggenpy.render import render_file, render_placeholder, render_signature


@dataclass(frozen=True)
class Candidate:
    file_path: str
    file_src_code: str
    func_name: str
    func_signature: str
    func_to_write: str
    line_start: int
    line_end: int

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class FileOutcome:
    """What processing a single file produced.

    A file that failed to parse carries ``error`` and no candidates. A parsed
    file carries its candidates plus any declarations that failed to render.
    """

    path: str
    candidates: List[Candidate] = field(default_factory=list)
    render_errors: List[RenderError] = field(default_factory=list)
    error: Optional[ParseError] = None

    @property
    def problems(self) -> List[BuggenError]:
        problems: List[BuggenError] = []
        if self.error is not None:
            problems.append(self.error)
        problems.extend(self.render_errors)
        return problems


def build_candidates(parsed: ParsedFile, config: ScanConfig) -> FileOutcome:
    outcome = FileOutcome(path=parsed.path)
    for decl in discover_functions(parsed):
        try:
            candidate = Candidate(
                file_path=parsed.path,
                file_src_code=render_file(parsed, decl, config.keep_docstrings),
                func_name=decl.name,
                func_signature=render_signature(parsed, decl),
                func_to_write=render_placeholder(
                    parsed, decl, config.keep_docstrings
                ),
                line_start=decl.line_start,
                line_end=decl.line_end,
            )
        except RenderError as e:
            outcome.render_errors.append(e)
            continue
        outcome.candidates.append(candidate)
    return outcome


def process_file(path: str, config: ScanConfig) -> FileOutcome:
    """Parses one file and builds its candidates; never raises for bad input."""
    try:
        parsed = parse_file(path)
    except ParseError as e:
        return FileOutcome(path=path, error=e)
    return build_candidates(parsed, config)


WalkItem = Union[str, OSError]


def _walk_in_order(root: str, config: ScanConfig) -> Iterator[WalkItem]:
    """
    Yields source paths and walk errors interleaved in the order the walk
    met them.
    """
    pending: List[OSError] = []
    for path in iter_source_files(root, config, on_error=pending.append):
        yield from pending
        pending.clear()
        yield path
    yield from pending


def _process_files(
    items: Iterable[WalkItem], config: ScanConfig
) -> Iterator[Union[FileOutcome, OSError]]:
    if config.workers <= 1:
        for item in items:
            yield item if isinstance(item, OSError) else process_file(item, config)
        return

    items = list(items)
    paths = [item for item in items if not isinstance(item, OSError)]
    # map() yields in submission order, whatever order the workers finish in.
    with concurrent.futures.ProcessPoolExecutor(max_workers=config.workers) as pool:
        outcomes = pool.map(process_file, paths, repeat(config))
        for item in items:
            yield item if isinstance(item, OSError) else next(outcomes)


def scan_repo(root: str, config: Optional[ScanConfig] = None) -> List[Candidate]:
    """
    Collects the rewrite candidates of every source file under ``root``.

    Candidates follow file traversal order, then declaration order. Walk,
    parse and render problems are logged and skipped; they never abort the
    scan.
    """
    if config is None:
        config = ScanConfig()
    logger = get_logger()

    def report(problem: Exception) -> None:
        logger.warning(
            f'Problem processing repo directory: "{root}": {problem}',
            path=getattr(problem, "path", None) or getattr(problem, "filename", None),
        )

    candidates: List[Candidate] = []
    for outcome in _process_files(_walk_in_order(root, config), config):
        if isinstance(outcome, OSError):
            report(outcome)
            continue
        for problem in outcome.problems:
            report(problem)
        candidates.extend(outcome.candidates)
        logger.debug(
            "file_scanned", path=outcome.path, candidates=len(outcome.candidates)
        )
    return candidates
