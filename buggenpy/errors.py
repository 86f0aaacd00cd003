class BuggenError(Exception):
    """Base class for problems raised while scanning a repository."""


class ParseError(BuggenError):
    """A source file could not be read or parsed."""

    def __init__(self, path: str, cause: str):
        super().__init__(path, cause)
        self.path = path
        self.cause = cause

    def __str__(self) -> str:
        return f"{self.path}: {self.cause}"


class RenderError(BuggenError):
    """A single function declaration could not be rendered."""

    def __init__(self, path: str, func_name: str, cause: str):
        super().__init__(path, func_name, cause)
        self.path = path
        self.func_name = func_name
        self.cause = cause

    def __str__(self) -> str:
        return f"{self.path}: {self.func_name}: {self.cause}"
