"""Exception hierarchy shared by the render pipeline and build driver"""


class MdsiteError(Exception):
    """Base class for mdsite errors."""


class RenderError(MdsiteError):
    """A document could not be rendered; carries the offending source path."""

    def __init__(self, path, cause: Exception):
        self.path = path
        self.cause = cause
        super().__init__(f"{path}: {cause}")


class ScriptError(MdsiteError):
    """An interpolation script exited non-zero, timed out, or could not start."""
