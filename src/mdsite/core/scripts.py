"""Script-execution collaborator: run a named script with string arguments and capture stdout"""

import logging
import subprocess
from pathlib import Path
from typing import Callable, Mapping, Protocol, Sequence

from mdsite.errors import ScriptError


logger = logging.getLogger(__name__)


def not_found(name: str) -> str:
    return f"[Script Not Found: {name}]"


def script_error(name: str) -> str:
    return f"[Script Error: {name}]"


class ScriptRunner(Protocol):
    """run(name, args) -> output; failures come back as visible bracketed strings."""

    def run(self, name: str, args: Sequence[str] = ()) -> str: ...


class SubprocessScriptRunner:
    """Run <scripts_dir>/<name><extension> through an interpreter, arguments passed positionally."""

    def __init__(
        self,
        scripts_dir: Path,
        extension: str = '.lua',
        interpreter: str = 'lua',
        timeout: float = 10.0,
        ):
        self.scripts_dir = Path(scripts_dir)
        self.extension = extension
        self.interpreter = interpreter
        self.timeout = timeout or None

    def script_path(self, name: str) -> Path | None:
        """Resolve name inside scripts_dir; names that escape the directory resolve to None."""
        if not name or '/' in name or '\\' in name or name.startswith('.'):
            return None
        path = self.scripts_dir / f"{name}{self.extension}"
        return path if path.is_file() else None

    def execute(self, path: Path, args: Sequence[str]) -> str:
        """Run one script; raise ScriptError on any failure."""
        try:
            result = subprocess.run(
                [self.interpreter, str(path), *args],
                capture_output=True,
                text=True,
                timeout=self.timeout,
                check=True,
            )
        except subprocess.CalledProcessError as e:
            raise ScriptError(f"exit status {e.returncode}: {e.stderr.strip()}") from e
        except subprocess.TimeoutExpired as e:
            raise ScriptError(f"timed out after {self.timeout}s") from e
        except FileNotFoundError as e:
            raise ScriptError(f"interpreter '{self.interpreter}' not found") from e
        return result.stdout.strip()

    def run(self, name: str, args: Sequence[str] = ()) -> str:
        path = self.script_path(name)
        if path is None:
            logger.warning("Interpolation script not found: %s", name)
            return not_found(name)
        try:
            return self.execute(path, args)
        except ScriptError as e:
            logger.error("Interpolation script %s failed: %s", name, e)
            return script_error(name)


class StaticScriptRunner:
    """In-process runner backed by a mapping of name -> callable(*args) -> str."""

    def __init__(self, scripts: Mapping[str, Callable[..., str]]):
        self.scripts = dict(scripts)

    def run(self, name: str, args: Sequence[str] = ()) -> str:
        fn = self.scripts.get(name)
        if fn is None:
            logger.warning("Interpolation script not found: %s", name)
            return not_found(name)
        try:
            return str(fn(*args)).strip()
        except Exception as e:
            logger.error("Interpolation script %s failed: %s", name, e)
            return script_error(name)
