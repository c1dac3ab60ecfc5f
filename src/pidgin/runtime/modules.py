"""
Module loading for Pidgin ``get`` statements.

A module is a ``.pg`` file found relative to the configured search
directories. Loading runs the whole file in a brand-new root environment and
copies the requested exported names (those starting with an uppercase letter)
into the importing environment.
"""

from pathlib import Path
from typing import TYPE_CHECKING, List, Optional, Sequence
import logging

from .environment import Environment
from ..config import PidginConfig
from ..errors import (
    PidginError,
    error_module_not_found,
    error_name_not_found,
    error_export_visibility,
    error_circular_import,
    error_source_unreadable,
)
from ..lexer import tokenize
from ..parser import parse
from ..tokens import SourceSpan

if TYPE_CHECKING:
    from .interpreter import Interpreter

logger = logging.getLogger(__name__)


def is_exported(name: str) -> bool:
    """Only names beginning with an uppercase ASCII letter are importable."""
    return bool(name) and "A" <= name[0] <= "Z"


def read_source(path: Path, span: Optional[SourceSpan] = None) -> str:
    """Read a UTF-8 source file, raising SourceReadError on failure."""
    try:
        return path.read_text(encoding="utf-8")
    except UnicodeDecodeError as e:
        raise error_source_unreadable(str(path), f"not valid UTF-8 ({e.reason})", span) from e
    except OSError as e:
        raise error_source_unreadable(str(path), e.strerror or str(e), span) from e


class ModuleLoader:
    """
    Resolves, runs and imports from Pidgin modules.

    Tracks the chain of modules currently being loaded so that a module
    importing itself, directly or indirectly, is reported instead of
    recursing forever. Modules are not cached; every import runs the file.
    """

    def __init__(self, config: Optional[PidginConfig] = None):
        self.config = config if config is not None else PidginConfig()
        self._loading: List[str] = []

    @property
    def loading(self) -> List[str]:
        """Resolved paths of the modules currently being loaded, outermost first."""
        return list(self._loading)

    def candidates(self, module_path: str) -> List[Path]:
        """Every file location tried for ``module_path``, in search order."""
        filename = module_path
        if not filename.endswith(self.config.extension):
            filename += self.config.extension
        return [Path(directory) / filename for directory in self.config.search_paths]

    def resolve(self, module_path: str, span: Optional[SourceSpan] = None) -> Path:
        """Find the module file, raising ModuleNotFoundError if none exists."""
        attempted = self.candidates(module_path)
        for candidate in attempted:
            if candidate.is_file():
                return candidate
        raise error_module_not_found(module_path, [str(p) for p in attempted], span)

    def load(self, names: Sequence[str], module_path: str, env: Environment,
             span: Optional[SourceSpan] = None,
             importer: Optional["Interpreter"] = None) -> None:
        """
        Import ``names`` from the module at ``module_path`` into ``env``.

        Args:
            names: Names requested by the ``get`` statement
            module_path: Module path as written, with or without extension
            env: The importing environment
            span: Location of the ``get`` statement, for diagnostics
            importer: Interpreter whose streams and settings the module shares
        """
        path = self.resolve(module_path, span)
        key = str(path.resolve())
        if key in self._loading:
            raise error_circular_import(str(path), list(self._loading), span)

        module_env = self._run_module(path, key, importer, span)

        for name in names:
            value = module_env.get(name)
            if value is None:
                raise error_name_not_found(name, module_path, span)
            if not is_exported(name):
                raise error_export_visibility(name, module_path, span)
            env.define(name, value)
        logger.debug("imported %s from %s", ", ".join(names), path)

    def _run_module(self, path: Path, key: str,
                    importer: Optional["Interpreter"],
                    span: Optional[SourceSpan]) -> Environment:
        if importer is not None:
            interpreter = importer.spawn()
        else:
            from .interpreter import Interpreter
            interpreter = Interpreter(config=self.config, loader=self)

        source = read_source(path, span)
        filename = str(path)
        module_env = Environment(name=path.stem)

        logger.debug("loading module %s", path)
        self._loading.append(key)
        try:
            program = parse(tokenize(source, filename), filename=filename, source=source)
            interpreter.execute_program(program, module_env)
        except PidginError as e:
            e.attach_source(source, filename)
            raise
        finally:
            self._loading.pop()
        return module_env
