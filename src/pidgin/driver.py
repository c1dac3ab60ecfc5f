"""
High-level entry points: run source text or files, evaluate one input in a
persistent session, and render debug views of tokens and syntax trees.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import IO, Optional, Union
import io
import logging

from .ast import ExpressionStatement, format_ast
from .config import PidginConfig
from .errors import PidginError, error_stack_exhausted
from .lexer import tokenize
from .parser import parse
from .runtime import Environment, Interpreter, Value, read_source
from .tokens import format_tokens

logger = logging.getLogger(__name__)


@dataclass
class RunResult:
    """Result of running a program."""
    output: str
    error: Optional[PidginError] = None

    @property
    def success(self) -> bool:
        return self.error is None

    @property
    def error_message(self) -> Optional[str]:
        """The formatted diagnostic, if the run failed."""
        if self.error is None:
            return None
        return self.error.diagnostic.format()


def execute_source(source: str, interpreter: Interpreter,
                   environment: Optional[Environment] = None,
                   filename: Optional[str] = None) -> Environment:
    """
    Lex, parse and execute ``source``.

    Returns the environment the program ran in. Errors propagate with the
    offending source line attached.
    """
    env = environment if environment is not None else Environment()
    try:
        program = parse(tokenize(source, filename), filename=filename, source=source)
        interpreter.execute_program(program, env)
    except PidginError as e:
        e.attach_source(source, filename)
        raise
    except RecursionError as e:
        raise error_stack_exhausted() from e
    return env


def run(source: str, *, config: Optional[PidginConfig] = None,
        filename: Optional[str] = None, input: Optional[IO[str]] = None) -> RunResult:
    """
    Run a Pidgin program and capture what it prints.

    Output written before a failure is kept in the result:

        result = run('let x = 10; let y = 20; print x + y;')
        assert result.output == "30\\n"
    """
    out = io.StringIO()
    interpreter = Interpreter(out=out, input=input, config=config)
    try:
        execute_source(source, interpreter, filename=filename)
    except PidginError as e:
        logger.info("run failed: %s", e.diagnostic.message)
        return RunResult(output=out.getvalue(), error=e)
    return RunResult(output=out.getvalue())


def run_file(path: Union[str, Path], *, config: Optional[PidginConfig] = None,
             input: Optional[IO[str]] = None) -> RunResult:
    """Run a .pg file; see ``run``."""
    source_path = Path(path)
    logger.info("running %s", source_path)
    try:
        source = read_source(source_path)
    except PidginError as e:
        return RunResult(output="", error=e)
    return run(source, config=config, filename=str(source_path), input=input)


def evaluate_one(text: str, environment: Environment, *,
                 interpreter: Optional[Interpreter] = None) -> Optional[Value]:
    """
    Execute one interactive input against a persistent environment.

    Returns the value of a trailing expression statement, or None when the
    input ends with any other statement.
    """
    if interpreter is None:
        interpreter = Interpreter()
    try:
        program = parse(tokenize(text, "<input>"), filename="<input>", source=text)
        statements = program.statements
        last = statements[-1] if statements else None
        if isinstance(last, ExpressionStatement):
            interpreter.execute(statements[:-1], environment)
            return interpreter.evaluate(last.expression, environment)
        interpreter.execute(statements, environment)
    except PidginError as e:
        e.attach_source(text, "<input>")
        raise
    except RecursionError as e:
        raise error_stack_exhausted() from e
    return None


def dump_tokens(source: str, filename: Optional[str] = None) -> str:
    """One token per line with its position."""
    return format_tokens(tokenize(source, filename))


def dump_ast(source: str, filename: Optional[str] = None) -> str:
    """Indented syntax tree of ``source``."""
    program = parse(tokenize(source, filename), filename=filename, source=source)
    try:
        return format_ast(program)
    except RecursionError as e:
        raise error_stack_exhausted() from e
