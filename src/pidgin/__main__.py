#!/usr/bin/env python3
"""
CLI for the Pidgin interpreter.

Usage:
    python -m pidgin FILE.pg              Run a program
    python -m pidgin FILE.pg --tokens     Show the token stream
    python -m pidgin FILE.pg --ast        Show the syntax tree
    python -m pidgin                      Start an interactive prompt

Examples:
    # Run with module search paths from a config file
    python -m pidgin --config pidgin.yaml examples/hello.pg

    # Trace module loading and calls
    python -m pidgin -vv examples/modules.pg
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import IO, List, Optional

import yaml

from . import __version__
from .config import PidginConfig, load_config
from .driver import dump_ast, dump_tokens, evaluate_one, execute_source
from .errors import PidginError
from .runtime import Environment, Interpreter, ValueKind, format_value, read_source

PROMPT = "pidgin> "

# ANSI erase display, cursor home
CLEAR_SCREEN = "\x1b[2J\x1b[1;1H"

REPL_HELP = """\
Commands:
  exit, quit    Leave the prompt
  help          Show this message
  clear         Clear the screen
  :version, :v  Show the version

Examples:
  let x = 10;
  print x + 5;
  let a = {1, 2, 3};
  a = a.push(4);
  print "size: {}", a.length();
"""

LOG_LEVELS = [logging.WARNING, logging.INFO, logging.DEBUG]


def repl(config: PidginConfig, input: Optional[IO[str]] = None,
         out: Optional[IO[str]] = None, err: Optional[IO[str]] = None) -> int:
    """Interactive prompt; one environment persists across inputs."""
    input = input if input is not None else sys.stdin
    out = out if out is not None else sys.stdout
    err = err if err is not None else sys.stderr

    interpreter = Interpreter(out=out, err=err, input=input, config=config)
    env = Environment(name="repl")
    out.write("Pidgin %s. Type 'exit' or 'quit' to leave, 'help' for help.\n" % __version__)

    while True:
        out.write(PROMPT)
        out.flush()
        line = input.readline()
        if not line:
            out.write("\n")
            return 0

        text = line.strip()
        if not text:
            continue
        if text in ("exit", "quit"):
            return 0
        if text == "help":
            out.write(REPL_HELP)
            continue
        if text == "clear":
            out.write(CLEAR_SCREEN)
            continue
        if text in (":version", ":v"):
            out.write("Pidgin %s\n" % __version__)
            continue

        try:
            value = evaluate_one(text, env, interpreter=interpreter)
        except PidginError as e:
            err.write(f"{e}\n")
            continue
        if value is not None and value.kind != ValueKind.NIL:
            out.write(format_value(value) + "\n")


def run_path(path: Path, config: PidginConfig, mode: str) -> int:
    """Run or dump one source file, returning the exit status."""
    if path.suffix != config.extension:
        print(f"Error: expected a {config.extension} file, got {path}", file=sys.stderr)
        return 1
    if not path.is_file():
        print(f"Error: file not found: {path}", file=sys.stderr)
        return 1

    filename = str(path)
    try:
        source = read_source(path)
    except PidginError as e:
        print(e, file=sys.stderr)
        return 1

    try:
        if mode == "tokens":
            print(dump_tokens(source, filename))
        elif mode == "ast":
            print(dump_ast(source, filename))
        else:
            execute_source(source, Interpreter(config=config), filename=filename)
    except PidginError as e:
        e.attach_source(source, filename)
        print(e, file=sys.stderr)
        return 1
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(
        prog='pidgin',
        description='Pidgin language interpreter',
    )
    parser.add_argument('file', nargs='?', help='Pidgin source file (.pg)')
    mode = parser.add_mutually_exclusive_group()
    mode.add_argument('--tokens', dest='mode', action='store_const', const='tokens',
                      help='Print the token stream instead of running')
    mode.add_argument('--ast', dest='mode', action='store_const', const='ast',
                      help='Print the syntax tree instead of running')
    parser.add_argument('-c', '--config', metavar='FILE',
                        help='Configuration file (default: ./pidgin.yaml if present)')
    parser.add_argument('-v', '--verbose', action='count', default=0,
                        help='Increase log verbosity (repeatable)')
    parser.add_argument('--version', action='version', version=f'%(prog)s {__version__}')

    args = parser.parse_args(argv)

    level = LOG_LEVELS[min(args.verbose, len(LOG_LEVELS) - 1)]
    logging.basicConfig(level=level, format='%(levelname)s %(name)s: %(message)s')

    try:
        config = load_config(args.config)
    except (OSError, ValueError, yaml.YAMLError) as e:
        print(f"Error: invalid configuration: {e}", file=sys.stderr)
        return 1

    if args.file is None:
        if args.mode is not None:
            parser.error(f"--{args.mode} requires a source file")
        return repl(config)

    return run_path(Path(args.file), config, args.mode or 'run')


if __name__ == '__main__':
    sys.exit(main())
