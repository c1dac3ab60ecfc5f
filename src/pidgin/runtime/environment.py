"""
Variable environments for the Pidgin interpreter.

Environments form a chain via ``parent``: a function call gets a fresh
environment whose parent is the environment the function was defined in,
and every module load starts from a brand-new root environment.
"""

from dataclasses import dataclass, field
from typing import Dict, Iterator, Optional, Tuple

from .values import Value


@dataclass(eq=False)
class Environment:
    """
    A single scope containing variable bindings.

    Blocks do not open a new environment; only calls and module loads do.
    """
    variables: Dict[str, Value] = field(default_factory=dict)
    parent: Optional["Environment"] = None
    name: str = "global"  # For debugging

    def child(self, name: str) -> "Environment":
        """Create a new environment nested inside this one."""
        return Environment(parent=self, name=name)

    def get(self, name: str) -> Optional[Value]:
        """Look up a variable in this environment or its parents."""
        env = self
        while env is not None:
            if name in env.variables:
                return env.variables[name]
            env = env.parent
        return None

    def define(self, name: str, value: Value) -> None:
        """Bind a variable in this environment, shadowing any parent binding."""
        self.variables[name] = value

    def assign(self, name: str, value: Value) -> bool:
        """
        Update an existing variable.

        Searches up the chain to find where the variable is defined.
        Returns True if found and updated, False if not found.
        """
        env = self
        while env is not None:
            if name in env.variables:
                env.variables[name] = value
                return True
            env = env.parent
        return False

    def contains(self, name: str) -> bool:
        """Check if a variable exists in this environment or its parents."""
        env = self
        while env is not None:
            if name in env.variables:
                return True
            env = env.parent
        return False

    def items(self) -> Iterator[Tuple[str, Value]]:
        """Bindings made directly in this environment."""
        return iter(self.variables.items())

    def __contains__(self, name: str) -> bool:
        return self.contains(name)
