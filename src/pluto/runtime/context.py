"""
Scopes and per-call bookkeeping for the Pluto interpreter.

Scopes form a tree through their `parent` references. The global scope
lives as long as its interpreter; child scopes are created per action call
and per `each` iteration and dropped when that call or iteration ends.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional

from .values import Value
from ..errors import error_undefined_variable


@dataclass
class Scope:
    """
    A single scope containing variable bindings.

    Scopes form a chain via the `parent` field for lexical scoping.
    """
    variables: Dict[str, Value] = field(default_factory=dict)
    parent: Optional["Scope"] = None
    name: str = "anonymous"  # For debugging

    def define(self, name: str, value: Value) -> None:
        """Create or overwrite a binding in this scope only."""
        self.variables[name] = value

    def get(self, name: str) -> Value:
        """Look up a variable in this scope or parent scopes."""
        scope = self
        while scope is not None:
            if name in scope.variables:
                return scope.variables[name]
            scope = scope.parent
        raise error_undefined_variable(name)

    def set(self, name: str, value: Value) -> None:
        """
        Update an existing variable.

        Searches up the scope chain and updates the first scope where the
        name is bound. Raises UndefinedVariableError if it is bound nowhere.
        """
        scope = self
        while scope is not None:
            if name in scope.variables:
                scope.variables[name] = value
                return
            scope = scope.parent
        raise error_undefined_variable(name)

    def has(self, name: str) -> bool:
        """Check if a variable exists in this scope or parents."""
        scope = self
        while scope is not None:
            if name in scope.variables:
                return True
            scope = scope.parent
        return False

    def has_local(self, name: str) -> bool:
        return name in self.variables

    def child(self, name: str) -> "Scope":
        """Create a new scope nested in this one."""
        return Scope(parent=self, name=name)


@dataclass
class ActionFrame:
    """
    Bookkeeping for one action invocation.

    Collects, in first-assignment order, the names the action body binds
    in its own call scope. Parameters are never collected.
    """
    scope: Scope
    parameters: List[str]
    assigned: List[str] = field(default_factory=list)

    def record(self, name: str) -> None:
        if name in self.parameters or name in self.assigned:
            return
        self.assigned.append(name)
