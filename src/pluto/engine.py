"""
Embedding API for Pluto.

`PlutoInterpreter` runs source text through the whole pipeline and reports
any failure as a single `ExecutionError`:

    from pluto import PlutoInterpreter, unwrap_value

    interp = PlutoInterpreter()
    interp.execute('''
    action double(x)
        result = x * 2
    end
    ''')
    value = interp.execute("double(21)")
    print(unwrap_value(value))      # 42.0
"""

import logging
from typing import Any, Optional, TextIO

from .lexer import tokenize
from .parser import parse
from .errors import PlutoError, ExecutionError, error_recursion_depth
from .runtime.context import Scope
from .runtime.values import Value, unwrap_value
from .runtime.interpreter import Interpreter, DEFAULT_MAX_ITERATIONS


logger = logging.getLogger(__name__)


class PlutoInterpreter:
    """
    A Pluto interpreter instance with its own persistent global scope.

    Bindings made by one `execute` call are visible to the next. Instances
    are not safe for concurrent use from several threads.
    """

    def __init__(self, max_iterations: int = DEFAULT_MAX_ITERATIONS,
                 output: Optional[TextIO] = None):
        self.interpreter = Interpreter(max_iterations=max_iterations, output=output)

    @property
    def globals(self) -> Scope:
        """The global scope, for inspection by the embedder."""
        return self.interpreter.globals

    def get_global(self, name: str) -> Any:
        """Read a global binding as plain Python data (None if unbound)."""
        value = self.globals.variables.get(name)
        if value is None:
            return None
        return unwrap_value(value)

    def execute(self, source: str, filename: Optional[str] = None) -> Value:
        """
        Scan, parse and evaluate source text.

        Args:
            source: Pluto source code
            filename: Optional filename for error messages

        Returns:
            The value of the last top-level statement

        Raises:
            ExecutionError: Wrapping the first lexer, parser or runtime error
        """
        try:
            tokens = tokenize(source, filename)
            program = parse(tokens, filename, source)
            logger.debug("parsed %d token(s) into %d statement(s)",
                         len(tokens), len(program.statements))
            return self.interpreter.execute(program, source)
        except PlutoError as exc:
            raise ExecutionError(exc) from exc
        except RecursionError as exc:
            # Deeply nested source can exhaust the stack while parsing
            raise ExecutionError(error_recursion_depth()) from exc


def run_source(source: str, filename: Optional[str] = None,
               max_iterations: int = DEFAULT_MAX_ITERATIONS,
               output: Optional[TextIO] = None) -> Value:
    """
    Execute source text once in a fresh interpreter.

    This is a convenience wrapper around PlutoInterpreter.execute().
    """
    return PlutoInterpreter(max_iterations=max_iterations, output=output).execute(source, filename)
