"""
Per-function symbol table used while parsing a function body.

A Scope is created for each ``fun`` item and passed explicitly through
the statement parsing methods. Parameters are registered up front;
locals are registered when their declaration statement is parsed, so a
name is only resolvable after its declaration.

The table is a stack of frames. The bodies of ``if``, ``else`` and
``while`` each get their own frame, which is dropped when the body
ends, matching the braces the generator emits around them. A bare
``{ }`` block is spliced into its enclosing sequence and shares that
frame. No name may be declared while another of the same name is
visible (no shadowing).
"""

import difflib
from typing import Optional

from shc.ast import Function, Variable


class Scope:
    """
    Names visible at the current point of a function body.

    Attributes:
        function: The Function being parsed; declared locals are also
                  appended to its ``locals`` list
    """

    def __init__(self, function: Function):
        self.function = function
        self._frames: list[dict[str, Variable]] = [{}]

    def push_block(self) -> None:
        """Open a frame for a nested body."""
        self._frames.append({})

    def pop_block(self) -> None:
        """Close the innermost frame; its names are no longer visible."""
        if len(self._frames) == 1:
            raise RuntimeError("cannot pop the function frame")
        self._frames.pop()

    @property
    def depth(self) -> int:
        """Number of open nested frames (0 at function level)."""
        return len(self._frames) - 1

    def declare_parameter(self, variable: Variable) -> Optional[Variable]:
        """
        Register a parameter.

        Returns:
            The previously visible variable of the same name, or None
        """
        existing = self.lookup(variable.name)
        if existing is None:
            self._frames[0][variable.name] = variable
            self.function.parameters.append(variable)
        return existing

    def declare_local(self, variable: Variable) -> Optional[Variable]:
        """
        Register a local at its declaration point, in the innermost frame.

        Returns:
            The previously visible variable of the same name, or None
        """
        existing = self.lookup(variable.name)
        if existing is None:
            self._frames[-1][variable.name] = variable
            self.function.locals.append(variable)
        return existing

    def lookup(self, name: str) -> Optional[Variable]:
        """Return the visible variable called ``name``, if any."""
        for frame in reversed(self._frames):
            if name in frame:
                return frame[name]
        return None

    def visible_names(self) -> list[str]:
        return [name for frame in self._frames for name in frame]

    def similar_names(self, name: str) -> list[str]:
        """Visible names close to ``name``, for 'did you mean' hints."""
        return difflib.get_close_matches(name, self.visible_names(), n=3, cutoff=0.6)

    def __contains__(self, name: str) -> bool:
        return self.lookup(name) is not None

    def __len__(self) -> int:
        return sum(len(frame) for frame in self._frames)
