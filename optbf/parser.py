from __future__ import annotations

from typing import List, Tuple

from .syntax import COMMANDS, Loop, RawInstruction


class ParseError(Exception):
    pass


class UnbalancedBrackets(ParseError):
    """Raised for a '[' or ']' without a partner.

    ``position`` is the 0-based offset of the offending bracket in the raw
    source text, counting every character including comments.
    """

    def __init__(self, position: int, bracket: str) -> None:
        self.position = position
        self.bracket = bracket
        super().__init__("Unmatched '{}' at position {}".format(bracket, position))


def parse(source: str) -> List[RawInstruction]:
    root: List[RawInstruction] = []
    current = root
    stack: List[Tuple[int, List[RawInstruction]]] = []
    for position, char in enumerate(source):
        if char == "[":
            stack.append((position, current))
            current = []
        elif char == "]":
            if not stack:
                raise UnbalancedBrackets(position, "]")
            _, parent = stack.pop()
            parent.append(Loop(tuple(current)))
            current = parent
        else:
            node = COMMANDS.get(char)
            if node is not None:
                current.append(node)
    if stack:
        start, _ = stack.pop()
        raise UnbalancedBrackets(start, "[")
    return root


__all__ = ["ParseError", "UnbalancedBrackets", "parse"]
