from dataclasses import dataclass
from enum import Enum, auto
from typing import Any, Final

from treelox import stmt as st


class CompletionType(Enum):
    NORMAL = auto()
    RETURN = auto()
    BREAK = auto()
    CONTINUE = auto()


@dataclass(frozen=True)
class Completion:
    """How a statement finished executing.

    Returned from every statement execution instead of raising: blocks stop
    and hand a non-normal completion to their caller, loops absorb BREAK and
    CONTINUE, and the function-call boundary turns RETURN into its result.
    ``origin`` is the statement that produced the completion.
    """
    type: CompletionType
    value: Any = None
    origin: st.Stmt | None = None

    @property
    def is_normal(self) -> bool:
        return self.type is CompletionType.NORMAL


NORMAL: Final = Completion(CompletionType.NORMAL)
