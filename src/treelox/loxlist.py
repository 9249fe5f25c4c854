from typing import Any, Iterable, TYPE_CHECKING

from treelox.errors import LoxRuntimeError
from treelox.function import NativeFunction, native_fn

if TYPE_CHECKING:
    from treelox import interpreter as interp


class LoxList:
    """A growable sequence, only reachable through the list natives."""
    elements: list[Any]

    def __init__(self, elements: Iterable[Any] = ()) -> None:
        self.elements = list(elements)

    def get(self, index: int) -> Any:
        return self.elements[index]

    def set(self, index: int, value: Any) -> Any:
        previous = self.elements[index]
        self.elements[index] = value
        return previous

    def add(self, value: Any) -> None:
        self.elements.append(value)

    def size(self) -> int:
        return len(self.elements)


def ensure_list(function: str, value: Any) -> LoxList:
    if not isinstance(value, LoxList):
        raise LoxRuntimeError(None, f"First argument to {function}() must be a list")
    return value

def ensure_index(function: str, lox_list: LoxList, index: Any) -> int:
    if not isinstance(index, float) or not index.is_integer():
        raise LoxRuntimeError(None, f"Index passed to {function}() must be an integer")

    if not 0 <= index < lox_list.size():
        raise LoxRuntimeError(
            None, f"Index {int(index)} out of range for list of size {lox_list.size()}"
        )

    return int(index)


@native_fn(arity=2, name="get")
def list_get(interpreter: 'interp.Interpreter', args: list[Any]) -> Any:
    lox_list = ensure_list("get", args[0])
    return lox_list.get(ensure_index("get", lox_list, args[1]))

@native_fn(arity=3, name="set")
def list_set(interpreter: 'interp.Interpreter', args: list[Any]) -> Any:
    lox_list = ensure_list("set", args[0])
    return lox_list.set(ensure_index("set", lox_list, args[1]), args[2])

@native_fn(arity=2, name="add")
def list_add(interpreter: 'interp.Interpreter', args: list[Any]) -> None:
    ensure_list("add", args[0]).add(args[1])

@native_fn(arity=1, name="size")
def list_size(interpreter: 'interp.Interpreter', args: list[Any]) -> float:
    return float(ensure_list("size", args[0]).size())


NATIVES: tuple[NativeFunction, ...] = (list_get, list_set, list_add, list_size)
