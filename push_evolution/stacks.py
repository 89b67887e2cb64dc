"""
push_evolution/stacks.py - Typed Push stacks and the stack set
"""
from typing import Any, Dict, Iterator, List, Optional, Tuple, Type

from .program import AtomKind, atom_kind, format_atom


class PushStack:
    """Base class for all typed stacks.

    The top of the stack is the end of the underlying list. Every
    depth-indexed operation clamps its depth into [0, size-1] and does
    nothing on an empty stack. A stack with a kind only holds atoms of that
    kind; pushing anything else raises TypeError.
    """

    kind: Optional[AtomKind] = None

    def __init__(self, items: Optional[List[Any]] = None):
        self.items = []
        for value in items or []:
            self.push(value)

    def accepts(self, value: Any) -> bool:
        """Whether a value belongs on this stack"""
        return self.kind is None or atom_kind(value) is self.kind

    def _check(self, value: Any) -> None:
        if not self.accepts(value):
            raise TypeError(f"{type(self).__name__} cannot hold {value!r}")

    def size(self) -> int:
        return len(self.items)

    def __len__(self) -> int:
        return len(self.items)

    def __iter__(self) -> Iterator[Any]:
        return iter(self.items)

    def _clamp(self, depth: int) -> int:
        if depth < 0:
            return 0
        if depth >= len(self.items):
            return len(self.items) - 1
        return depth

    def push(self, value: Any) -> None:
        self._check(value)
        self.items.append(value)

    def pop(self) -> Any:
        """Remove and return the top value, or None when empty"""
        if not self.items:
            return None
        return self.items.pop()

    def top(self) -> Any:
        return self.items[-1] if self.items else None

    def peek(self, depth: int = 0) -> Any:
        """Return the value depth positions below the top"""
        if not self.items:
            return None
        return self.items[-1 - self._clamp(depth)]

    def dup(self) -> None:
        if self.items:
            self.items.append(self.items[-1])

    def swap(self) -> None:
        if len(self.items) > 1:
            self.items[-1], self.items[-2] = self.items[-2], self.items[-1]

    def rot(self) -> None:
        """Move the third value to the top"""
        if len(self.items) > 2:
            self.items.append(self.items.pop(-3))

    def shove(self, value: Any, depth: int) -> None:
        """Insert value depth positions below the top (0 is a push)"""
        if not self.items:
            return
        self._check(value)
        self.items.insert(len(self.items) - self._clamp(depth), value)

    def shove_top(self, depth: int) -> None:
        """Move the top value down to depth"""
        if not self.items:
            return
        depth = self._clamp(depth)
        value = self.items.pop()
        self.items.insert(len(self.items) - depth, value)

    def yank(self, depth: int) -> None:
        """Move the value at depth to the top"""
        if not self.items:
            return
        index = len(self.items) - 1 - self._clamp(depth)
        self.items.append(self.items.pop(index))

    def yankdup(self, depth: int) -> None:
        """Copy the value at depth to the top"""
        if not self.items:
            return
        self.items.append(self.items[len(self.items) - 1 - self._clamp(depth)])

    def flush(self) -> None:
        self.items.clear()

    clear = flush

    def depth(self) -> int:
        return len(self.items)

    def __eq__(self, other: Any) -> bool:
        if not isinstance(other, PushStack):
            return NotImplemented
        return type(self) is type(other) and self.items == other.items

    def __str__(self) -> str:
        # Top of stack first
        return '[' + ' '.join(format_atom(v) for v in reversed(self.items)) + ']'

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.items!r})"


class IntegerStack(PushStack):
    kind = AtomKind.INTEGER


class FloatStack(PushStack):
    kind = AtomKind.FLOAT


class BooleanStack(PushStack):
    kind = AtomKind.BOOLEAN


class NameStack(PushStack):
    kind = AtomKind.NAME


class CodeStack(PushStack):
    """Untyped stack holding any atom, including Programs (code, exec and input)"""


BUILTIN_STACKS: Tuple[Tuple[str, Type[PushStack]], ...] = (
    ('exec', CodeStack),
    ('code', CodeStack),
    ('integer', IntegerStack),
    ('float', FloatStack),
    ('boolean', BooleanStack),
    ('name', NameStack),
    ('input', CodeStack),
)


class StackSet:
    """A named, insertion-ordered collection of typed stacks"""

    def __init__(self, declarations: Optional[List[Tuple[str, Type[PushStack]]]] = None):
        self.stacks: Dict[str, PushStack] = {}
        # First declared stack of each kind receives its literals
        self.by_kind: Dict[AtomKind, PushStack] = {}
        for name, stack_class in (declarations or BUILTIN_STACKS):
            self.add(name, stack_class())

    def add(self, name: str, stack: PushStack) -> PushStack:
        if name in self.stacks:
            raise ValueError(f"Stack {name!r} already exists")
        self.stacks[name] = stack
        if stack.kind is not None:
            self.by_kind.setdefault(stack.kind, stack)
        return stack

    def __getitem__(self, name: str) -> PushStack:
        return self.stacks[name]

    def __contains__(self, name: str) -> bool:
        return name in self.stacks

    def get(self, name: str) -> Optional[PushStack]:
        return self.stacks.get(name)

    def names(self) -> List[str]:
        return list(self.stacks)

    def for_kind(self, kind: AtomKind) -> Optional[PushStack]:
        """The stack receiving values of an atom kind, or None for untyped kinds"""
        return self.by_kind.get(kind)

    # Shortcuts for the built-in stacks
    @property
    def exec(self) -> PushStack:
        return self.stacks['exec']

    @property
    def code(self) -> PushStack:
        return self.stacks['code']

    @property
    def integer(self) -> PushStack:
        return self.stacks['integer']

    @property
    def float(self) -> PushStack:
        return self.stacks['float']

    @property
    def boolean(self) -> PushStack:
        return self.stacks['boolean']

    @property
    def name(self) -> PushStack:
        return self.stacks['name']

    @property
    def input(self) -> PushStack:
        return self.stacks['input']

    def clear(self) -> None:
        """Flush every stack"""
        for stack in self.stacks.values():
            stack.flush()

    def snapshot(self) -> Dict[str, List[Any]]:
        """Copy of every stack's contents, bottom first"""
        return {name: list(stack.items) for name, stack in self.stacks.items()}

    def __str__(self) -> str:
        return '\n'.join(f"{name} stack: {stack}" for name, stack in self.stacks.items())
