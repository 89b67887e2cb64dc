"""
push_evolution/program.py - Push program trees, atoms and the program parser
"""
import math
from enum import Enum
from typing import Any, Iterator, List, Optional, Tuple


class MalformedProgramError(ValueError):
    """Raised when program text cannot be parsed into a Program"""


class AtomKind(Enum):
    """The closed set of atom kinds a Program may contain"""
    INTEGER = 'integer'
    FLOAT = 'float'
    BOOLEAN = 'boolean'
    NAME = 'name'
    INSTRUCTION = 'instruction'
    PROGRAM = 'program'


def atom_kind(atom: Any) -> Optional[AtomKind]:
    """Classify an atom. Returns None for values no Push stack can hold."""
    # bool is a subclass of int, so it must be tested first
    if isinstance(atom, bool):
        return AtomKind.BOOLEAN
    if isinstance(atom, int):
        return AtomKind.INTEGER
    if isinstance(atom, float):
        return AtomKind.FLOAT
    if isinstance(atom, str):
        return AtomKind.NAME
    if isinstance(atom, Program):
        return AtomKind.PROGRAM
    if isinstance(atom, Instruction):
        return AtomKind.INSTRUCTION
    return None


def atoms_equal(a: Any, b: Any) -> bool:
    """Structural equality that keeps 1, 1.0 and True apart"""
    if isinstance(a, Program) or isinstance(b, Program):
        return isinstance(a, Program) and isinstance(b, Program) and a == b
    return type(a) is type(b) and a == b


def copy_atom(atom: Any) -> Any:
    """Copy an atom for insertion into a Program.

    Literals, names and instructions are immutable and shared; nested
    Programs are deep-cloned.
    """
    if isinstance(atom, Program):
        return atom.copy()
    return atom


def format_atom(atom: Any) -> str:
    """Render an atom in parseable program syntax.

    Infinities print as an overflowing literal that parses back to the same
    value. NaN has no literal form and prints as the name nan.
    """
    if isinstance(atom, bool):
        return 'true' if atom else 'false'
    if isinstance(atom, float):
        if math.isinf(atom):
            return '1.0e999' if atom > 0 else '-1.0e999'
        text = repr(atom)
        if '.' not in text and 'e' in text:
            mantissa, exponent = text.split('e')
            text = f"{mantissa}.0e{exponent}"
        return text
    return str(atom)


class Program:
    """A Push program: an ordered, nested tree of atoms.

    Global indices number every point of the tree in pre-order. Index 0 is
    the program itself, and a nested program occupies program_size()
    consecutive indices starting at its own slot.
    """

    def __init__(self, atoms: Optional[List[Any]] = None):
        self.atoms = list(atoms) if atoms is not None else []

    @classmethod
    def parse(cls, text: str) -> 'Program':
        """Parse parenthesized program text into a Program"""
        tokens = text.replace('(', ' ( ').replace(')', ' ) ').split()
        if not tokens:
            raise MalformedProgramError("Empty program text")
        if tokens[0] != '(':
            raise MalformedProgramError(
                f"Program text must start with '(' but starts with {tokens[0]!r}")

        program, end = cls._parse_tokens(tokens, 1)
        if end != len(tokens):
            raise MalformedProgramError(
                f"Unexpected tokens after end of program: {' '.join(tokens[end:])}")
        return program

    @classmethod
    def _parse_tokens(cls, tokens: List[str], start: int) -> Tuple['Program', int]:
        """Parse tokens up to the matching ')'. Returns the index after it."""
        program = cls()
        n = start
        while n < len(tokens):
            token = tokens[n]
            if token == '(':
                sub, n = cls._parse_tokens(tokens, n + 1)
                program.atoms.append(sub)
                continue
            if token == ')':
                return program, n + 1
            program.atoms.append(parse_token(token))
            n += 1

        raise MalformedProgramError("No closing parenthesis found for program")

    def copy(self) -> 'Program':
        """Create a deep copy of this program"""
        return Program([copy_atom(atom) for atom in self.atoms])

    def push(self, atom: Any) -> None:
        self.atoms.append(atom)

    def __len__(self) -> int:
        return len(self.atoms)

    def __iter__(self) -> Iterator[Any]:
        return iter(self.atoms)

    def __getitem__(self, index: int) -> Any:
        return self.atoms[index]

    def __eq__(self, other: Any) -> bool:
        if not isinstance(other, Program):
            return NotImplemented
        if len(self.atoms) != len(other.atoms):
            return False
        return all(atoms_equal(a, b) for a, b in zip(self.atoms, other.atoms))

    def program_size(self) -> int:
        """Total number of points: this program plus every nested atom"""
        size = 1
        for atom in self.atoms:
            if isinstance(atom, Program):
                size += atom.program_size()
            else:
                size += 1
        return size

    def _locate(self, index: int) -> Tuple[Optional['Program'], int, int]:
        """Find the parent program and slot holding a global index.

        Returns (parent, slot, offset): offset is the index relative to the
        atom in that slot, so offset 0 means the slot itself. Returns
        (None, -1, -1) for index 0 and for out-of-range indices.
        """
        if index <= 0:
            return None, -1, -1
        remaining = index - 1
        for slot, atom in enumerate(self.atoms):
            length = atom.program_size() if isinstance(atom, Program) else 1
            if remaining < length:
                return self, slot, remaining
            remaining -= length
        return None, -1, -1

    def subtree(self, index: int) -> Any:
        """Return the atom at a global index, or None if out of range"""
        if index == 0:
            return self
        parent, slot, offset = self._locate(index)
        if parent is None:
            return None
        atom = parent.atoms[slot]
        if offset == 0:
            return atom
        return atom.subtree(offset)

    def subtree_size(self, index: int) -> int:
        """Size of the subtree at a global index; 0 if out of range"""
        sub = self.subtree(index)
        if sub is None:
            return 0
        if isinstance(sub, Program):
            return sub.program_size()
        return 1

    def replace_subtree(self, index: int, replacement: Any) -> bool:
        """Overwrite the atom at a global index with a copy of replacement.

        Returns True if the index was valid.
        """
        if index == 0:
            if isinstance(replacement, Program):
                self.atoms = replacement.copy().atoms
            else:
                self.atoms = [replacement]
            return True

        parent, slot, offset = self._locate(index)
        if parent is None:
            return False
        if offset == 0:
            parent.atoms[slot] = copy_atom(replacement)
            return True
        return parent.atoms[slot].replace_subtree(offset, replacement)

    def flatten(self, index: int) -> bool:
        """Splice the nested program at a global index into its parent.

        Leaves and the root are left alone. Returns True if a splice happened.
        """
        parent, slot, offset = self._locate(index)
        if parent is None:
            return False
        atom = parent.atoms[slot]
        if offset > 0:
            return atom.flatten(offset)
        if not isinstance(atom, Program):
            return False
        parent.atoms[slot:slot + 1] = atom.atoms
        return True

    def points(self) -> Iterator[Tuple[int, Any]]:
        """Yield (global index, atom) for every point in pre-order"""
        yield 0, self
        index = 1
        for atom in self.atoms:
            if isinstance(atom, Program):
                for sub_index, sub in atom.points():
                    yield index + sub_index, sub
                index += atom.program_size()
            else:
                yield index, atom
                index += 1

    def __str__(self) -> str:
        return '(' + ' '.join(format_atom(atom) for atom in self.atoms) + ')'

    def __repr__(self) -> str:
        return f"Program({self})"


def parse_token(token: str) -> Any:
    """Convert one non-parenthesis token into an atom"""
    if token[0].isalpha():
        return token
    try:
        if '.' in token:
            return float(token)
        return int(token)
    except ValueError:
        pass
    try:
        # exponent forms such as 1e-05
        return float(token)
    except ValueError:
        return token


def parse_program(text: str) -> Program:
    """Parse program text; see Program.parse"""
    return Program.parse(text)


# instructions.py imports this module, so Instruction can only be bound once
# everything above is defined
from .instructions import Instruction  # noqa: E402
