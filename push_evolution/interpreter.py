"""
push_evolution/interpreter.py - Instruction registry and the Push machine
"""
import logging
import random
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple, Type

from .config import ConfigurationError
from .generator import ErcParameters
from .instructions import (Instruction, InputPusher, default_instructions,
                           stack_instructions)
from .program import AtomKind, Program, atom_kind
from .stacks import BUILTIN_STACKS, CodeStack, PushStack, StackSet

logger = logging.getLogger(__name__)


class UnknownAtomError(TypeError):
    """Raised when an atom no Push stack understands reaches dispatch"""


class MachineState(Enum):
    RUNNING = 'running'
    STOPPED = 'stopped'
    YIELDED = 'yielded'
    FATAL = 'fatal'


class InstructionRegistry:
    """Named instructions and stack declarations shared by interpreters.

    Populated during setup and frozen before a run starts, after which it is
    read-only.
    """

    def __init__(self, case_sensitive: bool = False):
        self.case_sensitive = case_sensitive
        self.instructions: Dict[str, Instruction] = {}
        self.stacks: List[Tuple[str, Type[PushStack]]] = []
        self.frozen = False

        for name, stack_class in BUILTIN_STACKS:
            self.add_stack(name, stack_class)
        for name, instruction in default_instructions():
            self.register(name, instruction)

    def normalize(self, name: str) -> str:
        return name if self.case_sensitive else name.lower()

    def _check_frozen(self, what: str) -> None:
        if self.frozen:
            raise ConfigurationError(f"Cannot register {what}: registry is frozen")

    def add_stack(self, name: str, stack_class: Type[PushStack] = CodeStack) -> None:
        """Declare a stack and register its standard instructions"""
        self._check_frozen(f"stack {name!r}")
        name = self.normalize(name)
        if any(existing == name for existing, _ in self.stacks):
            raise ConfigurationError(f"Stack {name!r} is already declared")
        self.stacks.append((name, stack_class))
        for inst_name, instruction in stack_instructions(name):
            self.register(inst_name, instruction)

    def register(self, name: str, instruction: Instruction) -> Instruction:
        """Register an instruction under a name.

        Registering an equal instruction twice is harmless; a different one
        under an existing name is a ConfigurationError.
        """
        self._check_frozen(f"instruction {name!r}")
        key = self.normalize(name)
        existing = self.instructions.get(key)
        if existing is not None:
            if existing != instruction:
                raise ConfigurationError(
                    f"Conflicting registration for instruction {key!r}")
            return existing
        instruction.name = key
        self.instructions[key] = instruction
        return instruction

    def freeze(self) -> None:
        self.frozen = True

    def get(self, name: str) -> Optional[Instruction]:
        return self.instructions.get(self.normalize(name))

    def __contains__(self, name: str) -> bool:
        return self.normalize(name) in self.instructions

    def names(self) -> List[str]:
        return sorted(self.instructions)

    def stack_names(self) -> List[str]:
        return [name for name, _ in self.stacks]

    def stack_instruction_names(self, stack: str) -> List[str]:
        """Names of every instruction belonging to a stack, e.g. 'integer.+'"""
        prefix = self.normalize(stack) + '.'
        return [name for name in self.names() if name.startswith(prefix)]


class Interpreter:
    """The Push machine: a stack set plus the dispatch loop.

    Each interpreter owns its stacks and run-local bindings; the registry
    and generator are shared, read-only collaborators.
    """

    def __init__(self, registry: InstructionRegistry = None, generator=None,
                 rng: random.Random = None, max_points_in_program: int = 100):
        self.registry = registry or InstructionRegistry()
        self.generator = generator
        self.rng = rng or random.Random()
        self.erc = generator.erc if generator is not None else ErcParameters()
        self.max_points_in_program = max_points_in_program
        self.stacks = StackSet(self.registry.stacks)
        self.bindings: Dict[str, Instruction] = {}
        self.input_pusher = InputPusher()
        self.state = MachineState.STOPPED
        self.evaluation_count = 0
        self.total_steps = 0
        self._yield_requested = False

    def add_stack(self, name: str, stack_class: Type[PushStack] = CodeStack) -> PushStack:
        """Declare a custom stack and give this machine an instance of it.

        Problems call this from setup_interpreter; the registry must not be
        frozen yet.
        """
        self.registry.add_stack(name, stack_class)
        return self.stacks.add(self.registry.normalize(name), stack_class())

    def define(self, name: str, instruction: Instruction) -> None:
        """Bind a name to an instruction for the rest of this run"""
        self.bindings[self.registry.normalize(name)] = instruction

    def request_yield(self) -> None:
        self._yield_requested = True

    def clear(self) -> None:
        """Empty every stack and forget run-local bindings"""
        self.stacks.clear()
        self.bindings.clear()
        self.state = MachineState.STOPPED

    def load(self, program: Program) -> None:
        self.stacks.code.push(program)
        self.stacks.exec.push(program)

    def execute(self, program: Program, max_steps: int = -1) -> int:
        """Load a program onto code and exec, then run it.

        Returns the number of steps executed.
        """
        self.load(program)
        self.evaluation_count += 1
        return self.step(max_steps)

    def step(self, max_steps: int = -1) -> int:
        """Pop and dispatch exec items until the budget runs out, exec is
        empty or a yield is requested. A budget of -1 is unbounded."""
        estack = self.stacks.exec
        self.state = MachineState.RUNNING
        self._yield_requested = False
        executed = 0

        while max_steps != 0 and estack.size() > 0:
            self.execute_atom(estack.pop())
            executed += 1
            max_steps -= 1
            if self._yield_requested:
                self.state = MachineState.YIELDED
                break
        else:
            self.state = MachineState.STOPPED

        self.total_steps += executed
        return executed

    def execute_atom(self, atom: Any) -> None:
        """Dispatch one atom by its kind"""
        kind = atom_kind(atom)

        if kind is AtomKind.PROGRAM:
            estack = self.stacks.exec
            for child in reversed(atom.atoms):
                estack.push(child)
        elif kind is AtomKind.INSTRUCTION:
            atom.execute(self)
        elif kind is AtomKind.NAME:
            instruction = self.bindings.get(self.registry.normalize(atom))
            if instruction is None:
                instruction = self.registry.get(atom)
            if instruction is not None:
                instruction.execute(self)
            else:
                self.stacks.name.push(atom)
        else:
            stack = self.stacks.for_kind(kind)
            if stack is None:
                self.state = MachineState.FATAL
                raise UnknownAtomError(
                    f"Cannot execute atom {atom!r} of type {type(atom).__name__}")
            stack.push(atom)

    def run(self, program: Program, inputs: Optional[List[Any]] = None,
            max_steps: int = -1) -> int:
        """Clear the machine, push inputs onto the input stack and execute"""
        self.clear()
        for value in inputs or []:
            self.stacks.input.push(value)
        return self.execute(program, max_steps)

    def instruction_names(self) -> List[str]:
        return self.registry.names()

    def dump(self) -> str:
        """Printable report of every stack, top first"""
        return str(self.stacks)
