"""
push_evolution/generator.py - Random atoms and random code

The generator draws from an active instruction set; every random choice
comes from the random.Random instance it was given.
"""
import logging
import random
from dataclasses import dataclass
from typing import Any, List, Sequence, Union

from .config import ConfigurationError
from .program import Program

logger = logging.getLogger(__name__)


@dataclass
class ErcParameters:
    """Bounds and resolution of ephemeral random constants"""
    min_int: int = -10
    max_int: int = 10
    int_resolution: int = 1
    min_float: float = -10.0
    max_float: float = 10.0
    float_resolution: float = 0.01


class AtomGenerator:
    """Produces one random atom per call"""

    def generate(self, rng: random.Random) -> Any:
        raise NotImplementedError


class InstructionAtomGenerator(AtomGenerator):
    def __init__(self, name: str):
        self.name = name

    def generate(self, rng: random.Random) -> Any:
        return self.name

    def __str__(self) -> str:
        return self.name


class IntegerErcGenerator(AtomGenerator):
    def __init__(self, erc: ErcParameters):
        self.erc = erc

    def generate(self, rng: random.Random) -> int:
        value = rng.randrange(self.erc.max_int - self.erc.min_int)
        value -= value % self.erc.int_resolution
        return value + self.erc.min_int

    def __str__(self) -> str:
        return 'integer.erc'


class FloatErcGenerator(AtomGenerator):
    def __init__(self, erc: ErcParameters):
        self.erc = erc

    def generate(self, rng: random.Random) -> float:
        value = rng.random() * (self.erc.max_float - self.erc.min_float)
        value -= value % self.erc.float_resolution
        return value + self.erc.min_float

    def __str__(self) -> str:
        return 'float.erc'


InstructionSpec = Union[Program, str, Sequence[str]]


class CodeGenerator:
    """Random code over the active instruction set"""

    def __init__(self, registry, rng: random.Random = None, erc: ErcParameters = None,
                 max_random_code_size: int = 50):
        self.registry = registry
        self.rng = rng or random.Random()
        self.erc = erc or ErcParameters()
        self.max_random_code_size = max_random_code_size
        self.generators: List[AtomGenerator] = []

    def set_instructions(self, spec: InstructionSpec) -> None:
        """Activate an instruction set.

        spec is a Program, program text or a list of names. Besides plain
        instruction names it may contain registered.<stack> for everything
        registered on a stack and input.makeinputsN for N input instructions.
        """
        generators: List[AtomGenerator] = []
        for name in self._spec_names(spec):
            generators.extend(self._activate(name))
        if not generators:
            raise ConfigurationError("Instruction set is empty")
        self.generators = generators
        logger.debug(f"Activated {len(generators)} atom generators")

    @staticmethod
    def _spec_names(spec: InstructionSpec) -> List[str]:
        if isinstance(spec, str):
            spec = Program.parse(spec) if spec.strip().startswith('(') else spec.split()
        if isinstance(spec, Program):
            return [str(atom) for _, atom in spec.points() if not isinstance(atom, Program)]
        return [str(name) for name in spec]

    def _activate(self, name: str) -> List[AtomGenerator]:
        key = self.registry.normalize(name)

        if key.startswith('registered.'):
            stack = key[len('registered.'):]
            if stack not in self.registry.stack_names():
                raise ConfigurationError(f"Unknown stack in instruction set: {name}")
            generators = [InstructionAtomGenerator(n)
                          for n in self.registry.stack_instruction_names(stack)]
            if stack == 'boolean':
                generators += [InstructionAtomGenerator('true'), InstructionAtomGenerator('false')]
            elif stack == 'integer':
                generators.append(IntegerErcGenerator(self.erc))
            elif stack == 'float':
                generators.append(FloatErcGenerator(self.erc))
            return generators

        if key.startswith('input.makeinputs'):
            # Imported here: interpreter.py imports this module
            from .instructions import InputInN
            try:
                count = int(key[len('input.makeinputs'):])
            except ValueError:
                raise ConfigurationError(f"Bad input count in {name!r}") from None
            generators = []
            for index in range(count):
                input_name = f"input.in{index}"
                self.registry.register(input_name, InputInN(index))
                generators.append(InstructionAtomGenerator(input_name))
            return generators

        if key == 'integer.erc':
            return [IntegerErcGenerator(self.erc)]
        if key == 'float.erc':
            return [FloatErcGenerator(self.erc)]

        if key not in self.registry:
            raise ConfigurationError(f"Unknown instruction in instruction set: {name}")
        return [InstructionAtomGenerator(key)]

    def instruction_names(self) -> List[str]:
        return [str(generator) for generator in self.generators]

    def random_atom(self) -> Any:
        if not self.generators:
            raise ConfigurationError("No instruction set has been activated")
        return self.rng.choice(self.generators).generate(self.rng)

    def random_code(self, size: int) -> Program:
        """A random program whose program_size() is exactly size (minimum 1)"""
        parts = self.decompose(size - 1)
        self.rng.shuffle(parts)
        program = Program()
        for part in parts:
            if part == 1:
                program.push(self.random_atom())
            else:
                program.push(self.random_code(part))
        return program

    def decompose(self, number: int) -> List[int]:
        """Split number into random positive parts"""
        parts = []
        remaining = number
        while remaining > 0:
            part = self.rng.randrange(remaining) + 1
            parts.append(part)
            remaining -= part
        return parts
