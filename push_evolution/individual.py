"""
push_evolution/individual.py - Individual representation and JSON serialization
"""
import json
from typing import Any, Dict, List, Optional

from .program import Program


class Individual:
    """A program together with its fitness and per-test-case errors.

    Fitness is lower-is-better with 0 meaning a perfect solution; it is None
    until the individual has been evaluated.
    """

    def __init__(self, program: Program = None):
        self.program = program if program is not None else Program()
        self.fitness: Optional[float] = None
        self.errors: List[float] = []

    @property
    def evaluated(self) -> bool:
        return self.fitness is not None

    def size(self) -> int:
        return self.program.program_size()

    def set_program(self, program: Program) -> None:
        """Swap in a new program; fitness must be recomputed"""
        self.program = program
        self.fitness = None
        self.errors = []

    def copy(self) -> 'Individual':
        """Create a deep copy of this individual"""
        new_individual = Individual(self.program.copy())
        new_individual.fitness = self.fitness
        new_individual.errors = list(self.errors)
        return new_individual

    def to_dict(self) -> Dict[str, Any]:
        """Serialize individual to dictionary"""
        return {
            'program': str(self.program),
            'fitness': self.fitness,
            'errors': list(self.errors),
            'size': self.size(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Individual':
        """Deserialize individual from dictionary"""
        individual = cls(Program.parse(data['program']))
        individual.fitness = data.get('fitness')
        individual.errors = list(data.get('errors', []))
        return individual

    def to_json(self, filename: str = None) -> str:
        """Serialize to JSON string or file"""
        json_str = json.dumps(self.to_dict(), indent=2)
        if filename:
            with open(filename, 'w') as f:
                f.write(json_str)
        return json_str

    @classmethod
    def from_json(cls, json_data: str = None, filename: str = None) -> 'Individual':
        """Deserialize from JSON string or file"""
        if filename:
            with open(filename, 'r') as f:
                json_data = f.read()
        return cls.from_dict(json.loads(json_data))

    def __str__(self) -> str:
        fitness = 'unevaluated' if self.fitness is None else f"{self.fitness:.6g}"
        return f"{self.program} [fitness: {fitness}, size: {self.size()}]"
