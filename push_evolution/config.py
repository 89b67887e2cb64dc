"""
push_evolution/config.py - Run configuration and validation
"""
import json
from dataclasses import asdict, dataclass, field, fields
from typing import Any, Dict, List, Optional


class ConfigurationError(ValueError):
    """Raised for invalid setup: bad parameters, instruction sets or registrations"""


NODE_SELECTION_MODES = ('unbiased', 'leaf-probability', 'size-tournament')


@dataclass
class GPConfig:
    """Configuration for a PushGP run"""
    problem: str = 'float-regression'
    population_size: int = 1000
    max_generations: int = 200
    execution_limit: int = 150
    max_points_in_program: int = 100
    max_random_code_size: int = 50

    # Reproduction percentages; whatever is left over is cloning
    mutation_percent: int = 40
    crossover_percent: int = 40
    simplification_percent: int = 0
    tournament_size: int = 7
    trivial_geography_radius: int = 0

    # Mutation shape
    fair_mutation: bool = False
    fair_mutation_range: float = 0.3
    node_selection_mode: str = 'unbiased'
    node_selection_leaf_probability: int = 10
    node_selection_tournament_size: int = 2

    # Autosimplification
    simplify_flatten_percent: int = 20
    reproduction_simplifications: int = 25
    report_simplifications: int = 100
    final_simplifications: int = 1000

    # Ephemeral random constants
    min_random_integer: int = -10
    max_random_integer: int = 10
    random_integer_resolution: int = 1
    min_random_float: float = -10.0
    max_random_float: float = 10.0
    random_float_resolution: float = 0.01

    instruction_set: str = '(registered.float input.makeinputs1)'
    test_cases: List[List[Any]] = field(default_factory=list)
    target_function: Optional[str] = None
    target_inputs: List[Any] = field(default_factory=list)
    seed: Optional[int] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'GPConfig':
        """Build a config from a dict, accepting dashed-keys as well as snake_case"""
        known = {f.name for f in fields(cls)}
        values = {}
        for key, value in data.items():
            name = key.replace('-', '_')
            if name not in known:
                raise ConfigurationError(f"Unknown configuration key: {key}")
            values[name] = value
        config = cls(**values)
        config.validate()
        return config

    @classmethod
    def from_file(cls, filename: str) -> 'GPConfig':
        """Load a config from a JSON file"""
        with open(filename, 'r') as f:
            try:
                data = json.load(f)
            except json.JSONDecodeError as e:
                raise ConfigurationError(f"Invalid JSON in {filename}: {e}") from e
        if not isinstance(data, dict):
            raise ConfigurationError(f"{filename} must contain a JSON object")
        return cls.from_dict(data)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    def validate(self) -> None:
        """Raise ConfigurationError if any parameter is out of range"""
        for name in ('mutation_percent', 'crossover_percent', 'simplification_percent',
                     'simplify_flatten_percent', 'node_selection_leaf_probability'):
            value = getattr(self, name)
            if not 0 <= value <= 100:
                raise ConfigurationError(f"{name} must be within [0, 100], got {value}")

        total = self.mutation_percent + self.crossover_percent + self.simplification_percent
        if total > 100:
            raise ConfigurationError(
                f"Mutation, crossover and simplification percentages sum to {total} (> 100)")

        if self.node_selection_mode not in NODE_SELECTION_MODES:
            raise ConfigurationError(
                f"Unknown node selection mode {self.node_selection_mode!r}; "
                f"expected one of {', '.join(NODE_SELECTION_MODES)}")

        for name in ('population_size', 'tournament_size', 'max_points_in_program',
                     'max_random_code_size', 'node_selection_tournament_size'):
            if getattr(self, name) < 1:
                raise ConfigurationError(f"{name} must be at least 1")

        if self.max_generations < 0:
            raise ConfigurationError("max_generations must not be negative")
        if self.trivial_geography_radius < 0:
            raise ConfigurationError("trivial_geography_radius must not be negative")
        if self.execution_limit < -1:
            raise ConfigurationError("execution_limit must be -1 (unbounded) or a step count")
        if self.fair_mutation_range < 0:
            raise ConfigurationError("fair_mutation_range must not be negative")
        if self.max_random_integer <= self.min_random_integer:
            raise ConfigurationError("max_random_integer must exceed min_random_integer")
        if self.max_random_float <= self.min_random_float:
            raise ConfigurationError("max_random_float must exceed min_random_float")
        if self.random_integer_resolution < 1 or self.random_float_resolution <= 0:
            raise ConfigurationError("ERC resolutions must be positive")
