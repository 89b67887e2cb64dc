"""
push_evolution/engine.py - The PushGP run loop and its reports
"""
import logging
import random
from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from .config import GPConfig
from .evaluator import Evaluator
from .fitness import Problem, make_problem
from .generator import CodeGenerator, ErcParameters
from .individual import Individual
from .interpreter import InstructionRegistry, Interpreter
from .population import Population

logger = logging.getLogger(__name__)


class RunState(Enum):
    INITIALIZING = 'initializing'
    EVALUATING = 'evaluating'
    REPRODUCING = 'reproducing'
    REPORTING = 'reporting'
    TERMINATED = 'terminated'


@dataclass
class GenerationReport:
    """Summary of one generation, built after reproduction"""
    generation: int
    best_program: str
    best_fitness: float
    best_errors: List[float]
    best_size: int
    mean_fitness: float
    mean_size: float
    evaluation_count: int
    simplified_program: str
    simplified_size: int
    stats: Dict[str, Any] = field(default_factory=dict)
    diversity: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    def __str__(self) -> str:
        lines = [
            f";; Report for Generation {self.generation}",
            f";; Best Program:\n  {self.best_program}",
            f";; Best Program Fitness (mean): {self.best_fitness:.6g}",
            f";; Best Program Errors: ({' '.join(f'{abs(e):.6g}' for e in self.best_errors)})",
            f";; Best Program Size: {self.best_size}",
            f";; Mean Fitness: {self.mean_fitness:.6g}",
            f";; Mean Program Size: {self.mean_size:.2f}",
            f";; Number of Evaluations Thus Far: {self.evaluation_count}",
            f";; Partial Simplification (may beat best):\n  {self.simplified_program}",
            f";; Partial Simplification Size: {self.simplified_size}",
        ]
        return '\n'.join(lines)


@dataclass
class FinalReport:
    """Outcome of a whole run"""
    success: bool
    generations: int
    evaluation_count: int
    best_program: str
    best_fitness: float
    best_errors: List[float]
    best_size: int
    simplified_program: str
    simplified_fitness: float
    simplified_size: int
    instructions: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    def __str__(self) -> str:
        outcome = 'SUCCESS' if self.success else 'FAILURE'
        lines = [
            f">> {outcome} at generation {self.generations}",
            f">> Number of Evaluations: {self.evaluation_count}",
            f">> Best Program: {self.best_program}",
            f">> Fitness (mean): {self.best_fitness:.6g}",
            f">> Errors: ({' '.join(f'{abs(e):.6g}' for e in self.best_errors)})",
            f">> Size: {self.best_size}",
            "<<<<<<<<<< After Simplification >>>>>>>>>>",
            f">> Best Program: {self.simplified_program}",
            f">> Fitness (mean): {self.simplified_fitness:.6g}",
            f">> Size: {self.simplified_size}",
        ]
        return '\n'.join(lines)


class PushGP:
    """Generational PushGP over a single problem.

    Setup builds the registry, generator and machine, activates the
    instruction set and freezes the registry. run() then cycles
    evaluate -> reproduce -> report until the generation limit is reached
    or the problem reports success.
    """

    def __init__(self, config: GPConfig, problem: Problem = None, archive=None,
                 rng: random.Random = None):
        config.validate()
        self.config = config
        self.rng = rng or random.Random(config.seed)
        self.problem = problem or make_problem(config)
        self.archive = archive

        erc = ErcParameters(
            min_int=config.min_random_integer,
            max_int=config.max_random_integer,
            int_resolution=config.random_integer_resolution,
            min_float=config.min_random_float,
            max_float=config.max_random_float,
            float_resolution=config.random_float_resolution,
        )
        self.registry = InstructionRegistry()
        self.generator = CodeGenerator(self.registry, self.rng, erc, config.max_random_code_size)
        self.interpreter = Interpreter(self.registry, self.generator, self.rng,
                                       config.max_points_in_program)
        self.evaluator = Evaluator(self.problem, self.interpreter, config.execution_limit)
        self.generator.set_instructions(config.instruction_set)
        self.registry.freeze()

        self.population = Population(config, self.generator, self.evaluator, self.rng)
        self.state = RunState.INITIALIZING
        self.best: Optional[Individual] = None
        self.reports: List[GenerationReport] = []

        if config.execution_limit == -1:
            logger.warning("Execution limit is unbounded; non-halting programs will hang the run")

    @property
    def generation(self) -> int:
        return self.population.generation

    def terminated(self) -> bool:
        if self.generation >= self.config.max_generations:
            return True
        return self.best is not None and self.problem.success(self.best.fitness, self.generation)

    def run(self) -> 'FinalReport':
        """Run to termination and return the final report"""
        config = self.config
        logger.info(f"Starting PushGP: problem {self.problem.name}, population "
                    f"{config.population_size}, {config.max_generations} generations")
        logger.info(f"Instructions: {' '.join(self.generator.instruction_names())}")

        self.state = RunState.INITIALIZING
        self.population.initialize()

        while not self.terminated():
            self.step()

        self.state = RunState.TERMINATED
        final = self.final_report()
        logger.info(f"Run finished\n{final}")
        if self.archive is not None:
            self.archive.save_final_report(final)
        return final

    def step(self) -> GenerationReport:
        """Evaluate, reproduce and report one generation"""
        self.state = RunState.EVALUATING
        self.population.evaluate()
        self.best = self.population.best().copy()
        stats = self.population.get_stats()
        diversity = self.population.diversity_stats()
        generation = self.generation

        self.state = RunState.REPRODUCING
        self.population.reproduce()

        self.state = RunState.REPORTING
        report = self.report(generation, stats, diversity)
        self.reports.append(report)
        logger.info(f"\n{report}")
        if self.archive is not None:
            self.archive.archive_generation(report, self.best)
        return report

    def report(self, generation: int, stats: Dict[str, Any],
               diversity: Dict[str, Any]) -> GenerationReport:
        best = self.best
        simplified = self.population.autosimplify(best, self.config.report_simplifications)
        return GenerationReport(
            generation=generation,
            best_program=str(best.program),
            best_fitness=best.fitness,
            best_errors=list(best.errors),
            best_size=best.size(),
            mean_fitness=stats['fitness']['mean'],
            mean_size=stats['size']['mean'],
            evaluation_count=self.interpreter.evaluation_count,
            simplified_program=str(simplified.program),
            simplified_size=simplified.size(),
            stats=stats,
            diversity=diversity,
        )

    def final_report(self) -> FinalReport:
        best = self.best
        if best is None:
            # A zero-generation run still scores its initial population
            self.population.evaluate()
            best = self.best = self.population.best().copy()
        simplified = self.population.autosimplify(best, self.config.final_simplifications)
        return FinalReport(
            success=self.problem.success(best.fitness, self.generation),
            generations=self.generation,
            evaluation_count=self.interpreter.evaluation_count,
            best_program=str(best.program),
            best_fitness=best.fitness,
            best_errors=list(best.errors),
            best_size=best.size(),
            simplified_program=str(simplified.program),
            simplified_fitness=simplified.fitness,
            simplified_size=simplified.size(),
            instructions=self.generator.instruction_names(),
        )
