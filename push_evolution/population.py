"""
push_evolution/population.py - Population management and genetic operators
"""
import logging
import random
from typing import Any, Dict, List

import numpy as np

from .config import GPConfig
from .evaluator import Evaluator
from .generator import CodeGenerator
from .individual import Individual
from .program import Program

logger = logging.getLogger(__name__)


class Population:
    """Two same-size generations of individuals.

    Reproduction fills the next generation from the current one, then the
    two are swapped.
    """

    def __init__(self, config: GPConfig, generator: CodeGenerator, evaluator: Evaluator,
                 rng: random.Random = None):
        self.config = config
        self.generator = generator
        self.evaluator = evaluator
        self.rng = rng or random.Random()
        self.size = config.population_size
        self.generations: List[List[Individual]] = [[], []]
        self.current = 0
        self.generation = 0

    @property
    def individuals(self) -> List[Individual]:
        return self.generations[self.current]

    def initialize(self) -> None:
        """Fill the current generation with random programs"""
        individuals = []
        for _ in range(self.size):
            size = self.rng.randrange(self.config.max_random_code_size) + 2
            individuals.append(Individual(self.generator.random_code(size)))
        self.generations = [individuals, []]
        self.current = 0
        self.generation = 0

    def evaluate(self) -> List[float]:
        """Evaluate every individual of the current generation"""
        return self.evaluator.evaluate_population(self.individuals)

    def best_index(self) -> int:
        fitnesses = [individual.fitness for individual in self.individuals]
        return int(np.argmin(fitnesses))

    def best(self) -> Individual:
        return self.individuals[self.best_index()]

    # Selection

    def tournament_select(self, index: int) -> Individual:
        """Lowest-fitness individual of a random tournament.

        With a trivial geography radius r the contestants come from the
        window [index - r, index + r) wrapped around the population.
        """
        individuals = self.individuals
        n = len(individuals)
        radius = self.config.trivial_geography_radius
        best = None
        for _ in range(self.config.tournament_size):
            if radius > 0:
                select = (self.rng.randrange(2 * radius) - radius + index) % n
            else:
                select = self.rng.randrange(n)
            candidate = individuals[select]
            if best is None or candidate.fitness < best.fitness:
                best = candidate
        return best

    def select_node(self, program: Program) -> int:
        """Choose a global index of program to edit"""
        mode = self.config.node_selection_mode
        total = program.program_size()

        if mode == 'leaf-probability':
            leaves = []
            internal = []
            for index, atom in program.points():
                (internal if isinstance(atom, Program) else leaves).append(index)
            use_leaf = self.rng.randrange(100) < self.config.node_selection_leaf_probability
            return self.rng.choice(leaves if use_leaf and leaves else internal)

        if mode == 'size-tournament':
            best = self.rng.randrange(total)
            best_size = program.subtree_size(best)
            for _ in range(self.config.node_selection_tournament_size - 1):
                candidate = self.rng.randrange(total)
                candidate_size = program.subtree_size(candidate)
                if candidate_size > best_size:
                    best, best_size = candidate, candidate_size
            return best

        return self.rng.randrange(total)

    # Reproduction

    def reproduce(self) -> None:
        """Build the next generation and make it current"""
        config = self.config
        mutation = config.mutation_percent
        crossover = mutation + config.crossover_percent
        simplification = crossover + config.simplification_percent

        next_generation = []
        for index in range(self.size):
            method = self.rng.randrange(100)
            if method < mutation:
                child = self.reproduce_by_mutation(index)
            elif method < crossover:
                child = self.reproduce_by_crossover(index)
            elif method < simplification:
                child = self.reproduce_by_simplification(index)
            else:
                child = self.reproduce_by_clone(index)
            next_generation.append(child)

        self.generations[1 - self.current] = next_generation
        self.current = 1 - self.current
        self.generation += 1

    def reproduce_by_clone(self, index: int) -> Individual:
        return self.tournament_select(index).copy()

    def reproduce_by_mutation(self, index: int) -> Individual:
        """Replace a random subtree of a selected individual with random code"""
        child = self.reproduce_by_clone(index)
        point = self.select_node(child.program)

        if self.config.fair_mutation:
            old_size = child.program.subtree_size(point)
            span = max(1, int(self.config.fair_mutation_range * old_size))
            new_size = max(1, old_size + self.rng.randrange(2 * span) - span)
        else:
            new_size = self.rng.randrange(self.config.max_random_code_size) + 1

        if new_size == 1:
            replacement = self.generator.random_atom()
        else:
            replacement = self.generator.random_code(new_size)
        return self._apply_edit(child, point, replacement, 'mutation')

    def reproduce_by_crossover(self, index: int) -> Individual:
        """Replace a subtree of one parent with a subtree of another"""
        child = self.reproduce_by_clone(index)
        other = self.tournament_select(index)
        this_point = self.select_node(child.program)
        other_point = self.select_node(other.program)
        replacement = other.program.subtree(other_point)
        return self._apply_edit(child, this_point, replacement, 'crossover')

    def reproduce_by_simplification(self, index: int) -> Individual:
        child = self.reproduce_by_clone(index)
        return self.autosimplify(child, self.config.reproduction_simplifications)

    def _apply_edit(self, child: Individual, point: int, replacement: Any,
                    operator: str) -> Individual:
        trial = child.program.copy()
        trial.replace_subtree(point, replacement)
        if trial.program_size() > self.config.max_points_in_program:
            logger.debug(f"Rejected {operator}: size {trial.program_size()} exceeds "
                         f"{self.config.max_points_in_program}")
            return child
        child.set_program(trial)
        return child

    def autosimplify(self, individual: Individual, steps: int) -> Individual:
        """Shrink an individual by random flattening and deletion.

        Each step edits a copy of the best program so far and keeps it only
        if fitness does not get worse. The result is never worse than the
        input.
        """
        best = individual.copy()
        if best.fitness is None:
            self.evaluator.evaluate(best)

        for _ in range(steps):
            trial = best.program.copy()
            if self.rng.randrange(100) < self.config.simplify_flatten_percent:
                trial.flatten(self.rng.randrange(trial.program_size()))
            else:
                for _ in range(self.rng.randrange(3) + 1):
                    point = self.rng.randrange(trial.program_size())
                    trial.replace_subtree(point, Program())
                    trial.flatten(point)

            candidate = Individual(trial)
            self.evaluator.evaluate(candidate)
            if candidate.fitness <= best.fitness:
                best = candidate

        return best

    # Statistics

    def get_stats(self) -> Dict[str, Any]:
        """Get population statistics"""
        evaluated = [i for i in self.individuals if i.fitness is not None]
        if not evaluated:
            return {}

        fitnesses = np.array([i.fitness for i in evaluated], dtype=float)
        sizes = np.array([i.size() for i in evaluated], dtype=float)

        # Unsolved individuals carry the largest float, which overflows sums
        with np.errstate(over='ignore', invalid='ignore'):
            return {
                'generation': self.generation,
                'population_size': len(self.individuals),
                'fitness': {
                    'min': float(np.min(fitnesses)),
                    'max': float(np.max(fitnesses)),
                    'mean': float(np.mean(fitnesses)),
                    'std': float(np.std(fitnesses)),
                },
                'size': {
                    'min': int(np.min(sizes)),
                    'max': int(np.max(sizes)),
                    'mean': float(np.mean(sizes)),
                    'std': float(np.std(sizes)),
                },
            }

    def diversity_stats(self) -> Dict[str, float]:
        """Calculate population diversity metrics"""
        if len(self.individuals) < 2:
            return {'structural_diversity': 0.0, 'unique_programs': len(self.individuals)}

        programs = [str(individual.program) for individual in self.individuals]
        unique_programs = len(set(programs))
        return {
            'structural_diversity': unique_programs / len(programs),
            'unique_programs': unique_programs,
        }

    def get_best(self, n: int = 1) -> List[Individual]:
        """Get the best n individuals"""
        evaluated = [i for i in self.individuals if i.fitness is not None]
        return sorted(evaluated, key=lambda i: i.fitness)[:n]
