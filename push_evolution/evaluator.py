"""
push_evolution/evaluator.py - Runs individuals through the Push machine
"""
from typing import Iterable, List

from .fitness import Problem, mean_absolute_error
from .individual import Individual
from .interpreter import Interpreter


class Evaluator:
    """Scores individuals against every test case of a problem"""

    def __init__(self, problem: Problem, interpreter: Interpreter, execution_limit: int = 150):
        self.problem = problem
        self.interpreter = interpreter
        self.execution_limit = execution_limit
        problem.setup_interpreter(interpreter)

    @property
    def evaluation_count(self) -> int:
        return self.interpreter.evaluation_count

    def evaluate(self, individual: Individual) -> float:
        """Set and return the individual's fitness"""
        errors = [
            self.problem.evaluate_test_case(self.interpreter, individual.program, case,
                                            self.execution_limit)
            for case in self.problem.test_cases
        ]
        individual.errors = errors
        individual.fitness = mean_absolute_error(errors)
        return individual.fitness

    def evaluate_population(self, individuals: Iterable[Individual]) -> List[float]:
        return [self.evaluate(individual) for individual in individuals]
