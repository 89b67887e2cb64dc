"""
push_evolution/fitness.py - Test cases, error aggregation and problem definitions
"""
import logging
import math
import sys
from typing import Any, Callable, Dict, Iterable, List, NamedTuple, Sequence

from .config import ConfigurationError, GPConfig

logger = logging.getLogger(__name__)

# Error for a regression test case that left no result on its stack
NO_RESULT_PENALTY = 1000.0


class TestCase(NamedTuple):
    input: Any
    output: Any


def mean_absolute_error(errors: Sequence[float]) -> float:
    """Mean of absolute errors, with overflowing totals pinned to the largest float"""
    if not errors:
        return sys.float_info.max
    total = sum(abs(error) for error in errors)
    if math.isinf(total) or math.isnan(total):
        return sys.float_info.max
    return total / len(errors)


TARGET_FUNCTIONS: Dict[str, Callable[[Any], Any]] = {
    'identity': lambda x: x,
    'linear': lambda x: 2 * x + 1,
    'square': lambda x: x * x,
    'cube': lambda x: x * x * x,
    'quartic': lambda x: x ** 4 + x ** 3 + x ** 2 + x,
    'sextic': lambda x: x ** 6 - 2 * x ** 4 + x ** 2,
}


class Problem:
    """Maps the machine's stacks after a run to a numeric error per test case"""

    name = None

    def __init__(self, test_cases: Iterable[TestCase]):
        self.test_cases: List[TestCase] = list(test_cases)
        if not self.test_cases:
            raise ConfigurationError(f"{type(self).__name__} needs at least one test case")

    def setup_interpreter(self, interpreter) -> None:
        """Hook for problems that need custom stacks (interpreter.add_stack) or instructions"""

    def evaluate_test_case(self, interpreter, program, case: TestCase,
                           execution_limit: int) -> float:
        raise NotImplementedError

    def success(self, best_fitness: float, generation: int) -> bool:
        return best_fitness == 0

    @classmethod
    def cases_from_config(cls, config: GPConfig) -> List[TestCase]:
        """Explicit [input, output] pairs, or a named target over target_inputs"""
        if config.test_cases:
            cases = []
            for pair in config.test_cases:
                if len(pair) < 2:
                    raise ConfigurationError(f"Not enough elements for test case {pair!r}")
                cases.append(TestCase(pair[0], pair[1]))
            return cases

        if config.target_function:
            function = TARGET_FUNCTIONS.get(config.target_function)
            if function is None:
                raise ConfigurationError(f"Unknown target function {config.target_function!r}")
            return [TestCase(x, function(x)) for x in config.target_inputs]

        raise ConfigurationError("No test cases or target function configured")


class FloatSymbolicRegression(Problem):
    """Find a program leaving f(x) on top of the float stack"""

    name = 'float-regression'
    stack = 'float'
    value_type = float

    def evaluate_test_case(self, interpreter, program, case: TestCase,
                           execution_limit: int) -> float:
        interpreter.clear()
        value = self.value_type(case.input)
        interpreter.stacks[self.stack].push(value)
        interpreter.stacks.input.push(value)
        interpreter.execute(program, execution_limit)

        result = interpreter.stacks[self.stack]
        if result.size() == 0:
            return NO_RESULT_PENALTY
        return result.top() - self.value_type(case.output)


class IntegerSymbolicRegression(FloatSymbolicRegression):
    """Find a program leaving f(x) on top of the integer stack"""

    name = 'integer-regression'
    stack = 'integer'
    value_type = int


class CartCentering(Problem):
    """Koza's cart centering: push a cart to rest at the origin.

    Each test case input is an initial (position, velocity). Every time step
    the program sees both on the float and input stacks and must leave a
    boolean choosing the direction of a fixed force. The error is the time
    taken to centre the cart.
    """

    name = 'cart-centering'
    time_steps = 1000
    time_delta = 0.01
    capture_radius = 0.01
    force = 0.5

    @classmethod
    def cases_from_config(cls, config: GPConfig) -> List[TestCase]:
        cases = []
        for pair in config.test_cases:
            if len(pair) < 2:
                raise ConfigurationError(f"Not enough elements for test case {pair!r}")
            cases.append(TestCase((float(pair[0]), float(pair[1])), None))
        return cases

    def evaluate_test_case(self, interpreter, program, case: TestCase,
                           execution_limit: int) -> float:
        max_time = self.time_steps * self.time_delta
        position, velocity = case.input

        for step in range(1, self.time_steps + 1):
            interpreter.clear()
            for value in (position, velocity):
                interpreter.stacks.float.push(value)
                interpreter.stacks.input.push(value)
            interpreter.execute(program, execution_limit)

            bstack = interpreter.stacks.boolean
            if bstack.size() == 0:
                return 2 * max_time

            acceleration = self.force if bstack.top() else -self.force
            velocity += self.time_delta * acceleration
            position += self.time_delta * velocity
            if abs(position) <= self.capture_radius and abs(velocity) <= self.capture_radius:
                return step * self.time_delta

        return max_time

    def success(self, best_fitness: float, generation: int) -> bool:
        # Centering always takes time, so only the generation limit ends a run
        return False


PROBLEMS = {
    cls.name: cls for cls in (FloatSymbolicRegression, IntegerSymbolicRegression, CartCentering)
}


def make_problem(config: GPConfig) -> Problem:
    """Build the problem named by config.problem"""
    problem_class = PROBLEMS.get(config.problem)
    if problem_class is None:
        raise ConfigurationError(
            f"Unknown problem {config.problem!r}; expected one of {', '.join(PROBLEMS)}")
    problem = problem_class(problem_class.cases_from_config(config))
    for i, case in enumerate(problem.test_cases):
        logger.debug(f"Test case #{i} input: {case.input} output: {case.output}")
    return problem
