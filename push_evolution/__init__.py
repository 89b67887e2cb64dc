"""
push_evolution - A Push stack machine and the PushGP evolutionary engine

Programs are nested expressions executed over typed stacks; PushGP evolves
them with mutation, crossover and autosimplification.
"""

__version__ = "0.1.0"
__author__ = "Push Evolution Project"

from .program import Program, AtomKind, MalformedProgramError, parse_program
from .stacks import PushStack, StackSet
from .instructions import Instruction
from .interpreter import InstructionRegistry, Interpreter, MachineState, UnknownAtomError
from .generator import CodeGenerator, ErcParameters
from .individual import Individual
from .fitness import (
    TestCase, Problem, FloatSymbolicRegression, IntegerSymbolicRegression,
    CartCentering, make_problem
)
from .evaluator import Evaluator
from .population import Population
from .engine import PushGP, RunState, GenerationReport, FinalReport
from .archive import EvolutionArchive
from .config import GPConfig, ConfigurationError

__all__ = [
    'Program', 'AtomKind', 'MalformedProgramError', 'parse_program',
    'PushStack', 'StackSet',
    'Instruction',
    'InstructionRegistry', 'Interpreter', 'MachineState', 'UnknownAtomError',
    'CodeGenerator', 'ErcParameters',
    'Individual',
    'TestCase', 'Problem', 'FloatSymbolicRegression', 'IntegerSymbolicRegression',
    'CartCentering', 'make_problem',
    'Evaluator',
    'Population',
    'PushGP', 'RunState', 'GenerationReport', 'FinalReport',
    'EvolutionArchive',
    'GPConfig', 'ConfigurationError'
]
