"""
Tests for the instruction registry and the dispatch loop.
"""

import pytest

from push_evolution.config import ConfigurationError
from push_evolution.instructions import Dup, Pop
from push_evolution.interpreter import (
    InstructionRegistry, Interpreter, MachineState, UnknownAtomError
)
from push_evolution.program import Program
from push_evolution.stacks import FloatStack


class TestInstructionRegistry:
    """Test instruction registration."""

    def test_default_catalogue(self):
        registry = InstructionRegistry()
        for name in ('integer.+', 'float.sin', 'boolean.xor', 'exec.do*range',
                     'code.quote', 'input.inall', 'true', 'false', 'name.yankdup'):
            assert name in registry

    def test_names_are_case_insensitive(self):
        registry = InstructionRegistry()
        assert registry.get('INTEGER.+') is registry.get('integer.+')

    def test_case_sensitive_registry(self):
        registry = InstructionRegistry(case_sensitive=True)
        assert registry.get('INTEGER.+') is None

    def test_equal_reregistration_is_allowed(self):
        registry = InstructionRegistry()
        existing = registry.get('integer.pop')
        assert registry.register('integer.pop', Pop('integer')) is existing

    def test_conflicting_registration_raises(self):
        registry = InstructionRegistry()
        with pytest.raises(ConfigurationError, match="Conflicting"):
            registry.register('integer.pop', Dup('integer'))

    def test_frozen_registry_rejects_changes(self):
        registry = InstructionRegistry()
        registry.freeze()
        with pytest.raises(ConfigurationError, match="frozen"):
            registry.register('integer.twice', Dup('integer'))
        with pytest.raises(ConfigurationError):
            registry.add_stack('vector')

    def test_custom_stack_gets_stack_instructions(self):
        registry = InstructionRegistry()
        registry.add_stack('vector', FloatStack)
        assert 'vector.yank' in registry
        assert 'vector' in registry.stack_names()
        assert len(registry.stack_instruction_names('vector')) == 9

        interpreter = Interpreter(registry)
        assert isinstance(interpreter.stacks['vector'], FloatStack)

    def test_duplicate_stack_raises(self):
        registry = InstructionRegistry()
        with pytest.raises(ConfigurationError):
            registry.add_stack('integer')

    def test_interpreter_add_stack(self):
        """Test a stack added to a live interpreter can be used at once."""
        interpreter = Interpreter()
        vector = interpreter.add_stack('Vector', FloatStack)
        assert interpreter.stacks['vector'] is vector

        interpreter.run(Program.parse("(vector.dup vector.stackdepth)"))
        assert interpreter.stacks.integer.items == [0]

    def test_interpreter_add_stack_after_freeze(self):
        interpreter = Interpreter()
        interpreter.registry.freeze()
        with pytest.raises(ConfigurationError):
            interpreter.add_stack('vector')
        assert 'vector' not in interpreter.stacks


class TestDispatch:
    """Test the machine's stepping and dispatch rules."""

    def test_literals_go_to_typed_stacks(self):
        interpreter = Interpreter()
        interpreter.run(Program.parse("(1 2.0 true foo)"))
        assert interpreter.stacks.integer.items == [1]
        assert interpreter.stacks.float.items == [2.0]
        assert interpreter.stacks.boolean.items == [True]
        assert interpreter.stacks.name.items == ['foo']

    def test_program_loaded_on_code_stack(self):
        program = Program.parse("(1 2)")
        interpreter = Interpreter()
        interpreter.run(program)
        assert interpreter.stacks.code.items == [program]

    def test_instruction_objects_execute(self):
        interpreter = Interpreter()
        add = interpreter.registry.get('integer.+')
        interpreter.run(Program([2, 3, add]))
        assert interpreter.stacks.integer.items == [5]

    def test_case_insensitive_dispatch(self):
        interpreter = Interpreter()
        interpreter.run(Program.parse("(2 3 INTEGER.+)"))
        assert interpreter.stacks.integer.items == [5]

    def test_step_budget(self):
        """Test the budget counts the program itself as a step."""
        interpreter = Interpreter()
        executed = interpreter.run(Program.parse("(1 2 3)"), max_steps=2)
        assert executed == 2
        assert interpreter.stacks.integer.items == [1]
        assert interpreter.stacks.exec.size() == 2
        assert interpreter.state is MachineState.STOPPED

    def test_unbounded_run_empties_exec(self):
        interpreter = Interpreter()
        executed = interpreter.run(Program.parse("(1 (2 3))"))
        assert executed == 5
        assert interpreter.stacks.exec.size() == 0

    def test_yield_stops_early_and_resumes(self):
        interpreter = Interpreter()
        executed = interpreter.run(Program.parse("(1 exec.yield 2)"))
        assert executed == 3
        assert interpreter.state is MachineState.YIELDED
        assert interpreter.stacks.integer.items == [1]

        interpreter.step()
        assert interpreter.state is MachineState.STOPPED
        assert interpreter.stacks.integer.items == [1, 2]

    def test_unknown_atom_is_fatal(self):
        interpreter = Interpreter()
        with pytest.raises(UnknownAtomError):
            interpreter.run(Program([object()]))
        assert interpreter.state is MachineState.FATAL

    def test_unknown_atom_is_type_error(self):
        with pytest.raises(TypeError):
            Interpreter().run(Program([1j]))

    def test_clear_forgets_bindings(self):
        interpreter = Interpreter()
        interpreter.run(Program.parse("(5 x integer.define)"))
        assert 'x' in interpreter.bindings

        interpreter.run(Program.parse("(x)"))
        assert interpreter.bindings == {}
        assert interpreter.stacks.name.items == ['x']

    def test_bindings_are_case_insensitive(self):
        interpreter = Interpreter()
        interpreter.run(Program.parse("(X 5 integer.define x)"))
        assert interpreter.stacks.integer.items == [5]
        assert interpreter.stacks.name.items == []

    def test_case_sensitive_bindings(self):
        interpreter = Interpreter(InstructionRegistry(case_sensitive=True))
        interpreter.run(Program.parse("(X 5 integer.define x)"))
        assert interpreter.stacks.integer.items == []
        assert interpreter.stacks.name.items == ['x']

    def test_deterministic_execution(self):
        """Test identical runs leave identical stacks."""
        program = Program.parse("(3 exec.do*count (integer.dup integer.*) 2.0 float.sin)")
        first = Interpreter()
        second = Interpreter()
        first.run(program, max_steps=100)
        second.run(program, max_steps=100)
        assert first.stacks.snapshot() == second.stacks.snapshot()

    def test_counters(self):
        interpreter = Interpreter()
        interpreter.run(Program.parse("(1 2)"))
        interpreter.run(Program.parse("(3)"))
        assert interpreter.evaluation_count == 2
        assert interpreter.total_steps == 5

    def test_dump(self):
        interpreter = Interpreter()
        interpreter.run(Program.parse("(2 3 integer.+)"))
        assert "integer stack: [5]" in interpreter.dump()
