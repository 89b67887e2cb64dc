"""
Tests for typed stacks and the stack set.
"""

import pytest

from push_evolution.program import AtomKind, Program
from push_evolution.stacks import (
    BooleanStack, CodeStack, FloatStack, IntegerStack, NameStack, PushStack, StackSet
)


class TestPushStack:
    """Test stack operations. Lists are bottom first."""

    def test_push_pop_top(self):
        stack = PushStack()
        assert stack.pop() is None
        assert stack.top() is None

        stack.push(1)
        stack.push(2)
        assert stack.top() == 2
        assert stack.pop() == 2
        assert stack.size() == 1

    def test_peek_clamps(self):
        stack = PushStack([1, 2, 3])
        assert stack.peek(0) == 3
        assert stack.peek(2) == 1
        assert stack.peek(50) == 1
        assert stack.peek(-1) == 3
        assert PushStack().peek(1) is None

    def test_dup_swap_rot(self):
        stack = PushStack([1, 2, 3])
        stack.rot()
        assert stack.items == [2, 3, 1]
        stack.swap()
        assert stack.items == [2, 1, 3]
        stack.dup()
        assert stack.items == [2, 1, 3, 3]

    def test_small_stacks_ignore_rot_and_swap(self):
        stack = PushStack([1])
        stack.swap()
        stack.rot()
        assert stack.items == [1]

    def test_yank(self):
        stack = PushStack([1, 2, 3, 4])
        stack.yank(2)
        assert stack.items == [1, 3, 4, 2]

    @pytest.mark.parametrize("depth,expected", [
        (-5, [1, 2, 3]),
        (0, [1, 2, 3]),
        (1, [1, 3, 2]),
        (2, [2, 3, 1]),
        (100, [2, 3, 1]),
    ])
    def test_yank_clamps(self, depth, expected):
        """Test yank clamps any depth into the stack."""
        stack = PushStack([1, 2, 3])
        stack.yank(depth)
        assert stack.items == expected

    @pytest.mark.parametrize("depth,expected", [
        (-1, [1, 2, 3, 3]),
        (1, [1, 2, 3, 2]),
        (9, [1, 2, 3, 1]),
    ])
    def test_yankdup_clamps(self, depth, expected):
        stack = PushStack([1, 2, 3])
        stack.yankdup(depth)
        assert stack.items == expected

    def test_shove_top(self):
        stack = PushStack([1, 2, 3])
        stack.shove_top(1)
        assert stack.items == [1, 3, 2]

        stack = PushStack([1, 2, 3])
        stack.shove_top(10)
        assert stack.items == [3, 1, 2]

    def test_shove_value(self):
        stack = PushStack([1, 2])
        stack.shove(9, 0)
        assert stack.items == [1, 2, 9]
        # depth clamps to size - 1, so the value lands just above the bottom
        stack.shove(8, 99)
        assert stack.items == [1, 8, 2, 9]

    def test_depth_operations_on_empty_stack(self):
        """Test every depth operation is a no-op when empty."""
        stack = PushStack()
        stack.yank(1)
        stack.yankdup(1)
        stack.shove_top(1)
        stack.shove(5, 0)
        stack.dup()
        assert stack.items == []

    def test_flush_and_depth(self):
        stack = PushStack([1, 2])
        assert stack.depth() == 2
        stack.flush()
        assert stack.depth() == 0

    def test_str_is_top_first(self):
        assert str(PushStack([1, 2.0, True])) == "[true 2.0 1]"


class TestTypedStacks:
    """Test acceptance per stack kind."""

    def test_integer_stack_rejects_booleans(self):
        assert IntegerStack().accepts(1)
        assert not IntegerStack().accepts(True)
        assert not IntegerStack().accepts(1.0)

    def test_float_and_boolean_stacks(self):
        assert FloatStack().accepts(1.5)
        assert BooleanStack().accepts(False)
        assert not BooleanStack().accepts(0)

    def test_code_stack_holds_anything(self):
        stack = CodeStack([1, 2.0, True, 'x', Program([1])])
        assert stack.size() == 5

    @pytest.mark.parametrize("stack_class,value", [
        (IntegerStack, True),
        (IntegerStack, 1.0),
        (FloatStack, 1),
        (BooleanStack, 0),
        (NameStack, Program()),
    ])
    def test_push_rejects_other_kinds(self, stack_class, value):
        with pytest.raises(TypeError):
            stack_class().push(value)

    def test_shove_rejects_other_kinds(self):
        stack = IntegerStack([1, 2])
        with pytest.raises(TypeError):
            stack.shove('x', 1)
        assert stack.items == [1, 2]


class TestStackSet:
    """Test the stack set."""

    def test_builtin_stacks(self):
        stacks = StackSet()
        assert stacks.names() == ['exec', 'code', 'integer', 'float', 'boolean', 'name', 'input']
        assert isinstance(stacks.integer, IntegerStack)
        assert stacks.for_kind(AtomKind.FLOAT) is stacks.float
        assert 'boolean' in stacks
        assert stacks.get('vector') is None

    def test_add_custom_stack(self):
        stacks = StackSet()
        vector = stacks.add('vector', PushStack())
        assert stacks['vector'] is vector

        stacks.add('weights', FloatStack())
        assert stacks.for_kind(AtomKind.FLOAT) is stacks.float
        assert stacks.for_kind(AtomKind.PROGRAM) is None

        with pytest.raises(ValueError, match="already exists"):
            stacks.add('vector', PushStack())

    def test_clear(self):
        stacks = StackSet()
        stacks.integer.push(1)
        stacks.name.push('x')
        stacks.clear()
        assert all(len(values) == 0 for values in stacks.snapshot().values())

    def test_dump(self):
        stacks = StackSet()
        stacks.integer.push(5)
        assert "integer stack: [5]" in str(stacks)
