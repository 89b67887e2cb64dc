"""
push_evolution/instructions.py - Push instructions and the default instruction catalogue

Instructions receive the running Interpreter and work directly on its
StackSet. Failed arithmetic (division by zero, overflow, domain errors) is
absorbed: the popped inputs are dropped and nothing is pushed.
"""
import math
from typing import Any, Callable, List, Tuple

from .program import Program, atom_kind, atoms_equal, copy_atom

# Errors an arithmetic instruction may raise and silently absorb
ARITHMETIC_FAILURES = (ArithmeticError, ValueError)

INT_MIN = -(2 ** 63)
INT_MAX = 2 ** 63 - 1


def checked_int(value: int) -> int:
    if not INT_MIN <= value <= INT_MAX:
        raise OverflowError(f"integer result {value} out of range")
    return value


def checked_float(value: float) -> float:
    if not math.isfinite(value):
        raise OverflowError(f"non-finite float result {value}")
    return value


def _check_result(stack_name: str, value: Any) -> Any:
    if stack_name == 'integer':
        return checked_int(value)
    if stack_name == 'float':
        return checked_float(value)
    return value


class Instruction:
    """Base class for every Push instruction"""

    # Assigned by the registry when the instruction is registered
    name = None

    def execute(self, interpreter) -> None:
        raise NotImplementedError

    def _key(self) -> Tuple:
        return tuple(sorted((k, v) for k, v in vars(self).items() if k != 'name'))

    def __eq__(self, other: Any) -> bool:
        if not isinstance(other, Instruction):
            return NotImplemented
        return type(self) is type(other) and self._key() == other._key()

    def __hash__(self) -> int:
        return hash(type(self))

    def __str__(self) -> str:
        return self.name or type(self).__name__.lower()

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self}>"


# ---------------------------------------------------------------------------
# Generic typed instructions

class Constant(Instruction):
    """Push a fixed value onto a stack"""

    def __init__(self, stack: str, value: Any):
        self.stack = stack
        self.value = value

    def _key(self) -> Tuple:
        return (self.stack, type(self.value), self.value)

    def execute(self, interpreter) -> None:
        interpreter.stacks[self.stack].push(self.value)


class UnaryInstruction(Instruction):
    """Pop one value, push func(value) onto the output stack"""

    def __init__(self, in_stack: str, out_stack: str, func: Callable[[Any], Any]):
        self.in_stack = in_stack
        self.out_stack = out_stack
        self.func = func

    def _key(self) -> Tuple:
        return (self.in_stack, self.out_stack, self.func)

    def execute(self, interpreter) -> None:
        istack = interpreter.stacks[self.in_stack]
        if istack.size() < 1:
            return
        a = istack.pop()
        try:
            result = _check_result(self.out_stack, self.func(a))
        except ARITHMETIC_FAILURES:
            return
        interpreter.stacks[self.out_stack].push(result)


class BinaryInstruction(Instruction):
    """Pop b (the top) then a, push func(a, b) onto the output stack"""

    def __init__(self, in_stack: str, out_stack: str, func: Callable[[Any, Any], Any]):
        self.in_stack = in_stack
        self.out_stack = out_stack
        self.func = func

    def _key(self) -> Tuple:
        return (self.in_stack, self.out_stack, self.func)

    def execute(self, interpreter) -> None:
        istack = interpreter.stacks[self.in_stack]
        if istack.size() < 2:
            return
        b = istack.pop()
        a = istack.pop()
        try:
            result = _check_result(self.out_stack, self.func(a, b))
        except ARITHMETIC_FAILURES:
            return
        interpreter.stacks[self.out_stack].push(result)


class DefineInstruction(Instruction):
    """Bind the top name to the top value of a typed stack for this run"""

    def __init__(self, stack: str):
        self.stack = stack

    def execute(self, interpreter) -> None:
        names = interpreter.stacks.name
        values = interpreter.stacks[self.stack]
        if names.size() < 1 or values.size() < 1:
            return
        name = names.pop()
        value = values.pop()
        interpreter.define(name, Constant(self.stack, value))


class IntegerRand(Instruction):
    def execute(self, interpreter) -> None:
        erc = interpreter.erc
        span = max(1, (erc.max_int - erc.min_int) // erc.int_resolution)
        value = interpreter.rng.randrange(span) * erc.int_resolution + erc.min_int
        interpreter.stacks.integer.push(value)


class FloatRand(Instruction):
    def execute(self, interpreter) -> None:
        erc = interpreter.erc
        value = interpreter.rng.random() * (erc.max_float - erc.min_float) + erc.min_float
        interpreter.stacks.float.push(value)


class BooleanRand(Instruction):
    def execute(self, interpreter) -> None:
        interpreter.stacks.boolean.push(interpreter.rng.random() < 0.5)


# ---------------------------------------------------------------------------
# Instructions available on every stack

class StackInstruction(Instruction):
    """Instruction bound to a stack by name"""

    def __init__(self, stack: str):
        self.stack = stack


class Pop(StackInstruction):
    def execute(self, interpreter) -> None:
        interpreter.stacks[self.stack].pop()


class Dup(StackInstruction):
    def execute(self, interpreter) -> None:
        interpreter.stacks[self.stack].dup()


class Swap(StackInstruction):
    def execute(self, interpreter) -> None:
        interpreter.stacks[self.stack].swap()


class Rot(StackInstruction):
    def execute(self, interpreter) -> None:
        interpreter.stacks[self.stack].rot()


class Flush(StackInstruction):
    def execute(self, interpreter) -> None:
        interpreter.stacks[self.stack].flush()


class Depth(StackInstruction):
    def execute(self, interpreter) -> None:
        depth = interpreter.stacks[self.stack].depth()
        interpreter.stacks.integer.push(depth)


class _IndexedStackInstruction(StackInstruction):
    """Takes a depth from the integer stack.

    When the target stack is empty the depth is pushed back untouched.
    """

    def execute(self, interpreter) -> None:
        istack = interpreter.stacks.integer
        if istack.size() < 1:
            return
        depth = istack.pop()
        stack = interpreter.stacks[self.stack]
        if stack.size() > 0:
            self.apply(stack, depth)
        else:
            istack.push(depth)

    def apply(self, stack, depth: int) -> None:
        raise NotImplementedError


class Shove(_IndexedStackInstruction):
    def apply(self, stack, depth: int) -> None:
        stack.shove_top(depth)


class Yank(_IndexedStackInstruction):
    def apply(self, stack, depth: int) -> None:
        stack.yank(depth)


class YankDup(_IndexedStackInstruction):
    def apply(self, stack, depth: int) -> None:
        stack.yankdup(depth)


STACK_INSTRUCTIONS = (
    ('pop', Pop),
    ('dup', Dup),
    ('swap', Swap),
    ('rot', Rot),
    ('flush', Flush),
    ('shove', Shove),
    ('yank', Yank),
    ('yankdup', YankDup),
    ('stackdepth', Depth),
)


def stack_instructions(stack: str) -> List[Tuple[str, Instruction]]:
    """The standard instruction family every stack gets"""
    return [(f"{stack}.{suffix}", cls(stack)) for suffix, cls in STACK_INSTRUCTIONS]


# ---------------------------------------------------------------------------
# Code and exec instructions

class Noop(Instruction):
    def execute(self, interpreter) -> None:
        pass


class Quote(Instruction):
    """Move the next exec item onto the code stack"""

    def execute(self, interpreter) -> None:
        estack = interpreter.stacks.exec
        if estack.size() > 0:
            interpreter.stacks.code.push(estack.pop())


class CodeFrom(Instruction):
    """Move the top of a literal stack onto the code stack"""

    def __init__(self, stack: str):
        self.stack = stack

    def execute(self, interpreter) -> None:
        source = interpreter.stacks[self.stack]
        if source.size() > 0:
            interpreter.stacks.code.push(source.pop())


class ExecK(Instruction):
    """Discard the second exec item"""

    def execute(self, interpreter) -> None:
        estack = interpreter.stacks.exec
        if estack.size() > 1:
            estack.swap()
            estack.pop()


class ExecS(Instruction):
    """S combinator: A B C -> A C (B C)"""

    def execute(self, interpreter) -> None:
        estack = interpreter.stacks.exec
        if estack.size() < 3:
            return
        a = estack.pop()
        b = estack.pop()
        c = estack.pop()
        list_bc = Program([b, copy_atom(c)])
        if list_bc.program_size() > interpreter.max_points_in_program:
            estack.push(c)
            estack.push(b)
            estack.push(a)
            return
        estack.push(list_bc)
        estack.push(c)
        estack.push(a)


class ExecY(Instruction):
    """Y combinator: A -> A (exec.y A)"""

    def execute(self, interpreter) -> None:
        estack = interpreter.stacks.exec
        if estack.size() < 1:
            return
        a = estack.pop()
        estack.push(Program(['exec.y', copy_atom(a)]))
        estack.push(a)


class ExecYield(Instruction):
    def execute(self, interpreter) -> None:
        interpreter.request_yield()


class DoRange(Instruction):
    """Loop over an integer range, leaving the counter on the integer stack.

    The body comes from the exec stack or, for code.do*range, the code stack.
    """

    def __init__(self, stack: str):
        self.stack = stack

    def execute(self, interpreter) -> None:
        body_stack = interpreter.stacks[self.stack]
        istack = interpreter.stacks.integer
        estack = interpreter.stacks.exec
        if body_stack.size() < 1 or istack.size() < 2:
            return
        stop = istack.pop()
        start = istack.pop()
        body = body_stack.pop()
        istack.push(start)
        if start != stop:
            start = start + 1 if start < stop else start - 1
            estack.push(loop_macro(self.stack, start, stop, body))
        estack.push(body)


class DoCount(Instruction):
    """Run the body n times, pushing the counter 0..n-1 each time"""

    def __init__(self, stack: str):
        self.stack = stack

    def execute(self, interpreter) -> None:
        body_stack = interpreter.stacks[self.stack]
        istack = interpreter.stacks.integer
        if body_stack.size() < 1 or istack.size() < 1 or istack.top() <= 0:
            return
        stop = istack.pop() - 1
        body = body_stack.pop()
        interpreter.stacks.exec.push(loop_macro(self.stack, 0, stop, body))


class DoTimes(Instruction):
    """Run the body n times without leaving the counter behind"""

    def __init__(self, stack: str):
        self.stack = stack

    def execute(self, interpreter) -> None:
        body_stack = interpreter.stacks[self.stack]
        istack = interpreter.stacks.integer
        if body_stack.size() < 1 or istack.size() < 1 or istack.top() <= 0:
            return
        stop = istack.pop() - 1
        body = body_stack.pop()
        if isinstance(body, Program):
            body = Program(['integer.pop'] + [copy_atom(atom) for atom in body])
        else:
            body = Program(['integer.pop', body])
        interpreter.stacks.exec.push(loop_macro(self.stack, 0, stop, body))


def loop_macro(stack: str, start: int, stop: int, body: Any) -> Program:
    """The program that continues a do*range loop"""
    if stack == 'code':
        return Program([start, stop, 'code.quote', copy_atom(body), 'code.do*range'])
    return Program([start, stop, 'exec.do*range', copy_atom(body)])


class ObjectEquals(Instruction):
    def __init__(self, stack: str):
        self.stack = stack

    def execute(self, interpreter) -> None:
        stack = interpreter.stacks[self.stack]
        if stack.size() < 2:
            return
        first = stack.pop()
        second = stack.pop()
        interpreter.stacks.boolean.push(atoms_equal(first, second))


class If(Instruction):
    """Pick one of the top two items of a stack by the top boolean.

    exec.if keeps the first item when true; code.if runs the second item
    when true and the first otherwise.
    """

    def __init__(self, stack: str):
        self.stack = stack

    def execute(self, interpreter) -> None:
        stack = interpreter.stacks[self.stack]
        bstack = interpreter.stacks.boolean
        if stack.size() < 2 or bstack.size() < 1:
            return
        condition = bstack.pop()
        first = stack.pop()
        second = stack.pop()
        if self.stack == 'code':
            condition = not condition
        interpreter.stacks.exec.push(first if condition else second)


class RandomCode(Instruction):
    """Push freshly generated random code, sized by the top integer"""

    def __init__(self, stack: str):
        self.stack = stack

    def execute(self, interpreter) -> None:
        generator = interpreter.generator
        istack = interpreter.stacks.integer
        if generator is None or istack.size() < 1:
            return
        max_points = min(abs(istack.pop()), generator.max_random_code_size)
        if max_points > 0:
            size = interpreter.rng.randrange(max_points) + 2
        else:
            size = 2
        interpreter.stacks[self.stack].push(generator.random_code(size))


# ---------------------------------------------------------------------------
# Input instructions

class InputPusher:
    """Pushes an input value onto the stack matching its kind"""

    def push_input(self, interpreter, index: int) -> None:
        inputs = interpreter.stacks.input
        if inputs.size() < 1:
            return
        index = max(0, min(index, inputs.size() - 1))
        value = inputs.items[index]
        stack = interpreter.stacks.for_kind(atom_kind(value))
        if stack is None:
            stack = interpreter.stacks.code
        stack.push(value)


class InputInN(Instruction):
    def __init__(self, index: int):
        self.index = index

    def execute(self, interpreter) -> None:
        interpreter.input_pusher.push_input(interpreter, self.index)


class InputIndex(Instruction):
    def execute(self, interpreter) -> None:
        istack = interpreter.stacks.integer
        if istack.size() < 1 or interpreter.stacks.input.size() < 1:
            return
        interpreter.input_pusher.push_input(interpreter, istack.pop())


class InputInAll(Instruction):
    def execute(self, interpreter) -> None:
        for index in range(interpreter.stacks.input.size()):
            interpreter.input_pusher.push_input(interpreter, index)


class InputInRev(Instruction):
    def execute(self, interpreter) -> None:
        for index in reversed(range(interpreter.stacks.input.size())):
            interpreter.input_pusher.push_input(interpreter, index)


# ---------------------------------------------------------------------------
# Arithmetic helpers

def int_div(a: int, b: int) -> int:
    """Integer division truncating toward zero"""
    if b == 0:
        raise ZeroDivisionError("integer division by zero")
    quotient = abs(a) // abs(b)
    return quotient if (a < 0) == (b < 0) else -quotient


def int_mod(a: int, b: int) -> int:
    """Remainder with the sign of the dividend"""
    return a - b * int_div(a, b)


def int_pow(a: int, b: int) -> int:
    return int(math.pow(a, b))


def int_log(a: int, b: int) -> int:
    return int(math.log(a, b))


def _binary(stack: str, name: str, func, out: str = None) -> Tuple[str, Instruction]:
    return f"{stack}.{name}", BinaryInstruction(stack, out or stack, func)


def _unary(stack: str, name: str, func, out: str = None) -> Tuple[str, Instruction]:
    return f"{stack}.{name}", UnaryInstruction(stack, out or stack, func)


def default_instructions() -> List[Tuple[str, Instruction]]:
    """The built-in instruction catalogue, excluding per-stack instructions"""
    return [
        _binary('integer', '+', lambda a, b: a + b),
        _binary('integer', '-', lambda a, b: a - b),
        _binary('integer', '*', lambda a, b: a * b),
        _binary('integer', '/', int_div),
        _binary('integer', '%', int_mod),
        _binary('integer', 'pow', int_pow),
        _binary('integer', 'log', int_log),
        _binary('integer', '=', lambda a, b: a == b, 'boolean'),
        _binary('integer', '>', lambda a, b: a > b, 'boolean'),
        _binary('integer', '<', lambda a, b: a < b, 'boolean'),
        _binary('integer', 'min', min),
        _binary('integer', 'max', max),
        _unary('integer', 'abs', abs),
        _unary('integer', 'neg', lambda a: -a),
        _unary('integer', 'ln', lambda a: int(math.log(a))),
        ('integer.fromfloat', UnaryInstruction('float', 'integer', int)),
        ('integer.fromboolean', UnaryInstruction('boolean', 'integer', int)),
        ('integer.rand', IntegerRand()),
        ('integer.define', DefineInstruction('integer')),

        _binary('float', '+', lambda a, b: a + b),
        _binary('float', '-', lambda a, b: a - b),
        _binary('float', '*', lambda a, b: a * b),
        _binary('float', '/', lambda a, b: a / b),
        _binary('float', '%', math.fmod),
        _binary('float', 'pow', math.pow),
        _binary('float', 'log', math.log),
        _binary('float', '=', lambda a, b: a == b, 'boolean'),
        _binary('float', '>', lambda a, b: a > b, 'boolean'),
        _binary('float', '<', lambda a, b: a < b, 'boolean'),
        _binary('float', 'min', min),
        _binary('float', 'max', max),
        _unary('float', 'sin', math.sin),
        _unary('float', 'cos', math.cos),
        _unary('float', 'tan', math.tan),
        _unary('float', 'exp', math.exp),
        _unary('float', 'abs', abs),
        _unary('float', 'neg', lambda a: -a),
        _unary('float', 'ln', math.log),
        ('float.frominteger', UnaryInstruction('integer', 'float', float)),
        ('float.fromboolean', UnaryInstruction('boolean', 'float', float)),
        ('float.rand', FloatRand()),
        ('float.define', DefineInstruction('float')),

        _binary('boolean', '=', lambda a, b: a == b),
        _unary('boolean', 'not', lambda a: not a),
        _binary('boolean', 'and', lambda a, b: a and b),
        _binary('boolean', 'or', lambda a, b: a or b),
        _binary('boolean', 'xor', lambda a, b: a != b),
        ('boolean.frominteger', UnaryInstruction('integer', 'boolean', bool)),
        ('boolean.fromfloat', UnaryInstruction('float', 'boolean', bool)),
        ('boolean.rand', BooleanRand()),
        ('boolean.define', DefineInstruction('boolean')),
        ('true', Constant('boolean', True)),
        ('false', Constant('boolean', False)),

        ('code.quote', Quote()),
        ('code.fromboolean', CodeFrom('boolean')),
        ('code.frominteger', CodeFrom('integer')),
        ('code.fromfloat', CodeFrom('float')),
        ('code.noop', Noop()),
        ('exec.noop', Noop()),
        ('exec.k', ExecK()),
        ('exec.s', ExecS()),
        ('exec.y', ExecY()),
        ('exec.yield', ExecYield()),
        ('exec.do*times', DoTimes('exec')),
        ('code.do*times', DoTimes('code')),
        ('exec.do*count', DoCount('exec')),
        ('code.do*count', DoCount('code')),
        ('exec.do*range', DoRange('exec')),
        ('code.do*range', DoRange('code')),
        ('code.=', ObjectEquals('code')),
        ('exec.=', ObjectEquals('exec')),
        ('code.if', If('code')),
        ('exec.if', If('exec')),
        ('code.rand', RandomCode('code')),
        ('exec.rand', RandomCode('exec')),

        ('input.index', InputIndex()),
        ('input.inall', InputInAll()),
        ('input.inallrev', InputInRev()),
    ]
