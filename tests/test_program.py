"""
Tests for program trees: parsing, sizing, indexing and structural edits.
"""

import pytest

from push_evolution.instructions import Pop
from push_evolution.program import (
    AtomKind, MalformedProgramError, Program, atom_kind, atoms_equal, parse_program
)


class TestParsing:
    """Test program text parsing."""

    def test_parse_literals_and_names(self):
        """Test each token kind becomes the right atom."""
        program = Program.parse("( 1 2.5 -3 foo integer.+ (4) )")

        assert program.atoms[0] == 1
        assert isinstance(program.atoms[1], float)
        assert program.atoms[2] == -3
        assert program.atoms[3] == 'foo'
        assert program.atoms[4] == 'integer.+'
        assert program.atoms[5] == Program([4])

    def test_parse_without_spaces_around_parens(self):
        """Test parentheses need no surrounding whitespace."""
        assert Program.parse("((1)(2 3))") == Program([Program([1]), Program([2, 3])])

    def test_parse_empty_program(self):
        """Test the empty program parses to no atoms."""
        assert len(Program.parse("()")) == 0

    @pytest.mark.parametrize("text", ["(1 2", "1 2)", "(1) )", "", ")(", "((1)"])
    def test_malformed_programs(self, text):
        """Test unbalanced or missing parentheses raise."""
        with pytest.raises(MalformedProgramError):
            Program.parse(text)

    def test_malformed_is_value_error(self):
        """Test callers can catch parse errors as ValueError."""
        with pytest.raises(ValueError):
            parse_program("(1 2")

    def test_round_trip(self):
        """Test parse(str(P)) reproduces P."""
        program = Program([1, -2.5, 1e-05, 'float.*', Program([Program([]), 3])])
        assert Program.parse(str(program)) == program

    def test_float_text_always_has_point(self):
        """Test floats print in a form that parses back as float."""
        assert str(Program([2.0, 1e-05])) == "(2.0 1.0e-05)"

    def test_boolean_prints_as_constant_name(self):
        """Test booleans print as the true/false instruction names."""
        assert str(Program([True, False])) == "(true false)"

    def test_infinities_round_trip(self):
        """Test infinite floats print as literals that parse back as floats."""
        program = Program([float('inf'), float('-inf')])
        assert str(program) == "(1.0e999 -1.0e999)"
        assert Program.parse(str(program)) == program


class TestAtoms:
    """Test atom classification and equality."""

    def test_atom_kinds(self):
        assert atom_kind(True) is AtomKind.BOOLEAN
        assert atom_kind(1) is AtomKind.INTEGER
        assert atom_kind(1.0) is AtomKind.FLOAT
        assert atom_kind('x') is AtomKind.NAME
        assert atom_kind(Program()) is AtomKind.PROGRAM
        assert atom_kind(object()) is None

    def test_instruction_kind(self):
        assert atom_kind(Pop('integer')) is AtomKind.INSTRUCTION

    def test_equality_keeps_numeric_types_apart(self):
        """Test 1, 1.0 and True are different atoms."""
        assert not atoms_equal(1, 1.0)
        assert not atoms_equal(1, True)
        assert Program([1]) != Program([1.0])
        assert Program([1]) != Program([True])
        assert Program([1, Program([2])]) == Program([1, Program([2])])


class TestStructure:
    """Test sizes, indexing and structural edits."""

    def setup_method(self):
        # indices: 0 root, 1 -> 1, 2 -> (2 3), 3 -> 2, 4 -> 3, 5 -> ()
        self.program = Program.parse("(1 (2 3) ())")

    def test_program_size(self):
        """Test size counts the program, nested programs and leaves."""
        assert self.program.program_size() == 6
        assert Program().program_size() == 1
        assert Program([1, 2]).program_size() == 3

    def test_size_formula(self):
        """Test size is 1 + nested sizes + leaf count."""
        program = Program.parse("((1 2) 3 ((4) 5) ())")
        nested = sum(a.program_size() for a in program if isinstance(a, Program))
        leaves = sum(1 for a in program if not isinstance(a, Program))
        assert program.program_size() == 1 + nested + leaves

    def test_subtree(self):
        """Test pre-order global indexing."""
        assert self.program.subtree(0) is self.program
        assert self.program.subtree(1) == 1
        assert self.program.subtree(2) == Program([2, 3])
        assert self.program.subtree(3) == 2
        assert self.program.subtree(4) == 3
        assert self.program.subtree(5) == Program()
        assert self.program.subtree(6) is None

    def test_subtree_size(self):
        assert self.program.subtree_size(0) == 6
        assert self.program.subtree_size(2) == 3
        assert self.program.subtree_size(3) == 1
        assert self.program.subtree_size(99) == 0

    def test_points_match_subtree(self):
        """Test points() visits every index in order."""
        points = list(self.program.points())
        assert [index for index, _ in points] == list(range(6))
        for index, atom in points:
            assert self.program.subtree(index) is atom

    def test_replace_with_own_subtree_is_identity(self):
        """Test replacing any index with its own subtree changes nothing."""
        original = self.program.copy()
        for index in range(self.program.program_size()):
            self.program.replace_subtree(index, self.program.subtree(index))
            assert self.program == original

    def test_replace_nested(self):
        assert self.program.replace_subtree(3, Program([7, 8]))
        assert self.program == Program.parse("(1 ((7 8) 3) ())")
        assert self.program.program_size() == 8

    def test_replace_out_of_range(self):
        assert not self.program.replace_subtree(10, 5)

    def test_replace_root(self):
        """Test index 0 takes a program's children, or a lone leaf."""
        self.program.replace_subtree(0, Program([4, 5]))
        assert self.program == Program([4, 5])

        self.program.replace_subtree(0, 9)
        assert self.program == Program([9])

    def test_replace_copies_replacement(self):
        """Test the tree never aliases the inserted program."""
        replacement = Program([1])
        self.program.replace_subtree(1, replacement)
        replacement.atoms.append(2)
        assert self.program.subtree(1) == Program([1])

    def test_flatten(self):
        assert self.program.flatten(2)
        assert self.program == Program.parse("(1 2 3 ())")
        assert self.program.program_size() == 5

    def test_flatten_empty_program_deletes_it(self):
        assert self.program.flatten(5)
        assert self.program == Program.parse("(1 (2 3))")

    def test_flatten_leaf_and_root_are_noops(self):
        """Test flattening a leaf or the root leaves the size alone."""
        size = self.program.program_size()
        assert not self.program.flatten(1)
        assert not self.program.flatten(0)
        assert self.program.program_size() == size

    def test_copy_is_deep(self):
        clone = self.program.copy()
        clone.subtree(2).atoms.append(4)
        assert self.program.subtree(2) == Program([2, 3])
