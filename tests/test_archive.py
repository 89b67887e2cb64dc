"""
Tests for individuals' serialization and the run archive.
"""

import json
import os

import pytest

from push_evolution.archive import EvolutionArchive
from push_evolution.config import GPConfig
from push_evolution.engine import FinalReport, GenerationReport
from push_evolution.individual import Individual
from push_evolution.program import Program


def make_report(generation, fitness):
    return GenerationReport(
        generation=generation,
        best_program="(input.in0 integer.dup integer.+)",
        best_fitness=fitness,
        best_errors=[fitness, -fitness],
        best_size=4,
        mean_fitness=fitness * 3,
        mean_size=12.5,
        evaluation_count=100 * (generation + 1),
        simplified_program="(input.in0 integer.dup integer.+)",
        simplified_size=4,
    )


def make_best(fitness):
    individual = Individual(Program.parse("(input.in0 integer.dup integer.+)"))
    individual.fitness = fitness
    individual.errors = [fitness, -fitness]
    return individual


def make_final():
    return FinalReport(
        success=True, generations=2, evaluation_count=200,
        best_program="(input.in0 integer.dup integer.+)", best_fitness=0.0,
        best_errors=[0.0, 0.0], best_size=4,
        simplified_program="(input.in0 integer.dup integer.+)", simplified_fitness=0.0,
        simplified_size=4, instructions=['input.in0', 'integer.+'],
    )


class TestIndividual:
    """Test individual serialization."""

    def test_json_round_trip(self, tmp_path):
        individual = make_best(1.5)
        filename = str(tmp_path / "best.json")
        individual.to_json(filename)

        loaded = Individual.from_json(filename=filename)
        assert loaded.program == individual.program
        assert loaded.fitness == 1.5
        assert loaded.errors == [1.5, -1.5]

    def test_set_program_resets_fitness(self):
        individual = make_best(2.0)
        individual.set_program(Program.parse("(1)"))
        assert not individual.evaluated
        assert individual.errors == []

    def test_copy_is_independent(self):
        individual = make_best(2.0)
        clone = individual.copy()
        clone.program.push(7)
        assert individual.size() == 4
        assert clone.fitness == 2.0

    def test_str_unevaluated(self):
        assert 'unevaluated' in str(Individual())


class TestEvolutionArchive:
    """Test archiving generations and final reports."""

    def test_creates_directories(self, tmp_path):
        archive = EvolutionArchive(str(tmp_path))
        assert os.path.isdir(archive.dirs['logs'])
        assert os.path.isdir(archive.dirs['programs'])

    def test_archive_generation(self, tmp_path):
        archive = EvolutionArchive(str(tmp_path))
        archive.archive_generation(make_report(0, 4.0), make_best(4.0))
        archive.archive_generation(make_report(1, 1.0), make_best(1.0))

        assert os.path.exists(os.path.join(archive.dirs['programs'], 'gen_0001_best.json'))
        with open(archive.log_file) as f:
            log = json.load(f)
        assert [entry['generation'] for entry in log] == [0, 1]
        assert log[1]['report']['best_fitness'] == 1.0

    def test_load_log_and_best(self, tmp_path):
        archive = EvolutionArchive(str(tmp_path))
        archive.archive_generation(make_report(0, 3.0), make_best(3.0))

        reopened = EvolutionArchive(str(tmp_path))
        assert len(reopened.load_log()) == 1
        best = reopened.load_best(0)
        assert best.fitness == 3.0
        assert str(best.program) == "(input.in0 integer.dup integer.+)"

    def test_load_missing_files(self, tmp_path):
        archive = EvolutionArchive(str(tmp_path))
        assert archive.load_log() == []
        assert archive.load_final_report() is None

    def test_summary(self, tmp_path):
        archive = EvolutionArchive(str(tmp_path))
        archive.archive_generation(make_report(0, 4.0), make_best(4.0))
        archive.archive_generation(make_report(1, 1.0), make_best(1.0))

        summary = archive.export_summary_report()
        assert "PUSHGP RUN SUMMARY" in summary
        assert "Generations: 2" in summary
        assert "Best generation: 1" in summary

    def test_empty_summary(self, tmp_path):
        archive = EvolutionArchive(str(tmp_path))
        assert archive.export_summary_report() == "No evolution data to summarize"

    def test_save_final_report(self, tmp_path):
        archive = EvolutionArchive(str(tmp_path))
        archive.save_final_report(make_final())

        final = archive.load_final_report()
        assert final['success'] is True
        assert final['instructions'] == ['input.in0', 'integer.+']
        with open(os.path.join(str(tmp_path), 'summary.txt')) as f:
            assert "FINAL RESULT" in f.read()

    def test_save_config(self, tmp_path):
        archive = EvolutionArchive(str(tmp_path))
        archive.save_config(GPConfig(seed=5))
        with open(os.path.join(str(tmp_path), 'config.json')) as f:
            assert json.load(f)['seed'] == 5

    @pytest.mark.parametrize("report_class", [GenerationReport, FinalReport])
    def test_reports_render(self, report_class):
        report = make_report(0, 2.0) if report_class is GenerationReport else make_final()
        text = str(report)
        assert "(input.in0 integer.dup integer.+)" in text
