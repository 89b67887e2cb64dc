"""
push_evolution/archive.py - Persistence of run reports and best programs
"""
import json
import os
import time
from datetime import datetime
from typing import Any, Dict, List, Optional

from .individual import Individual


class EvolutionArchive:
    """Archive a run's generation reports, best individuals and summary"""

    def __init__(self, base_path: str):
        self.base_path = base_path
        self.evolution_log: List[Dict[str, Any]] = []

        self.dirs = {
            'logs': os.path.join(base_path, 'logs'),
            'programs': os.path.join(base_path, 'programs'),
        }
        for dir_path in self.dirs.values():
            os.makedirs(dir_path, exist_ok=True)

    @property
    def log_file(self) -> str:
        return os.path.join(self.dirs['logs'], 'evolution_log.json')

    @property
    def final_file(self) -> str:
        return os.path.join(self.dirs['logs'], 'final_report.json')

    def save_config(self, config) -> None:
        with open(os.path.join(self.base_path, 'config.json'), 'w') as f:
            json.dump(config.to_dict(), f, indent=2)

    def archive_generation(self, report, best: Individual) -> None:
        """Archive a generation's report and its best individual"""
        timestamp = time.time()
        filename = f"gen_{report.generation:04d}_best.json"
        best.to_json(os.path.join(self.dirs['programs'], filename))

        generation_data = {
            'generation': report.generation,
            'timestamp': timestamp,
            'datetime': datetime.fromtimestamp(timestamp).isoformat(),
            'report': report.to_dict(),
            'best_program_file': filename,
        }
        self.evolution_log.append(generation_data)

        with open(self.log_file, 'w') as f:
            json.dump(self.evolution_log, f, indent=2)

    def save_final_report(self, final) -> None:
        data = final.to_dict()
        data['datetime'] = datetime.now().isoformat()
        with open(self.final_file, 'w') as f:
            json.dump(data, f, indent=2)

        summary_file = os.path.join(self.base_path, 'summary.txt')
        with open(summary_file, 'w') as f:
            f.write(self.export_summary_report(data))

    def load_log(self) -> List[Dict[str, Any]]:
        if not os.path.exists(self.log_file):
            return []
        with open(self.log_file, 'r') as f:
            self.evolution_log = json.load(f)
        return self.evolution_log

    def load_final_report(self) -> Optional[Dict[str, Any]]:
        if not os.path.exists(self.final_file):
            return None
        with open(self.final_file, 'r') as f:
            return json.load(f)

    def load_best(self, generation: int) -> Individual:
        filename = os.path.join(self.dirs['programs'], f"gen_{generation:04d}_best.json")
        return Individual.from_json(filename=filename)

    def export_summary_report(self, final: Optional[Dict[str, Any]] = None) -> str:
        """Generate a summary report of the run"""
        if not self.evolution_log and final is None:
            return "No evolution data to summarize"

        report_lines = []
        report_lines.append("=" * 60)
        report_lines.append("PUSHGP RUN SUMMARY")
        report_lines.append("=" * 60)

        if self.evolution_log:
            first = self.evolution_log[0]
            last = self.evolution_log[-1]
            report_lines.append(f"Generations: {len(self.evolution_log)}")
            report_lines.append(f"Start time: {first['datetime']}")
            report_lines.append(f"End time: {last['datetime']}")
            duration = last['timestamp'] - first['timestamp']
            report_lines.append(f"Duration: {duration:.1f} seconds")

            report_lines.append("\n" + "-" * 40)
            report_lines.append("FITNESS PROGRESSION")
            report_lines.append("-" * 40)
            first_report = first['report']
            last_report = last['report']
            report_lines.append(f"Initial best fitness: {first_report['best_fitness']:.6g}")
            report_lines.append(f"Final best fitness: {last_report['best_fitness']:.6g}")
            report_lines.append(f"Initial mean size: {first_report['mean_size']:.1f}")
            report_lines.append(f"Final mean size: {last_report['mean_size']:.1f}")

            best_entry = min(self.evolution_log, key=lambda e: e['report']['best_fitness'])
            report_lines.append(f"Best generation: {best_entry['generation']} "
                                f"(fitness {best_entry['report']['best_fitness']:.6g})")

        if final is not None:
            report_lines.append("\n" + "-" * 40)
            report_lines.append("FINAL RESULT")
            report_lines.append("-" * 40)
            report_lines.append(f"Success: {final['success']}")
            report_lines.append(f"Evaluations: {final['evaluation_count']}")
            report_lines.append(f"Best program: {final['best_program']}")
            report_lines.append(f"Best fitness: {final['best_fitness']:.6g}")
            report_lines.append(f"Simplified program: {final['simplified_program']}")
            report_lines.append(f"Simplified size: {final['simplified_size']}")

        report_lines.append("=" * 60)
        return '\n'.join(report_lines)
