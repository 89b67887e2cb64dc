"""
push_evolution/cli.py - Command-line interface
"""
import json
import logging
import os
import random
import time

import click

from .archive import EvolutionArchive
from .config import ConfigurationError, GPConfig
from .engine import PushGP
from .generator import CodeGenerator
from .interpreter import InstructionRegistry, Interpreter
from .program import MalformedProgramError, Program, parse_token


@click.group()
def cli():
    """Push Evolution - a Push stack machine and PushGP"""
    pass


@cli.command()
@click.option('--config', '-c', 'config_file', type=click.Path(exists=True, dir_okay=False),
              help='JSON configuration file')
@click.option('--generations', '-g', type=int, help='Override max generations')
@click.option('--population', '-p', type=int, help='Override population size')
@click.option('--problem', type=str, help='Override problem name')
@click.option('--seed', '-s', type=int, help='Random seed')
@click.option('--out', '-o', default='out/', help='Output directory')
@click.option('--verbose', '-v', is_flag=True, help='Verbose output')
def evolve(config_file, generations, population, problem, seed, out, verbose):
    """Evolve Push programs for a configured problem"""
    logging.basicConfig(level=logging.INFO if verbose else logging.WARNING,
                        format='%(asctime)s %(name)s %(levelname)s: %(message)s')

    try:
        data = {}
        if config_file:
            data = GPConfig.from_file(config_file).to_dict()
        overrides = {'max_generations': generations, 'population_size': population,
                     'problem': problem, 'seed': seed}
        data.update({key: value for key, value in overrides.items() if value is not None})
        config = GPConfig.from_dict(data)

        os.makedirs(out, exist_ok=True)
        archive = EvolutionArchive(out)
        archive.save_config(config)
        gp = PushGP(config, archive=archive)
    except ConfigurationError as e:
        raise click.ClickException(f"Configuration error: {e}")

    click.echo(f"Starting evolution: problem {config.problem}, {config.max_generations} "
               f"generations, population {config.population_size}")
    click.echo(f"Output: {out}")

    start_time = time.time()
    final = gp.run()
    total_time = time.time() - start_time

    for report in gp.reports:
        if verbose or report.generation % 10 == 0:
            click.echo(f"Gen {report.generation:3d}: Best={report.best_fitness:.4g} "
                       f"Mean size={report.mean_size:.1f} Evaluations={report.evaluation_count}")

    click.echo(f"\nEvolution completed in {total_time:.1f}s")
    click.echo(str(final))
    click.echo(f"\nSummary report saved to {os.path.join(out, 'summary.txt')}")


@cli.command()
@click.argument('program')
@click.option('--input', '-i', 'inputs', multiple=True, help='Input value (repeatable)')
@click.option('--steps', default=-1, help='Step limit (-1 for unbounded)')
@click.option('--instructions', default='(registered.integer registered.float registered.boolean)',
              help='Instruction set used by code.rand and exec.rand')
@click.option('--seed', '-s', type=int, help='Random seed')
@click.option('--json', 'as_json', is_flag=True, help='Print the stacks as JSON')
def run(program, inputs, steps, instructions, seed, as_json):
    """Execute PROGRAM text and print the resulting stacks"""
    try:
        parsed = Program.parse(program)
    except MalformedProgramError as e:
        raise click.ClickException(f"Could not parse program: {e}")

    rng = random.Random(seed)
    registry = InstructionRegistry()
    generator = CodeGenerator(registry, rng)
    try:
        instruction_set = instructions
        if inputs:
            # Nested sets are flattened, so this adds input.in0 .. input.in{N-1}
            instruction_set = f"({instructions} input.makeinputs{len(inputs)})"
        generator.set_instructions(instruction_set)
    except (ConfigurationError, MalformedProgramError) as e:
        raise click.ClickException(f"Configuration error: {e}")
    registry.freeze()

    interpreter = Interpreter(registry, generator, rng)
    executed = interpreter.run(parsed, [parse_token(value) for value in inputs], steps)

    if as_json:
        snapshot = {name: [str(value) if isinstance(value, Program) else value
                           for value in values]
                    for name, values in interpreter.stacks.snapshot().items()}
        click.echo(json.dumps({'steps': executed, 'state': interpreter.state.value,
                               'stacks': snapshot}, indent=2))
        return

    click.echo(f"Executed {executed} steps ({interpreter.state.value})")
    click.echo(interpreter.dump())


@cli.command()
@click.option('--archive', '-a', default='out/', help='Archive directory path')
@click.option('--top', default=5, help='Show the N best generations')
def analyze(archive, top):
    """Analyze a saved run"""
    if not os.path.isdir(archive):
        raise click.ClickException(f"No archive directory at {archive}")

    arch = EvolutionArchive(archive)
    log = arch.load_log()
    final = arch.load_final_report()
    if not log and final is None:
        click.echo(f"No evolution log found at {arch.log_file}")
        return

    click.echo(arch.export_summary_report(final))

    if log:
        click.echo(f"\nTop {top} generations:")
        ranked = sorted(log, key=lambda entry: entry['report']['best_fitness'])[:top]
        for entry in ranked:
            report = entry['report']
            click.echo(f"  gen {entry['generation']:4d}  fitness {report['best_fitness']:.6g}  "
                       f"size {report['best_size']:3d}  {report['best_program']}")


if __name__ == '__main__':
    cli()
