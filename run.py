#!/usr/bin/env python3
"""
specbind - plain text Given/When/Then specifications for Python
Command line entry point for generating pytest modules and verifying specifications
"""

import sys

import click
import yaml
from click.core import ParameterSource

from specbind import __version__
from specbind.core.config_manager import ConfigManager
from specbind.exceptions import SpecbindError
from specbind.executor.step_registry import StepRegistry
from specbind.executor.test_executor import SpecRunner, StepStatus
from specbind.generator.fixture_generator import FixtureGenerator
from specbind.parser.feature_parser import FeatureParser
from specbind.parser.languages import LanguageTable
from specbind.utils.logger import set_log_level, setup_logger

logger = setup_logger('specbind.cli')


def _load_registry(step_paths) -> StepRegistry:
    registry = StepRegistry()
    for path in step_paths:
        registry.load_path(path)
    return registry


@click.group()
@click.option('--config', '-c', default='specbind.yaml', help='Path to config file')
@click.option('--env', '-e', default=None, help='Environment whose overrides are applied')
@click.option('--log-level', default=None, help='Log level (DEBUG/INFO/WARNING/ERROR)')
@click.version_option(__version__, prog_name='specbind')
@click.pass_context
def main(ctx, config, env, log_level):
    """
    specbind - bind plain text specifications to Python step definitions

    Examples:
        # Regenerate pytest modules next to every specification
        specbind generate --steps steps features/*.txt

        # Verify specifications directly and print undefined steps
        specbind verify --steps steps features
    """
    try:
        config_manager = ConfigManager(config, env)
        config_manager.load_config()
    except SpecbindError as e:
        raise click.ClickException(str(e))

    set_log_level(log_level or config_manager.get('logging.level', 'INFO'))
    ctx.obj = config_manager


def _parser(config_manager: ConfigManager) -> FeatureParser:
    return FeatureParser(LanguageTable.load(
        config_manager.get('languages_file'),
        default=config_manager.get('language', 'en'),
    ))


@main.command()
@click.argument('files', nargs=-1)
@click.option('--output-dir', '-o', default=None, help='Directory for the generated modules')
@click.option('--base-class', default=None, help='Base class of the generated test classes (module.Class)')
@click.option('--steps', '-s', multiple=True, help='Step definition module or directory')
@click.option('--no-setup', is_flag=True, help='Do not generate a class setup method')
@click.option('--no-report', is_flag=True, help='Do not report undefined steps at class teardown')
@click.pass_obj
def generate(config_manager, files, output_dir, base_class, steps, no_setup, no_report):
    """Generate a pytest module for every specification file"""
    files = files or (config_manager.get('features'),)

    try:
        generator = FixtureGenerator(
            parser=_parser(config_manager),
            output_dir=output_dir or config_manager.get('generate.output_dir'),
            base_class=base_class or config_manager.get('generate.base_class'),
            setup=not no_setup,
            report_undefined=not no_report and config_manager.get('generate.report_undefined', True),
            step_paths=steps or config_manager.step_paths,
        )
        modules = generator.generate_all(files)
    except (SpecbindError, OSError) as e:
        logger.error(f"Generation failed: {e}")
        sys.exit(1)

    if not modules:
        logger.warning("No specification files found")
        sys.exit(1)

    for module in modules:
        click.echo(f"{'Wrote' if module.written else 'Unchanged'} {module.module_path}")


@main.command()
@click.argument('files', nargs=-1)
@click.option('--steps', '-s', multiple=True, help='Step definition module or directory')
@click.option('--strict/--no-strict', default=False, help='Fail when steps are undefined')
@click.option('--parallel', '-p', default=1, type=int, help='Number of documents verified at once')
@click.pass_context
def verify(ctx, files, steps, strict, parallel):
    """Verify specification files against step definitions"""
    config_manager = ctx.obj
    files = files or (config_manager.get('features'),)
    if ctx.get_parameter_source('strict') is ParameterSource.DEFAULT:
        strict = config_manager.get('verify.strict', False)

    try:
        registry = _load_registry(steps or config_manager.step_paths)
        documents = _parser(config_manager).load_features(files, parallel=parallel)
    except (SpecbindError, OSError) as e:
        logger.error(f"Verification failed: {e}")
        sys.exit(1)

    if not documents:
        logger.warning("No specification files found")
        sys.exit(1)

    runner = SpecRunner(registry)
    results = runner.verify_documents(documents, parallel=parallel)

    for result in results:
        click.echo(f"{result.status.value.upper():<9} {result.feature}: {result.scenario}")

    click.echo()
    click.echo(runner.report.format())

    failed = sum(1 for r in results if r.status is StepStatus.FAILED)
    undefined = sum(1 for r in results if r.status is StepStatus.UNDEFINED)
    if failed or (strict and undefined):
        logger.error(f"Verification completed with {failed} failed and {undefined} undefined scenarios")
        sys.exit(1)


@main.command('list-steps')
@click.option('--steps', '-s', multiple=True, help='Step definition module or directory')
@click.pass_obj
def list_steps(config_manager, steps):
    """Print the available step definitions grouped by type"""
    try:
        registry = _load_registry(steps or config_manager.step_paths)
    except SpecbindError as e:
        raise click.ClickException(str(e))

    for step_type, phrases in registry.describe().items():
        click.secho(step_type.upper(), bold=True)
        for phrase in phrases:
            click.echo(f"  {phrase}")

    for definition in registry.invalid:
        click.secho(f"invalid: {definition.name}: {definition.error}", fg='red')


@main.command()
@click.argument('file')
@click.pass_obj
def parse(config_manager, file):
    """Print a specification file as parsed"""
    try:
        document = _parser(config_manager).parse_file(file)
    except (SpecbindError, OSError) as e:
        raise click.ClickException(str(e))

    click.echo(yaml.safe_dump(document.to_dict(), sort_keys=False, allow_unicode=True))


if __name__ == '__main__':
    main()
