"""Main entry point for the README validation CLI."""

import sys
import traceback
from pathlib import Path

import click

from readmevalidation import __version__
from readmevalidation.config import ValidatorConfig
from readmevalidation.validator import ReadmeValidator


@click.group()
@click.version_option(version=__version__)
def cli():
    """Registry README tooling."""


@cli.command()
@click.option(
    "--registry-dir",
    type=click.Path(path_type=Path),
    help="Registry directory to validate (default: ./registry)",
)
@click.option(
    "--config",
    "config_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="YAML configuration file",
)
@click.option("--workers", type=click.IntRange(min=1), help="Maximum number of files validated in parallel")
@click.option("--verbose", "-v", is_flag=True, help="Verbose output")
def validate(registry_dir: Path | None, config_path: Path | None, workers: int | None, verbose: bool):
    """Validate every contributor, module and template README.

    Exits 0 when all READMEs are valid, 1 when validation errors were found,
    and 2 when validation could not run.
    """
    config = ValidatorConfig.from_file(config_path) if config_path else ValidatorConfig.load()

    # Command-line flags win over the configuration file
    if registry_dir is not None:
        config = ValidatorConfig(
            registry_dir=registry_dir,
            max_workers=config.max_workers,
            verbose=config.verbose,
        )
    if workers is not None:
        config.max_workers = workers
    if verbose:
        config.verbose = True

    validator = ReadmeValidator(config)
    validator.log("starting README validation", force=True)

    try:
        all_valid = validator.validate()
    except Exception as e:
        click.echo(f"\n❌ ERROR: {e}", err=True)
        traceback.print_exc()
        sys.exit(2)

    sys.exit(0 if all_valid else 1)


if __name__ == "__main__":
    cli()
