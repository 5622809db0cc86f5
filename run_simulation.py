#!/usr/bin/env python3
"""
BeakSim Entrypoint - Run a natural selection simulation from YAML configuration.

Usage:
    python run_simulation.py
    python run_simulation.py config.yaml
    python run_simulation.py --config config.yaml --generations 50
    python run_simulation.py --config config.yaml --dry-run
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import Optional

from beaksim.core import (
    AppConfig,
    ConfigError,
    UnknownScenarioError,
    create_simulation_runner,
    load_config_file,
)
from beaksim.entities import TRAITS

EXAMPLE_CONFIG_PATH = Path(__file__).parent / "config" / "example_config.yaml"


def setup_logging(level: str = "INFO"):
    """Setup basic logging configuration."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[
            logging.StreamHandler(sys.stdout)
        ]
    )


def load_app_config(config_file: Optional[Path]) -> AppConfig:
    """Load configuration from file, or fall back to defaults."""
    if config_file is None:
        return AppConfig()
    return load_config_file(config_file)


def run_simulation(config: AppConfig, dry_run: bool = False) -> int:
    """Run the simulation described by config. Returns a process exit code."""
    logger = logging.getLogger(__name__)

    if dry_run:
        print("Dry run mode - configuration validated successfully!")
        return 0

    runner = None
    try:
        logger.info("Creating simulation...")
        runner = create_simulation_runner(config.simulation, config.run, config.scenario)

        results = runner.run()

        print("\n" + "=" * 60)
        print("Simulation Complete!")
        print("=" * 60)

        run_stats = results['run_stats']
        final = results['final_statistics']

        print(f"Generations run: {run_stats['generations_run']}")
        print(f"Population collapses: {run_stats['collapses']}")
        print(f"Mutations: {run_stats['total_mutations']}")
        if run_stats['fixation_generation'] is not None:
            print(f"Fixation reached at generation {run_stats['fixation_generation']}")

        print(f"\nFinal population (generation {final['generation']}):")
        for trait in TRAITS:
            count = final['trait_counts'][trait.value]
            frequency = final['trait_frequencies'][trait.value]
            print(f"  {trait.value:<6} {count:4d} ({frequency:6.1%})")
        return 0

    except KeyboardInterrupt:
        logger.info("Simulation interrupted by user")
        print("\nSimulation interrupted!")
        return 130
    except UnknownScenarioError as e:
        print(f"Configuration error: {e}")
        return 1
    except Exception as e:
        logger.error(f"Simulation failed: {e}", exc_info=True)
        print(f"Simulation failed: {e}")
        return 1
    finally:
        if runner is not None:
            runner.cleanup()


def main(argv=None):
    """Main entrypoint."""
    parser = argparse.ArgumentParser(
        description="Run a BeakSim natural selection simulation",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python run_simulation.py
  python run_simulation.py config.yaml
  python run_simulation.py --config my_config.yaml --generations 50
  python run_simulation.py --config config.yaml --dry-run
  python run_simulation.py --example-config > example.yaml
        """
    )

    parser.add_argument(
        'config_file',
        nargs='?',
        type=Path,
        help='Path to YAML configuration file (defaults are used when omitted)'
    )

    parser.add_argument(
        '--config', '-c',
        type=Path,
        help='Path to YAML configuration file (alternative to positional argument)'
    )

    parser.add_argument(
        '--generations', '-g',
        type=int,
        help='Override the number of generations to run'
    )

    parser.add_argument(
        '--dry-run',
        action='store_true',
        help='Validate configuration without running the simulation'
    )

    parser.add_argument(
        '--example-config',
        action='store_true',
        help='Print an example configuration file and exit'
    )

    parser.add_argument(
        '--log-level',
        default='INFO',
        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'],
        help='Logging level (default: INFO)'
    )

    args = parser.parse_args(argv)

    if args.example_config:
        try:
            print(EXAMPLE_CONFIG_PATH.read_text())
        except FileNotFoundError:
            print("Error: Example configuration file not found.")
            sys.exit(1)
        return

    config_file = args.config or args.config_file
    if config_file is not None and not config_file.exists():
        print(f"Error: Configuration file not found: {config_file}")
        sys.exit(1)

    try:
        config = load_app_config(config_file)
    except ConfigError as e:
        print(f"Configuration error: {e}")
        sys.exit(1)

    if args.generations is not None:
        if args.generations < 0:
            parser.error("--generations cannot be negative")
        config.run.generations = args.generations

    setup_logging(args.log_level)

    exit_code = run_simulation(config, dry_run=args.dry_run)
    if exit_code:
        sys.exit(exit_code)


if __name__ == "__main__":
    main()
