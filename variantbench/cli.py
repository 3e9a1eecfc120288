"""Command-line interface for variantbench."""

import argparse
import datetime
import logging
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

from .config import load_config
from .models import RunConfig, ToolArgs
from .pipeline import build_pipeline_stages, run_pipeline
from .pipeline_core import PipelineRunner
from .pipeline_core.error_handling import ConfigurationError, PipelineError
from .utils import str_to_bool
from .version import __version__

logger = logging.getLogger("variantbench")

LOG_LEVEL_MAP = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARN": logging.WARNING,
    "ERROR": logging.ERROR,
}


def create_parser() -> argparse.ArgumentParser:
    """Create and return the argument parser for the variantbench CLI."""
    parser = argparse.ArgumentParser(
        description="variantbench: run the PacBio DeepVariant case study and score it with hap.py."
    )

    # Positional settings, all optional
    positional_group = parser.add_argument_group("Run Settings")
    positional_group.add_argument(
        "build_docker",
        nargs="?",
        default="false",
        help="Build the DeepVariant image from the local Dockerfile instead of pulling "
        "the pinned release (true/false, default: false)",
    )
    positional_group.add_argument(
        "customized_model",
        nargs="?",
        default="",
        help="gs:// prefix of a customized model checkpoint (default: released model)",
    )
    positional_group.add_argument(
        "make_examples_args",
        nargs="?",
        default="",
        help="Extra make_examples arguments, appended to the PacBio defaults",
    )
    positional_group.add_argument(
        "call_variants_args",
        nargs="?",
        default="",
        help="Extra call_variants arguments",
    )
    positional_group.add_argument(
        "postprocess_variants_args",
        nargs="?",
        default="",
        help="Extra postprocess_variants arguments",
    )
    positional_group.add_argument(
        "regions",
        nargs="?",
        default="",
        help="Restrict calling and evaluation to these regions",
    )

    # General Options
    general_group = parser.add_argument_group("General Options")
    general_group.add_argument(
        "--version",
        action="version",
        version=f"variantbench {__version__}",
        help="Show the current version and exit",
    )
    general_group.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARN", "ERROR"],
        default="INFO",
        help="Set the logging level",
    )
    general_group.add_argument(
        "--log-file", help="Path to a file to write logs to (in addition to stderr)."
    )
    general_group.add_argument(
        "-c",
        "--config",
        help="Path to a JSON configuration file overriding the packaged defaults",
        default=None,
    )

    # Run layout
    run_group = parser.add_argument_group("Run Layout")
    run_group.add_argument(
        "--base-dir",
        help="Root directory for inputs, outputs and logs (default: from config, "
        "~/pacbio-case-study)",
    )
    run_group.add_argument(
        "--num-shards",
        type=int,
        help="Number of make_examples shards (default: from config, 64)",
    )
    run_group.add_argument(
        "--no-sudo",
        action="store_true",
        help="Run docker and apt-get without sudo",
    )
    run_group.add_argument(
        "--no-summary",
        action="store_true",
        help="Do not summarize hap.py metrics",
    )
    run_group.add_argument(
        "--no-report",
        action="store_true",
        help="Do not write the HTML run report",
    )
    run_group.add_argument(
        "--dry-run",
        action="store_true",
        help="Print the stage execution order and exit",
    )
    return parser


def parse_args(args_list: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command line arguments.

    Parameters
    ----------
    args_list : list, optional
        List of arguments to parse. If None, uses sys.argv

    Returns
    -------
    argparse.Namespace
        Parsed arguments
    """
    parser = create_parser()
    return parser.parse_args(args_list)


def tool_args_from(args: argparse.Namespace) -> ToolArgs:
    """Collect the optional caller settings from parsed arguments."""
    return ToolArgs(
        customized_model=args.customized_model or "",
        make_examples_args=args.make_examples_args or "",
        call_variants_args=args.call_variants_args or "",
        postprocess_variants_args=args.postprocess_variants_args or "",
        regions=args.regions or "",
    )


def run_config_from(args: argparse.Namespace, cfg: Dict[str, Any]) -> RunConfig:
    """Build the validated RunConfig from parsed arguments and loaded configuration."""
    try:
        build_locally = str_to_bool(args.build_docker)
    except ValueError as e:
        raise ConfigurationError(str(e), "build_docker") from e

    if args.no_sudo:
        cfg = dict(cfg, use_sudo=False)

    return RunConfig.from_config(
        cfg,
        base_dir=args.base_dir,
        build_image_locally=build_locally,
        num_shards=args.num_shards,
    )


def configure_logging(log_level: str, log_file: Optional[str] = None) -> None:
    """Set the package log level and optionally add a log file handler."""
    logging.getLogger("variantbench").setLevel(LOG_LEVEL_MAP[log_level])

    if log_file:
        log_file_path = Path(log_file)
        log_file_path.parent.mkdir(parents=True, exist_ok=True)

        fh = logging.FileHandler(log_file)
        fh.setLevel(LOG_LEVEL_MAP[log_level])
        fh.setFormatter(
            logging.Formatter(
                "%(asctime)s [%(levelname)s] %(message)s", datefmt="%Y-%m-%d %H:%M:%S"
            )
        )
        logger.addHandler(fh)
        logger.debug(f"Logging to file enabled: {log_file}")


def main(argv: Optional[List[str]] = None) -> int:
    """Run main entry point for the variantbench CLI.

    Steps:
        1. Parse arguments.
        2. Configure logging and load config.
        3. Build and validate the run configuration.
        4. Run the pipeline, stopping at the first failing stage.

    Returns
    -------
    int
        0 on success, 1 on any failure
    """
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(levelname)s] %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        stream=sys.stderr,
    )

    args = parse_args(argv)
    configure_logging(args.log_level, args.log_file)

    start_time = datetime.datetime.now()
    logger.info(f"Run started at {start_time.isoformat()}")
    logger.debug(f"CLI arguments: {args}")

    try:
        cfg = load_config(args.config)
        logger.debug(f"Configuration loaded: {cfg}")
        run_config = run_config_from(args, cfg)
    except (FileNotFoundError, ValueError, ConfigurationError) as e:
        logger.error(f"Invalid configuration: {e}")
        return 1

    tool_args = tool_args_from(args)
    summarize = not args.no_summary
    report = not args.no_report

    if args.dry_run:
        stages = build_pipeline_stages(tool_args, summarize=summarize, report=report)
        for position, stage_name in enumerate(PipelineRunner().dry_run(stages), start=1):
            print(f"{position}. {stage_name}")
        return 0

    try:
        run_pipeline(run_config, tool_args, summarize=summarize, report=report)
    except PipelineError as e:
        stage = f" in stage '{e.stage}'" if e.stage else ""
        logger.error(f"Benchmark failed{stage}: {e}")
        return 1
    except Exception as e:
        logger.error(f"Benchmark failed: {e}")
        return 1

    elapsed = datetime.datetime.now() - start_time
    logger.info(f"Run finished in {elapsed}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
