#!/usr/bin/env python3
"""
LabelMe Crop & Remap Dataset Generator - Main Entry Point

Builds a dataset of crops around one parent class from a LabelMe-annotated
image directory, or renders annotated previews of a dataset.

Usage:
    python main.py crop --source S --output O --parent person --children helmet,vest
    python main.py preview --source S --temp T --count N [--seed K]

Features:
    - Padded parent crops, clipped at image edges
    - OR filter on required child labels
    - Annotation remapping into crop space (LabelMe output)
    - Optional recursive scanning and parallel workers
    - YAML configuration with command-line overrides

Exit codes:
    0   success
    1   fatal error (bad configuration, unreadable source, ...)
    2   completed, but some files failed
    130 interrupted
"""

import sys
import argparse
from pathlib import Path
from typing import Optional, Sequence

from labelcrop import __version__
from labelcrop.core import (
    CropConfig,
    load_config,
    setup_logger,
    LoggerMixin,
    CropRemapError,
    DEFAULT_CONFIG_PATH,
)
from labelcrop.pipeline import crop_and_remap_from_config
from labelcrop.visualization import generate_annotated_previews

EXIT_SUCCESS = 0
EXIT_FATAL = 1
EXIT_PARTIAL = 2
EXIT_INTERRUPTED = 130


class CropRemapRunner(LoggerMixin):
    """
    Command-line orchestrator.

    Merges the optional YAML configuration with command-line flags and
    runs the crop or preview command.
    """

    def __init__(self, args: argparse.Namespace):
        """
        Initialize the runner.

        Args:
            args: Parsed command-line arguments
        """
        self.args = args
        self.verbose = args.verbose

        # Setup logging
        log_level = "DEBUG" if self.verbose else "INFO"
        setup_logger(level=log_level, log_file=args.log_file, console=True)

        self.config: Optional[CropConfig] = None

    def build_config(self) -> CropConfig:
        """
        Load the YAML configuration (if given) and apply flag overrides.

        Returns:
            Merged configuration
        """
        args = self.args
        config = load_config(args.config) if args.config else CropConfig()

        if args.command == 'crop':
            return config.override(
                source_dir=args.source,
                output_dir=args.output,
                parent_label=args.parent,
                required_child_labels=args.children,
                padding_factor=args.padding,
                max_workers=args.workers,
                include_parent=False if args.exclude_parent else None,
                retain_only_required=True if args.retain_only_required else None,
                recursive=True if args.recursive else None
            )

        return config.override(
            source_dir=args.source,
            temp_dir=args.temp,
            num_previews=args.count,
            seed=args.seed
        )

    def run_crop(self) -> int:
        """Run crop-and-remap and report the summary."""
        config = self.config
        self.logger.info(f"Source: {config.source_dir}")
        self.logger.info(f"Output: {config.output_dir}")
        self.logger.info(f"Parent label: {config.parent_label}")
        self.logger.info(f"Required child labels: {', '.join(config.required_child_labels) or '(any)'}")
        self.logger.info(f"Padding factor: {float(config.padding_factor):.2f}")
        self.logger.info(f"Workers: {config.performance.max_workers}")

        summary = crop_and_remap_from_config(config, show_progress=not self.args.no_progress)

        self.logger.info("=" * 70)
        self.logger.info("FINAL SUMMARY")
        self.logger.info("=" * 70)
        self.logger.info(f"Images scanned: {summary.images_scanned}")
        self.logger.info(f"Images with '{summary.parent_label}': {summary.images_with_parents}")
        self.logger.info(f"Instances found: {summary.instances_found}")
        self.logger.info(f"  - processed: {summary.instances_processed}")
        self.logger.info(f"  - rejected by child filter: {summary.instances_rejected}")
        self.logger.info(f"Files written: {summary.files_written}")
        self.logger.info(f"Shapes remapped: {summary.shapes_remapped} ({summary.shapes_dropped} dropped)")
        self.logger.info(f"Skipped (no annotation): {len(summary.skipped)}")
        self.logger.info(f"Output directory: {Path(config.output_dir).absolute()}")

        if summary.errors:
            self.logger.warning(f"Encountered errors in {len(summary.errors)} files:")
            for error in summary.errors:
                self.logger.warning(f"  - {error}")
            return EXIT_PARTIAL

        return EXIT_SUCCESS

    def run_preview(self) -> int:
        """Render annotated previews and list the written files."""
        config = self.config
        result = generate_annotated_previews(
            config.source_dir,
            config.preview.num_previews,
            config.preview.temp_dir,
            seed=config.preview.seed
        )

        self.logger.info(f"Previews: {result['preview_count']} of {result['total_annotated']} annotated images")
        for preview in result['previews']:
            self.logger.info(f"  - {preview['path']} <- {preview['source_path']} "
                             f"({len(preview['annotations'])} shapes)")
        return EXIT_SUCCESS

    def run(self) -> int:
        """
        Run the selected command.

        Returns:
            Exit code (0 for success, non-zero for failure)
        """
        try:
            self.logger.info(f"Starting LabelMe Crop & Remap ({self.args.command})")
            self.logger.info("=" * 70)

            self.config = self.build_config()

            if self.args.command == 'crop':
                exit_code = self.run_crop()
            else:
                exit_code = self.run_preview()

            self.logger.info("=" * 70)
            if exit_code == EXIT_SUCCESS:
                self.logger.info("[SUCCESS] Completed successfully!")
            else:
                self.logger.warning("[PARTIAL] Completed with per-file errors")
            return exit_code

        except KeyboardInterrupt:
            self.logger.warning("=" * 70)
            self.logger.warning("Process interrupted by user (Ctrl+C)")
            self.logger.warning("Outputs written so far are complete; re-running overwrites them")
            self.logger.warning("=" * 70)
            return EXIT_INTERRUPTED
        except CropRemapError as e:
            self.logger.error(f"Error: {e}")
            return EXIT_FATAL
        except Exception as e:
            self.logger.error(f"Fatal error: {e}", exc_info=True)
            return EXIT_FATAL


def parse_arguments(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    """
    Parse command-line arguments.

    Args:
        argv: Argument list (defaults to sys.argv[1:])

    Returns:
        Parsed arguments
    """
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument(
        '--config', '-c',
        type=Path,
        default=None,
        help=f"Path to configuration file (e.g. {DEFAULT_CONFIG_PATH}); flags override its values"
    )
    common.add_argument(
        '--verbose', '-v',
        action='store_true',
        help="Enable verbose (DEBUG level) logging"
    )
    common.add_argument(
        '--log-file',
        type=Path,
        default=None,
        help="Also write the log to this file"
    )

    parser = argparse.ArgumentParser(
        description="LabelMe Crop & Remap Dataset Generator",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Crop every person that wears a helmet or a vest
  python main.py crop --source data/site --output data/persons --parent person --children helmet,vest

  # Use a configuration file, override the padding
  python main.py crop --config configs/crop_config.yaml --padding 1.5

  # Render 5 annotated previews
  python main.py preview --source data/site --temp previews --count 5
        """
    )
    parser.add_argument(
        '--version',
        action='version',
        version=f'LabelMe Crop & Remap v{__version__}'
    )

    subparsers = parser.add_subparsers(dest='command', required=True)

    crop = subparsers.add_parser('crop', parents=[common], help="Crop parent instances and remap annotations")
    crop.add_argument('--source', '-s', default=None, help="Source dataset directory")
    crop.add_argument('--output', '-o', default=None, help="Output directory for the cropped dataset")
    crop.add_argument('--parent', '-p', default=None, help="Parent label used as crop anchor")
    crop.add_argument('--children', default=None,
                      help="Comma-separated child labels; a parent needs at least one of them")
    crop.add_argument('--padding', type=float, default=None,
                      help="Padding factor for the parent box (1.2 = 20%% larger)")
    crop.add_argument('--workers', type=int, default=None, help="Number of parallel workers")
    crop.add_argument('--exclude-parent', action='store_true',
                      help="Do not write the parent shape into the cropped annotations")
    crop.add_argument('--retain-only-required', action='store_true',
                      help="Keep only children whose label is in --children")
    crop.add_argument('--recursive', action='store_true', help="Scan subdirectories too")
    crop.add_argument('--no-progress', action='store_true', help="Hide the progress bar")

    preview = subparsers.add_parser('preview', parents=[common], help="Render annotated previews")
    preview.add_argument('--source', '-s', default=None, help="Source dataset directory")
    preview.add_argument('--temp', '-t', default=None, help="Directory for the preview images")
    preview.add_argument('--count', '-n', type=int, default=None, help="Number of previews")
    preview.add_argument('--seed', type=int, default=None, help="Random seed for the sample")

    return parser.parse_args(argv)


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Main entry point."""
    args = parse_arguments(argv)
    runner = CropRemapRunner(args)
    return runner.run()


if __name__ == "__main__":
    sys.exit(main())
