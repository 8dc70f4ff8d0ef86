"""
Command Line Interface Module

Parses the command line, selects the run mode once, acquires the password
and drives the file transform pipeline over the discovered file set.
"""

import argparse
import logging
import os
import traceback
from typing import List, Optional

from . import __version__
from .config import Config, create_default_config, load_config
from .discovery import list_candidates, self_paths
from .errors import ConfigError, DirsealError
from .password import get_password
from .pipeline import FileResult, Mode, Pipeline
from .utils import (
    create_progress, format_duration, format_file_size, log_file_paths, print_error,
    print_success, print_warning, setup_logging
)

logger = logging.getLogger(__name__)


class CLIError(Exception):
    """Raised when CLI operations fail."""
    pass


class DirsealCLI:
    """Main CLI application class."""

    def __init__(self):
        self.config: Optional[Config] = None
        self.verbose = False
        self.use_rich = True

    def run(self, args: Optional[List[str]] = None) -> int:
        """
        Run the CLI application.

        Args:
            args: Command line arguments (default: sys.argv)

        Returns:
            Exit code
        """
        parser = self._create_parser()
        parsed_args = parser.parse_args(args)
        self.use_rich = not parsed_args.no_rich

        try:
            if parsed_args.init_config:
                create_default_config(parsed_args.init_config)
                print_success(f"Configuration written to {parsed_args.init_config}", self.use_rich)
                return 0

            if parsed_args.encrypt == parsed_args.decrypt:
                parser.error("Please specify either -e for encryption or -d for decryption")

            self._load_configuration(parsed_args)
            mode = Mode.ENCRYPT if parsed_args.encrypt else Mode.DECRYPT
            return self._run_mode(mode, parsed_args)

        except KeyboardInterrupt:
            print_error("Operation cancelled by user", self.use_rich)
            return 1
        except (CLIError, DirsealError) as e:
            print_error(str(e), self.use_rich)
            return 1
        except Exception as e:
            if self.verbose:
                traceback.print_exc()
            else:
                print_error(f"Unexpected error: {e}", self.use_rich)
            return 1

    def _create_parser(self) -> argparse.ArgumentParser:
        """Create the argument parser."""
        parser = argparse.ArgumentParser(
            prog='dirseal',
            description=(
                'Encrypt every file under a directory in place with a password, '
                'or decrypt the files carrying the marker extension.'
            ),
            formatter_class=argparse.RawDescriptionHelpFormatter
        )

        mode_group = parser.add_mutually_exclusive_group()
        mode_group.add_argument('-e', '--encrypt', action='store_true', help='Encrypt files')
        mode_group.add_argument('-d', '--decrypt', action='store_true', help='Decrypt files')

        parser.add_argument('root', nargs='?', default='.', help='Directory to process (default: current)')
        parser.add_argument('--password-file', help='Read the password from this file')
        parser.add_argument('--config', help='Configuration file path')
        parser.add_argument('--init-config', metavar='FILE', help='Write a default configuration file and exit')
        parser.add_argument('--marker', help='Marker extension for encrypted files (default: .enc)')
        parser.add_argument('--shred', action='store_true', help='Overwrite consumed files before deleting them')
        parser.add_argument('--shred-passes', type=int, help='Overwrite passes for --shred')
        parser.add_argument('--overwrite', action='store_true', help='Replace existing output files')
        parser.add_argument('--dry-run', action='store_true', help='Show what would be done without changing files')
        parser.add_argument('--log-file', help='Also write a debug log to this file')
        parser.add_argument('-v', '--verbose', action='store_true', help='Enable verbose output')
        parser.add_argument('--no-rich', action='store_true', help='Disable rich formatting')
        parser.add_argument('--version', action='version', version=f'%(prog)s {__version__}')

        return parser

    def _load_configuration(self, args: argparse.Namespace) -> None:
        """Load configuration and layer the command line flags on top."""
        config = load_config(args.config)

        if args.marker:
            config.set('files.marker_extension', args.marker)
        if args.overwrite:
            config.set('files.overwrite', True)
        if args.shred:
            config.set('security.secure_delete.enabled', True)
        if args.shred_passes is not None:
            config.set('security.secure_delete.passes', args.shred_passes)
        if args.verbose:
            config.set('output.verbose', True)
        if args.log_file:
            config.set('output.log_file', args.log_file)
        if args.no_rich:
            config.set('output.color_output', False)

        try:
            config.validate()
        except ConfigError as e:
            raise CLIError(f"Invalid settings: {e}") from e

        self.config = config
        self.verbose = config.get('output.verbose', False)
        self.use_rich = bool(config.get('output.color_output', True))

        level = 'DEBUG' if self.verbose else config.get('output.log_level', 'INFO')
        setup_logging(level, config.get('output.log_file'), self.use_rich)

    def _excluded_paths(self, args: argparse.Namespace) -> set:
        """Files the run must never touch: the program itself and its own inputs/outputs."""
        excluded = set(self_paths())
        paths = [self.config.config_file, args.password_file]
        log_file = self.config.get('output.log_file')
        if log_file:
            paths.extend(log_file_paths(log_file))
        for path in paths:
            if path:
                excluded.add(os.path.realpath(path))
        return excluded

    def _run_mode(self, mode: Mode, args: argparse.Namespace) -> int:
        if not os.path.isdir(args.root):
            raise CLIError(f"Not a directory: {args.root}")

        marker = self.config.get('files.marker_extension')
        excluded = self._excluded_paths(args)
        candidates = list_candidates(args.root, mode, marker, excluded)

        if not candidates:
            print_warning(f"No files found to {mode.value}", self.use_rich)
            return 0

        logger.info("Found %d files to %s", len(candidates), mode.value)

        pipeline = Pipeline(
            mode,
            marker_extension=marker,
            secure_delete=self.config.get('security.secure_delete.enabled', False),
            shred_passes=self.config.get('security.secure_delete.passes', 1),
            overwrite=self.config.get('files.overwrite', False),
            dry_run=args.dry_run,
            exclude_paths=excluded
        )

        if args.dry_run:
            pipeline.process(candidates, None)
        else:
            with get_password(confirm=mode is Mode.ENCRYPT, password_file=args.password_file) as password:
                self._process_with_progress(pipeline, candidates, password)

        return self._report(pipeline)

    def _process_with_progress(self, pipeline: Pipeline, candidates: List[str], password) -> None:
        if not (self.use_rich and self.config.get('output.progress_bars', True)):
            pipeline.process(candidates, password)
            return

        with create_progress() as progress:
            task_id = progress.add_task(pipeline.mode.value.capitalize() + "ing", total=len(candidates))

            def callback(completed: int, total: int, result: FileResult) -> None:
                progress.update(task_id, completed=completed)

            pipeline.progress_callback = callback
            pipeline.process(candidates, password)

    def _report(self, pipeline: Pipeline) -> int:
        summary = pipeline.get_summary()
        verb = pipeline.mode.past_tense

        message = f"{summary['successful']}/{summary['processed']} files {verb}"
        if pipeline.dry_run:
            message = "Dry run: " + message.replace(verb, f"would be {verb}")
        if summary['skipped']:
            message += f", {summary['skipped']} skipped"
        if self.verbose:
            message += (
                f" in {format_duration(summary['total_time'])}"
                f" ({format_file_size(summary['total_input_size'])} in,"
                f" {format_file_size(summary['total_output_size'])} out)"
            )

        if summary['failed']:
            failed = ", ".join(r.source_path for r in pipeline.get_failed_results())
            print_warning(f"{message}; {summary['failed']} failed: {failed}", self.use_rich)
            return 1

        print_success(message, self.use_rich)
        return 0


def main(args: Optional[List[str]] = None) -> int:
    """Main entry point."""
    cli = DirsealCLI()
    return cli.run(args)


if __name__ == '__main__':
    raise SystemExit(main())
