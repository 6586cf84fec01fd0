"""Main CLI entry point for the sgf-proof-tree command-line tool.

Provides commands to summarize, dump, export and validate SGF proof trees.
"""

import argparse
import json
import sys
import time
from pathlib import Path
from typing import Any, Dict, List, Optional

from sgf_proof_tree import __version__
from sgf_proof_tree.api import export_csv, load, load_from_path
from sgf_proof_tree.shared import (
    ConfigError,
    ProofTreeConfig,
    SGFError,
    configure_logging,
    get_logger,
)
from sgf_proof_tree.tools.memory import measure_load
from sgf_proof_tree.tree import ProofTreeValidator, ValidationLevel

MAX_ERRORS_SHOWN = 3


class CLIConfig:
    """Configuration management for CLI operations."""

    def __init__(self) -> None:
        self.tree_config = ProofTreeConfig.default()
        self.output_format = "text"

    @classmethod
    def from_file(cls, config_path: Path) -> "CLIConfig":
        """Load CLI configuration from a JSON file.

        The file holds a ``ProofTreeConfig`` dictionary, optionally with a
        ``preset`` name and an ``output_format``. Unreadable or invalid files
        leave the defaults in place.
        """
        config = cls()
        if config_path.exists():
            try:
                with config_path.open() as f:
                    data = json.load(f)
                if not isinstance(data, dict):
                    raise ValueError("configuration must be a JSON object")
                preset = data.pop("preset", None)
                if preset == "swapped_colors":
                    config.tree_config = ProofTreeConfig.swapped_colors()
                elif preset == "diagnostic":
                    config.tree_config = ProofTreeConfig.diagnostic()
                config.output_format = data.pop("output_format", config.output_format)
                if data:
                    base = config.tree_config.to_dict()
                    for key, value in data.items():
                        if isinstance(value, dict):
                            base.setdefault(key, {}).update(value)
                        else:
                            base[key] = value
                    config.tree_config = ProofTreeConfig.from_dict(base)
            except (OSError, ValueError, ConfigError) as e:
                print(f"Warning: Could not load config file: {e}", file=sys.stderr)

        return config


class ProgressTracker:
    """Progress display for a single file load, driven by character offsets."""

    def __init__(self, description: str = "Loading") -> None:
        self.total = 0
        self.completed = 0
        self.description = description
        self.start_time = time.time()
        self.last_update = 0.0

    def __call__(self, offset: int, total: int) -> None:
        """Progress callback receiving ``(offset, total)`` from the tokenizer."""
        self.completed = offset
        self.total = total
        current_time = time.time()

        # Update every second or on completion
        if current_time - self.last_update >= 1.0 or self.completed >= self.total:
            self._display_progress()
            self.last_update = current_time

    def _display_progress(self) -> None:
        if self.total == 0:
            return

        percentage = min(100.0, (self.completed / self.total) * 100)
        elapsed = time.time() - self.start_time

        if self.completed > 0 and elapsed > 0:
            rate = self.completed / elapsed
            eta = (self.total - self.completed) / rate if rate > 0 else 0
            eta_str = f", ETA: {eta:.0f}s" if eta > 0 else ""
        else:
            eta_str = ""

        progress_bar = "=" * int(percentage // 2)
        progress_bar += " " * (50 - len(progress_bar))

        print(f"\r{self.description}: [{progress_bar}] "
              f"{percentage:.1f}% ({self.completed}/{self.total}){eta_str}",
              end="", file=sys.stderr)

        if self.completed >= self.total:
            print(file=sys.stderr)


class ProofTreeProcessor:
    """Core processing logic for CLI operations."""

    def __init__(self, config: CLIConfig) -> None:
        self.config = config
        self.logger = get_logger(__name__, None, "cli_processor")

    def process_file(
        self,
        file_path: Path,
        progress: bool = False,
        memory: bool = False,
    ) -> Dict[str, Any]:
        """Load one file and summarize it as a dictionary."""
        tree_config = self.config.tree_config
        if memory:
            try:
                tree, report = measure_load(file_path, tree_config)
            except (OSError, SGFError, MemoryError) as e:
                return {"file": str(file_path), "success": False, "error": str(e)}
            return {
                "file": str(file_path),
                "success": True,
                "summary": tree.summary(),
                "memory": report.to_dict(),
            }

        callback = ProgressTracker(f"Loading {file_path.name}") if progress else None
        result = load(file_path, tree_config, progress_callback=callback)
        output: Dict[str, Any] = {
            "file": str(file_path),
            "success": result.success,
            "processing_time_ms": result.performance.processing_time_ms,
        }
        if result.success and result.tree is not None:
            output["summary"] = result.tree.summary()
        else:
            output["error"] = result.error_message
            self.logger.info(
                "Failed to load file",
                extra={"file": str(file_path), "error": result.error_message},
            )
        output["diagnostics"] = [diag.to_dict() for diag in result.diagnostics]
        return output

    def validate_file(self, file_path: Path, strict: bool = False) -> Dict[str, Any]:
        """Load and validate one file."""
        result = load(file_path, self.config.tree_config)
        if not result.success or result.tree is None:
            return {
                "file": str(file_path),
                "valid": False,
                "error": result.error_message,
            }

        level = ValidationLevel.STRICT if strict else ValidationLevel.STANDARD
        validation = ProofTreeValidator(level).validate(result.tree)
        output = {
            "file": str(file_path),
            "valid": validation.success,
            "errors": validation.error_count,
            "warnings": validation.warning_count,
        }
        if validation.issues:
            output["error_details"] = [issue.message for issue in validation.issues]
        return output


def create_argument_parser() -> argparse.ArgumentParser:
    """Create the main argument parser."""
    parser = argparse.ArgumentParser(
        prog="sgf-proof-tree",
        description="Load SGF proof trees and report proof-tree sizes",
    )

    parser.add_argument("--version", action="version", version=__version__)

    # Global options
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Verbose output"
    )
    parser.add_argument(
        "--quiet", "-q",
        action="store_true",
        help="Quiet output"
    )
    parser.add_argument(
        "--config", "-c",
        type=Path,
        help="Configuration file path"
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # Stats command
    stats_parser = subparsers.add_parser("stats", help="Summarize proof trees")
    stats_parser.add_argument(
        "paths",
        nargs="+",
        type=Path,
        help="SGF files to load"
    )
    stats_parser.add_argument(
        "--format", "-f",
        choices=["json", "text"],
        help="Output format (default: text)"
    )
    stats_parser.add_argument(
        "--detailed",
        action="store_true",
        help="Show source excerpts for parse errors"
    )
    stats_parser.add_argument(
        "--progress",
        action="store_true",
        help="Show loading progress"
    )
    stats_parser.add_argument(
        "--memory",
        action="store_true",
        help="Report process memory used by each load"
    )

    # Dump command
    dump_parser = subparsers.add_parser("dump", help="Print a tree with node metadata")
    dump_parser.add_argument("path", type=Path, help="SGF file to load")
    dump_parser.add_argument(
        "--output", "-o",
        type=Path,
        help="Output file (default: stdout)"
    )

    # Export command
    export_parser = subparsers.add_parser("export", help="Export per-node table as CSV")
    export_parser.add_argument("path", type=Path, help="SGF file to load")
    export_parser.add_argument(
        "--output", "-o",
        type=Path,
        required=True,
        help="CSV output file"
    )

    # Validate command
    validate_parser = subparsers.add_parser("validate", help="Validate proof trees")
    validate_parser.add_argument(
        "paths",
        nargs="+",
        type=Path,
        help="SGF files to validate"
    )
    validate_parser.add_argument(
        "--strict",
        action="store_true",
        help="Treat proof inconsistencies as errors"
    )
    validate_parser.add_argument(
        "--format", "-f",
        choices=["json", "text"],
        help="Output format (default: text)"
    )

    return parser


def format_results(results: List[Dict[str, Any]], format_type: str) -> str:
    """Format stats results for output."""
    if format_type == "json":
        return json.dumps(results, indent=2)

    if not results:
        return "No results to display."

    lines = []
    successful = sum(1 for r in results if r.get("success", False))
    lines.append(f"Loaded {len(results)} files, {successful} successful")
    lines.append("-" * 60)

    for result in results:
        status = "✓" if result.get("success", False) else "✗"
        lines.append(f"{status} {result['file']}")
        summary = result.get("summary")
        if summary:
            lines.append(
                f"   Root: {summary['root_type']}, solved: {summary['solved']}, "
                f"tree size: {summary['tree_size']}, "
                f"proof tree size: {summary['proof_tree_size']}"
            )
        memory = result.get("memory")
        if memory:
            lines.append(
                f"   Memory: {memory['resident_delta_mb']:.1f} MB, "
                f"{memory['bytes_per_node']:.0f} bytes/node"
            )
        if "error" in result:
            lines.append(f"   Error: {result['error']}")
        lines.append("")

    return "\n".join(lines)


def _load_config(args: argparse.Namespace) -> CLIConfig:
    if args.config:
        return CLIConfig.from_file(args.config)
    return CLIConfig()


def cmd_stats(args: argparse.Namespace, config: CLIConfig) -> int:
    """Handle stats command."""
    if args.detailed:
        config.tree_config = config.tree_config.override(errors__detailed=True)
    output_format = args.format or config.output_format

    processor = ProofTreeProcessor(config)
    results = [
        processor.process_file(path, progress=args.progress, memory=args.memory)
        for path in args.paths
    ]
    print(format_results(results, output_format))

    successful = sum(1 for r in results if r.get("success", False))
    return 0 if results and successful == len(results) else 1


def cmd_dump(args: argparse.Namespace, config: CLIConfig) -> int:
    """Handle dump command."""
    try:
        tree = load_from_path(args.path, config.tree_config)
    except (OSError, SGFError, MemoryError) as e:
        print(f"Failed to load {args.path}: {e}", file=sys.stderr)
        return 1

    sgf = tree.to_sgf()
    if args.output:
        try:
            args.output.write_text(sgf)
        except OSError as e:
            print(f"Error writing output: {e}", file=sys.stderr)
            return 1
        print(f"Tree written to {args.output}", file=sys.stderr)
    else:
        print(sgf)
    return 0


def cmd_export(args: argparse.Namespace, config: CLIConfig) -> int:
    """Handle export command."""
    try:
        tree = load_from_path(args.path, config.tree_config)
    except (OSError, SGFError, MemoryError) as e:
        print(f"Failed to load {args.path}: {e}", file=sys.stderr)
        return 1

    try:
        rows = export_csv(tree, args.output)
    except OSError as e:
        print(f"Error writing output: {e}", file=sys.stderr)
        return 1
    print(f"Wrote {rows} rows to {args.output}", file=sys.stderr)
    return 0


def cmd_validate(args: argparse.Namespace, config: CLIConfig) -> int:
    """Handle validate command."""
    processor = ProofTreeProcessor(config)
    results = [processor.validate_file(path, strict=args.strict) for path in args.paths]

    output_format = args.format or config.output_format
    if output_format == "json":
        print(json.dumps(results, indent=2))
    else:
        valid_count = sum(1 for r in results if r.get("valid", False))
        print(f"Validated {len(results)} files, {valid_count} valid")
        print("-" * 50)

        for result in results:
            status = "✓" if result.get("valid", False) else "✗"
            print(f"{status} {result['file']}")
            if "error" in result:
                print(f"   Error: {result['error']}")
            for detail in result.get("error_details", [])[:MAX_ERRORS_SHOWN]:
                print(f"   Issue: {detail}")

    valid_count = sum(1 for r in results if r.get("valid", False))
    return 0 if valid_count == len(results) else 1


def main(argv: Optional[List[str]] = None) -> int:
    """Main CLI entry point."""
    parser = create_argument_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    config = _load_config(args)

    # Set up logging verbosity
    if args.verbose:
        configure_logging("DEBUG")
    elif args.quiet:
        configure_logging("ERROR")
    else:
        configure_logging(config.tree_config.global_.logging_level)

    # Route to appropriate command handler
    try:
        if args.command == "stats":
            return cmd_stats(args, config)
        if args.command == "dump":
            return cmd_dump(args, config)
        if args.command == "export":
            return cmd_export(args, config)
        if args.command == "validate":
            return cmd_validate(args, config)
        print(f"Unknown command: {args.command}", file=sys.stderr)
        return 1

    except KeyboardInterrupt:
        print("\nOperation interrupted by user", file=sys.stderr)
        return 130  # Standard exit code for SIGINT


if __name__ == "__main__":
    sys.exit(main())
