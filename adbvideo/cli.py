"""Command-line interface for reporter configuration."""

import argparse
import sys
from pathlib import Path
from typing import List, Optional

from .config_loader import ConfigurationError, create_example_config, load_config


def create_parser() -> argparse.ArgumentParser:
    """Create the command-line argument parser."""
    parser = argparse.ArgumentParser(
        prog="adbvideo",
        description="Manage configuration for the adb video reporter",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Write an example configuration file
  python -m adbvideo.cli init-config adbvideo.yml

  # Show the effective configuration, environment overrides included
  python -m adbvideo.cli show-config --config adbvideo.yml
        """
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    init_parser = subparsers.add_parser("init-config", help="Write an example configuration file")
    init_parser.add_argument(
        "path",
        nargs="?",
        type=Path,
        default=Path("adbvideo.yml.example"),
        help="Destination file (default: adbvideo.yml.example)"
    )
    init_parser.add_argument(
        "--force",
        action="store_true",
        help="Overwrite an existing file"
    )

    show_parser = subparsers.add_parser("show-config", help="Print the effective configuration as JSON")
    show_parser.add_argument(
        "--config",
        type=Path,
        help="Configuration file (default: adbvideo.yml)"
    )

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the CLI."""
    parser = create_parser()
    args = parser.parse_args(argv)

    if args.command == "init-config":
        if args.path.exists() and not args.force:
            print(f"Error: {args.path} already exists (use --force to overwrite)", file=sys.stderr)
            return 1
        create_example_config(args.path)
        print(f"Wrote example configuration to {args.path}")
        return 0

    try:
        config = load_config(args.config)
    except ConfigurationError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    print(config.model_dump_json(indent=2))
    return 0


if __name__ == '__main__':
    sys.exit(main())
