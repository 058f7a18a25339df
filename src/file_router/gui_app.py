"""
File Router - GUI Application Entry Point

Entry point for the file-router-gui script. Accepts an optional settings
file so several folder pairs can be kept side by side.
"""

import argparse
import sys
from pathlib import Path

from . import PRODUCT_NAME, __version__


def main(argv: list = None) -> int:
    """
    Launch the GUI.

    Args:
        argv: Command-line arguments (defaults to sys.argv[1:])

    Returns:
        int: Exit code (0 for success)
    """
    parser = argparse.ArgumentParser(prog="file-router-gui", description=f"{PRODUCT_NAME} (window)")
    parser.add_argument(
        "-c", "--config",
        type=Path,
        default=None,
        metavar="JSON_FILE",
        help="Settings file to load and update (default: ./appsettings.json)"
    )
    parser.add_argument("--version", action="version", version=__version__)
    args = parser.parse_args(argv)

    # Deferred so --help and --version work without a display
    from .gui import main as gui_main
    gui_main(args.config)

    return 0


if __name__ == "__main__":
    sys.exit(main())
