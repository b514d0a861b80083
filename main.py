"""
pltxt2htm - convert Physics-Lab pl-text to HTML.

Reads pl-text from a file or stdin and writes HTML (or the AST as JSON) to a
file or stdout.
"""

from __future__ import annotations

import argparse
import json
import logging
import os
import sys
from typing import List, Optional

from internal.config.manager import ConfigManager
from lib.logging_utils import initLogging
from lib.pltext import BackendText, InvalidUtf8Error, PlTextParser, __version__

# Configure basic logging first
logging.basicConfig(format="%(asctime)s - %(name)s - %(levelname)s - %(message)s", level=logging.WARNING)
logger = logging.getLogger(__name__)


class Pltxt2htmApp:
    """Wires configuration, logging and the parser together."""

    def __init__(
        self,
        configPath: Optional[str] = None,
        configDirs: Optional[List[str]] = None,
        host: Optional[str] = None,
        backend: Optional[str] = None,
    ):
        """Initialize the converter, command-line values override the config file."""
        self.configManager = ConfigManager(configPath, configDirs)

        initLogging(self.configManager.getLoggingConfig())

        options = self.configManager.getPlTextOptions()
        if host is not None:
            options["host"] = host
        if backend is not None:
            options["backend"] = BackendText.fromValue(backend)
        self.parser = PlTextParser(options)

    def convert(self, data: bytes, dumpAst: bool = False) -> str:
        """
        Convert pl-text bytes.

        Raises:
            InvalidUtf8Error: If the input is not UTF-8
        """
        if dumpAst:
            return json.dumps(self.parser.getAstJson(data), indent=2, ensure_ascii=False)
        return self.parser.parseToHtml(data)


def parse_arguments(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        prog="pltxt2htm",
        description="Convert Physics-Lab pl-text to HTML",
    )
    parser.add_argument("-i", "--input", help="Input pl-text file (default: stdin)")
    parser.add_argument("-o", "--output", help="Output file (default: stdout)")
    parser.add_argument("-c", "--config", help="Path to configuration file")
    parser.add_argument(
        "--config-dir",
        action="append",
        help="Directory to search for .toml config files recursively (can be specified multiple times)",
    )
    parser.add_argument("--host", help="Host used for experiment and discussion links")
    parser.add_argument(
        "--backend",
        choices=[backend.value for backend in BackendText],
        help="HTML flavour (default: advanced)",
    )
    parser.add_argument("--ast", action="store_true", help="Print the parsed AST as JSON instead of HTML")
    parser.add_argument(
        "--print-config",
        action="store_true",
        help="Pretty-print loaded configuration and exit",
    )
    parser.add_argument("-v", "--version", action="version", version=f"pltxt2htm v{__version__}")
    args = parser.parse_args(argv)

    if args.config is not None:
        args.config = os.path.abspath(args.config)
    if args.config_dir:
        args.config_dir = [os.path.abspath(dirPath) for dirPath in args.config_dir]

    return args


def prettyPrintConfig(configManager: ConfigManager) -> None:
    """Pretty-print the loaded configuration."""
    print(json.dumps(configManager.config, indent=2, ensure_ascii=False, sort_keys=True))


def readInput(inputPath: Optional[str]) -> bytes:
    if inputPath is None:
        return sys.stdin.buffer.read()
    with open(inputPath, "rb") as f:
        return f.read()


def writeOutput(outputPath: Optional[str], text: str) -> None:
    if outputPath is None:
        sys.stdout.write(text + "\n")
        sys.stdout.flush()
        return
    with open(outputPath, "w", encoding="utf-8") as f:
        f.write(text + "\n")


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point, returns the process exit code."""
    args = parse_arguments(argv)

    if args.print_config:
        prettyPrintConfig(ConfigManager(args.config, args.config_dir))
        return 0

    app = Pltxt2htmApp(
        configPath=args.config,
        configDirs=args.config_dir,
        host=args.host,
        backend=args.backend,
    )

    try:
        data = readInput(args.input)
    except OSError as e:
        logger.error(f"Cannot read input {args.input}: {e}")
        return 1

    try:
        result = app.convert(data, dumpAst=args.ast)
    except InvalidUtf8Error as e:
        logger.error(f"Cannot convert {args.input or '<stdin>'}: {e}")
        return 1

    try:
        writeOutput(args.output, result)
    except OSError as e:
        logger.error(f"Cannot write output {args.output}: {e}")
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
