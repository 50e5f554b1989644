import argparse
import os
import sys
import warnings

import colorama

from .engine import PackError, TempCleanupWarning, fs2sbc
from .version import __version__


def _cli_plain_mode() -> bool:
    if os.getenv("FS2SBC_CLI_PLAIN"):
        return True
    if os.getenv("NO_COLOR"):
        return True
    style = (os.getenv("FS2SBC_CLI_STYLE") or "").strip().lower()
    if style in {"plain", "boring", "0", "false", "off"}:
        return True
    return False


class _CliTheme:
    def __init__(self, plain: bool):
        self.plain = plain
        self.reset = "" if plain else colorama.Style.RESET_ALL
        self.bold = "" if plain else colorama.Style.BRIGHT
        self.red = "" if plain else colorama.Fore.RED
        self.green = "" if plain else colorama.Fore.GREEN
        self.yellow = "" if plain else colorama.Fore.YELLOW
        self.cyan = "" if plain else colorama.Fore.CYAN

    def _wrap(self, msg: str, color: str, emoji: str | None = None) -> str:
        if self.plain:
            return msg
        prefix = f"{emoji} " if emoji else ""
        return f"{self.bold}{color}{prefix}{msg}{self.reset}"

    def ok(self, msg: str) -> str:
        return self._wrap(msg, self.green, "✅")

    def warn(self, msg: str) -> str:
        return self._wrap(msg, self.yellow, "⚠️")

    def err(self, msg: str) -> str:
        return self._wrap(msg, self.red, "❌")

    def info(self, msg: str) -> str:
        return self._wrap(msg, self.cyan)


def _positive_int(raw: str) -> int:
    try:
        value = int(raw)
    except ValueError:
        raise argparse.ArgumentTypeError(f"expected an integer, got {raw!r}")
    if value < 1:
        raise argparse.ArgumentTypeError("must be at least 1")
    return value


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="fs2sbc",
        description="Pack a file or directory tree into a single binary container"
    )
    parser.add_argument(
        "-i", "--input",
        required=True,
        help="File or directory to pack"
    )
    parser.add_argument(
        "-o", "--output",
        required=True,
        help="Container path to write (replaced if it exists)"
    )
    parser.add_argument(
        "-b64", "--base64",
        action="store_true",
        help="Write the container as base64 text"
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Print every directory and file as it is packed"
    )
    parser.add_argument(
        "--max-depth",
        type=_positive_int,
        default=None,
        help=f"Maximum directory nesting (default {fs2sbc.DEFAULT_MAX_DEPTH})"
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}"
    )
    return parser


def cli(argv=None) -> int:
    colorama.just_fix_windows_console()
    theme = _CliTheme(_cli_plain_mode())
    args = build_parser().parse_args(argv)

    options = fs2sbc.PackOptions.create(
        args.input,
        args.output,
        base64=args.base64,
        verbose=args.verbose,
        max_depth=args.max_depth
    )
    reporter = fs2sbc._VerboseReporter(decorate=theme.info) if options.verbose else None

    with warnings.catch_warnings(record=True) as caught:
        warnings.simplefilter("always", TempCleanupWarning)
        try:
            result = fs2sbc.pack(options, reporter)
        except PackError as exc:
            print(theme.err(str(exc)), file=sys.stderr)
            return 1
        finally:
            for entry in caught:
                print(theme.warn(str(entry.message)), file=sys.stderr)

    human = fs2sbc._human_readable_size(result.output_size)
    print(theme.ok(f"Wrote {result.output_path} ({human})"))
    return 0


def main(argv=None) -> int:
    try:
        return cli(argv)
    except KeyboardInterrupt:
        print("Exiting...")
        return 130


if __name__ == "__main__":
    raise SystemExit(main())
