#!/usr/bin/env python3
import argparse
import logging
import sys

from mysh import messages
from mysh.config import ShellConfig
from mysh.errors import ConfigError
from mysh.shell import Shell


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="mysh", description="A small Unix shell.")
    parser.add_argument("--debug", action="store_true", help="log to stderr")
    parser.add_argument("--no-color", action="store_true", help="plain diagnostics")
    parser.add_argument(
        "--history-size", type=int, metavar="N", help="number of lines to remember"
    )
    return parser.parse_args(argv)


def main(argv=None) -> None:
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.debug else logging.WARNING,
        format="%(asctime)s %(name)s %(levelname)s: %(message)s",
        stream=sys.stderr,
    )

    try:
        config = ShellConfig.from_env()
    except ConfigError as e:
        messages.report(e)
        sys.exit(2)
    if args.no_color:
        config = config._replace(use_colors=False)
    if args.history_size is not None:
        if args.history_size < 1:
            messages.report(ConfigError("--history-size", str(args.history_size)))
            sys.exit(2)
        config = config._replace(history_size=args.history_size)

    messages.set_colors(config.use_colors)
    Shell(config).run()


if __name__ == "__main__":
    main()
