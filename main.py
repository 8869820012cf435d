"""Repository-level driver for the Nomad multitool CLI."""

from __future__ import annotations

import sys

from nomad_cli.multitool import main as cli_main


def main(argv: list[str]) -> int:
    return cli_main(argv)


if __name__ == "__main__":
    sys.exit(main(sys.argv[1:]))
