"""Single entrypoint: `python -m polypaint target.png`."""

from __future__ import annotations

from polypaint.main import main as cli_main


def main() -> int:
    return int(cli_main())


if __name__ == "__main__":
    raise SystemExit(main())
