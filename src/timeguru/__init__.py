# SPDX-License-Identifier: MIT

from timeguru.cleanup import register_cleanup
from timeguru.initialize import initialize
from timeguru.terminal.app import run


def main() -> None:
    initialize()
    register_cleanup()
    run()


if __name__ == "__main__":
    main()
