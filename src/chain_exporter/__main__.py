import sys

from chain_exporter.cli import main, build_parser


def run():
    # Show help if no arguments are provided
    if len(sys.argv) == 1:
        build_parser().print_help()
        return 0
    return main()


if __name__ == "__main__":
    sys.exit(run())
