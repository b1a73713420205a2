"""
Development tasks, e.g. `python scripts.py test -x` or
`python scripts.py bench`.
"""

from subprocess import CalledProcessError, run
import sys


def lint(args):
    run(["flake8", "retrack", "tests", "bench"] + args, check=True)


def test(args):
    lint([])
    run(
        ["pytest", "--cov=retrack", "--cov-report=term-missing"] + args,
        check=True,
    )


def bench(args):
    run(["pytest", "bench", "--benchmark-only"] + args, check=True)


COMMANDS = {"bench": bench, "lint": lint, "test": test}


def main():
    if len(sys.argv) < 2 or sys.argv[1] not in COMMANDS:
        print(f"usage: scripts.py {{{','.join(COMMANDS)}}} [args...]")
        sys.exit(1)

    try:
        COMMANDS[sys.argv[1]](sys.argv[2:])
    except CalledProcessError:
        sys.exit(1)


if __name__ == "__main__":
    main()
