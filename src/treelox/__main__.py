import sys

from treelox.lox import Lox


def main() -> None:
    if len(sys.argv) > 2:
        print(f"Usage: {sys.argv[0]} [script]")
        sys.exit(64)

    lox = Lox()

    if len(sys.argv) == 2:
        lox.run_file(sys.argv[1])
        if lox.had_error:
            sys.exit(65)
        if lox.had_runtime_error:
            sys.exit(70)
    else:
        lox.run_prompt()


if __name__ == "__main__":
    main()
