"""Allow ``python -m sesmail.cli``."""

from sesmail.cli.app import main

if __name__ == "__main__":  # pragma: no cover
    main()
