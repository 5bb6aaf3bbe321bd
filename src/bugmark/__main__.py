"""Entry point for ``python -m bugmark``."""

from bugmark.cli import main

if __name__ == "__main__":
    main()
