"""Module entrypoint for ``python -m rula``."""

from .cli import main


if __name__ == "__main__":
    main()
