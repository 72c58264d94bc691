"""Entrypoint for `python -m entry_expiration`."""

from .cli import main


if __name__ == "__main__":
    main()
