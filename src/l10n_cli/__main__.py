"""Module entrypoint for ``python -m l10n_cli``."""

from .main import app as cli_app


def main() -> None:
    cli_app()


if __name__ == "__main__":
    main()
