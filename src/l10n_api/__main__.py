"""Module entrypoint for ``python -m l10n_api`` CLI usage."""

from l10n_cli.main import app as cli_app


def main() -> None:
    cli_app()


if __name__ == "__main__":
    main()
