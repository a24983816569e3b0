"""Allow `python -m gastown_mail` to run the CLI."""

from .cli import app


def main() -> None:
    app(prog_name="gastown-mail")


if __name__ == "__main__":  # pragma: no cover - manual execution path
    main()
