"""Runs the app with settings from the environment: `python -m chatcommit`."""

from . import ChatCommit
from .config import configure_logging, get_settings


def main() -> None:
    settings = get_settings()
    configure_logging(settings)
    app = ChatCommit(settings=settings)
    app.run(debug=settings.DEBUG)


if __name__ == "__main__":
    main()
