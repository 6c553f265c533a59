"""Run the service: ``python -m todokeeper``."""

from todokeeper.core.settings import get_settings
from todokeeper.todokeeper import TodoKeeperService


def main() -> None:
    settings = get_settings()
    print(f"Starting TodoKeeper on {settings.URL}")
    TodoKeeperService.launch(url=settings.URL, settings=settings)


if __name__ == "__main__":
    main()
