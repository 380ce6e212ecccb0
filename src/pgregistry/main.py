"""Console entry point: `pgregistry` starts the API server with settings from PGREGISTRY_* variables."""

from pgregistry.app import App
from pgregistry.config import Config
from pgregistry.logging import setup_logging
from pgregistry.web.runner import run_server


def main() -> None:
    config = Config()  # type: ignore[call-arg]
    setup_logging(config.debug)
    run_server(App(config), config)


if __name__ == "__main__":
    main()
