import uvicorn

from catalog_diff.api.app_factory import create_app
from catalog_diff.config.settings import Settings
from catalog_diff.logging.logger import Log


def main() -> None:
    """Entry point: load settings -> build app -> serve."""
    settings = Settings()
    Log.configure(settings.log_level)
    app = create_app(settings)
    uvicorn.run(app, host=settings.host, port=settings.port)


if __name__ == "__main__":
    main()
