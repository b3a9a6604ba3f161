import uvicorn

from rsvp.api.server import create_app
from rsvp.config.settings import Settings
from rsvp.logging.logger import Log


def main() -> None:
    """Entry point: load settings -> configure logging -> build app -> serve."""
    settings = Settings()
    Log.configure(settings.log_level)

    app = create_app(settings)
    Log.info(
        f"RSVP intake API starting on {settings.api_host}:{settings.api_port} "
        f"(store: {settings.store_path})"
    )
    uvicorn.run(app, host=settings.api_host, port=settings.api_port)


if __name__ == "__main__":
    main()
