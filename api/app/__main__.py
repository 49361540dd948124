"""Run the proxy with uvicorn: `python -m app` from the `api/` directory."""

import uvicorn

from .core.config import get_settings


def main() -> None:
    settings = get_settings()
    # Logging is configured by app.main; keep uvicorn from installing its own
    uvicorn.run(
        "app.main:app",
        host=settings.host,
        port=settings.port,
        log_config=None,
    )


if __name__ == "__main__":
    main()
