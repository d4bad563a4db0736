"""Run the API with uvicorn: `python -m mappoints` or the `mappoints` script."""

import uvicorn

from mappoints.config import settings


def main() -> None:
    uvicorn.run(
        "mappoints.main:app",
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
