"""Run the advisor API with uvicorn."""

import uvicorn

from advisor.config import get_settings


def main() -> None:
    settings = get_settings()
    uvicorn.run(
        "advisor.main:app",
        host="0.0.0.0",
        port=settings.port,
        log_level=settings.log_level,
        log_config=None,
    )


if __name__ == "__main__":
    main()
