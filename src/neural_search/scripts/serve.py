"""Script to serve the Neural Search API."""

import uvicorn

from neural_search.config import get_settings


def main():
    """Run the API server."""
    settings = get_settings()

    print("Starting Neural Search API...")
    print(f"Open http://localhost:{settings.port}/docs in your browser")
    print()

    uvicorn.run(
        "neural_search.api.main:app",
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
