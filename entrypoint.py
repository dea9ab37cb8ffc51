"""Service entrypoint: starts uvicorn with host and port from the environment."""
import os
import uvicorn

# Import the app object directly; uvicorn's string-based import needs the
# package on sys.path, which a frozen bundle does not provide.
from market_cache.main import app


def main() -> None:
    host = os.environ.get("MARKET_CACHE_HOST", "127.0.0.1")
    port = int(os.environ.get("MARKET_CACHE_PORT", "8001"))
    uvicorn.run(app, host=host, port=port)


if __name__ == "__main__":
    main()
