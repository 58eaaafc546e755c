"""Server entry point for the finchat API."""

import os

import uvicorn


def main():
    """Run the FastAPI server."""
    uvicorn.run(
        "finchat.api:app",
        host=os.environ.get("FINCHAT_HOST", "0.0.0.0"),
        port=int(os.environ.get("FINCHAT_PORT", "8080")),
        log_level="info",
    )


if __name__ == "__main__":
    main()
