"""
ReviewUplift - Web Server Entry Point
=====================================

Run this to start the web dashboard:
    python main.py

Then open http://127.0.0.1:8000 in your browser.

To create the first admin account:
    python create_admin.py
"""

import uvicorn

from reviewuplift.infrastructure.config import get_settings


def main():
    """Start the web server."""
    settings = get_settings()

    print("\n" + "=" * 50)
    print("   ReviewUplift - Web Dashboard")
    print("=" * 50)
    print("\n   Starting server at http://127.0.0.1:8000")
    print("   Press Ctrl+C to stop\n")

    uvicorn.run(
        "reviewuplift.web.app:app",
        host="127.0.0.1",
        port=8000,
        reload=settings.debug,
        log_level="debug" if settings.debug else "info"
    )


if __name__ == "__main__":
    main()
