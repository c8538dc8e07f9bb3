"""
referral_genie.api.__main__

Run the Referral Genie API with `python -m referral_genie.api` (or the `referral-genie` script).

Responsibilities:
- Build the app from environment settings.
- Hand it to uvicorn without uvicorn's own logging config, so structlog owns the output.
"""

from __future__ import annotations

import uvicorn

from referral_genie.api.app import create_app
from referral_genie.settings import get_settings


def main() -> None:
    settings = get_settings()
    uvicorn.run(
        create_app(settings=settings),
        host=settings.api_host,
        port=settings.api_port,
        log_config=None,
        proxy_headers=True,
    )


if __name__ == "__main__":
    main()
