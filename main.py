# main.py: process entrypoint for the billing relay
import logging

import uvicorn

from billing_relay.config import Settings
from server import create_app

settings = Settings.from_env()

logging.basicConfig(
    level=getattr(logging, settings.log_level, logging.INFO),
    format="%(asctime)s [%(levelname)s] %(message)s",
)

app = create_app(settings)


if __name__ == "__main__":
    uvicorn.run("main:app", host="0.0.0.0", port=settings.port)
