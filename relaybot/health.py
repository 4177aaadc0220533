"""Liveness endpoint for the hosting platform's health checks."""
from __future__ import annotations

import threading

import uvicorn
from fastapi import FastAPI
from fastapi.responses import PlainTextResponse

from config import HEALTH_RESPONSE

app = FastAPI(title="relaybot health")


@app.get("/", response_class=PlainTextResponse)
def health_check():
    return HEALTH_RESPONSE


def start_health_server(port: int, host: str = "0.0.0.0") -> threading.Thread:
    """Serve the health app from a daemon thread so the bot keeps the main thread.

    uvicorn only installs signal handlers on the main thread, which leaves
    SIGINT/SIGTERM to python-telegram-bot.
    """
    server = uvicorn.Server(uvicorn.Config(app, host=host, port=port, log_level="warning"))
    thread = threading.Thread(target=server.run, name="health-server", daemon=True)
    thread.start()
    return thread
