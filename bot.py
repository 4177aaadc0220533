"""
Thin entrypoint used by hosting platforms.

Deployment configs expect `python bot.py`, so we just delegate to the
application wiring in relaybot.app (env vars TELEGRAM_TOKEN/OPEN_AI_TOKEN/
ASSISTANT_ID/PORT).
"""
from relaybot.app import main


if __name__ == "__main__":
    main()
