"""
Configuration for the Telegram assistant relay bot.
Secrets come from the environment (or a local .env file).
"""
import os
from dataclasses import dataclass

from dotenv import load_dotenv

from relaybot.errors import ConfigError

load_dotenv()

# Required secrets
REQUIRED_ENV_VARS = ("TELEGRAM_TOKEN", "OPEN_AI_TOKEN", "ASSISTANT_ID")

# Health check server
PORT = int(os.getenv("PORT", "3000"))

# Backend
OPENAI_BASE_URL = os.getenv("OPENAI_BASE_URL", "https://api.openai.com/v1")
VISION_MODEL = os.getenv("VISION_MODEL", "gpt-4o-mini")
BACKEND_REQUEST_TIMEOUT = 30.0  # seconds, per HTTP call

# Run polling. 100 polls * 0.5s is 50s, longer than the 10s deadline,
# so the deadline is what normally ends a slow run.
RUN_TIMEOUT_SECONDS = float(os.getenv("RUN_TIMEOUT_SECONDS", "10"))
RUN_POLL_INTERVAL_SECONDS = float(os.getenv("RUN_POLL_INTERVAL_SECONDS", "0.5"))
RUN_MAX_POLLS = int(os.getenv("RUN_MAX_POLLS", "100"))

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

# Messages
GREETINGS = [
    "Hey there! I'm Emma 👋 So glad you stopped by. What's on your mind today?",
    "Hi! Emma here. Pull up a chair and tell me how your day is going.",
    "Hello, hello! I'm Emma. I just joined the server and you're the first person I've met. What should we talk about?",
]

HELP_MESSAGE = "I am a bot that can chat with you!"

IMAGE_PROMPT = "Hi there Emma, could you please describe this image?"

SEED_USER_TEMPLATE = "Hi, my name is {name}"

HEALTH_RESPONSE = "Hello World"


@dataclass(frozen=True)
class Settings:
    telegram_token: str
    openai_api_key: str
    assistant_id: str
    port: int = PORT
    openai_base_url: str = OPENAI_BASE_URL
    vision_model: str = VISION_MODEL
    run_timeout: float = RUN_TIMEOUT_SECONDS
    poll_interval: float = RUN_POLL_INTERVAL_SECONDS
    max_polls: int = RUN_MAX_POLLS


def load_settings() -> Settings:
    """Read settings from the environment at call time.

    Raises ConfigError naming every required variable that is unset or blank.
    """
    values = {name: os.getenv(name, "").strip() for name in REQUIRED_ENV_VARS}
    missing = [name for name, value in values.items() if not value]
    if missing:
        raise ConfigError(f"Missing required environment variables: {', '.join(missing)}")

    return Settings(
        telegram_token=values["TELEGRAM_TOKEN"],
        openai_api_key=values["OPEN_AI_TOKEN"],
        assistant_id=values["ASSISTANT_ID"],
        port=int(os.getenv("PORT", str(PORT))),
        openai_base_url=os.getenv("OPENAI_BASE_URL", OPENAI_BASE_URL).rstrip("/"),
        vision_model=os.getenv("VISION_MODEL", VISION_MODEL),
        run_timeout=float(os.getenv("RUN_TIMEOUT_SECONDS", str(RUN_TIMEOUT_SECONDS))),
        poll_interval=float(os.getenv("RUN_POLL_INTERVAL_SECONDS", str(RUN_POLL_INTERVAL_SECONDS))),
        max_polls=int(os.getenv("RUN_MAX_POLLS", str(RUN_MAX_POLLS))),
    )
