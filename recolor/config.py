import os

from dotenv import load_dotenv

# Load .env variables (local dev only)
load_dotenv()

# Gemini credential. Read here once and handed to the service explicitly;
# it may be absent, in which case each generation fails with MissingCredential.
GEMINI_API_KEY = os.getenv("GEMINI_API_KEY") or os.getenv("API_KEY")

# Image editing model and its sampling temperature.
MODEL_NAME = os.getenv("RECOLOR_MODEL", "gemini-2.5-flash-image")
TEMPERATURE = float(os.getenv("RECOLOR_TEMPERATURE", "0.2"))

LOG_LEVEL = os.getenv("RECOLOR_LOG_LEVEL", "INFO").upper()

HOST = os.getenv("RECOLOR_HOST", "127.0.0.1")
PORT = int(os.getenv("RECOLOR_PORT", "8000"))
