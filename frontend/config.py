"""
Client configuration.
All values come from the environment (or a local .env file) with development defaults.
"""

import os
import logging
from dotenv import load_dotenv

# Load .env only once here
load_dotenv()

# Origin of the Event Poster REST service, including the /api prefix
API_BASE_URL = os.getenv("API_BASE_URL", "http://localhost:8080/api").rstrip("/")

API_TIMEOUT_SECONDS = float(os.getenv("API_TIMEOUT_SECONDS", 10))

SECRET_KEY = os.getenv("SECRET_KEY")
if not SECRET_KEY:
    logging.warning("SECRET_KEY is missing. Using an insecure development key.")
    SECRET_KEY = "dev-insecure-key"

CLIENT_PORT = int(os.getenv("CLIENT_PORT", 3000))

# Optional JSON file used to share one session between several client processes
SESSION_FILE = os.getenv("SESSION_FILE")

CONFIRMATION_COUNTDOWN_SECONDS = int(os.getenv("CONFIRMATION_COUNTDOWN_SECONDS", 5))
