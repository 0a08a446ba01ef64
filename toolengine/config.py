"""Configuration for the tool engine."""

import os
from dotenv import load_dotenv

load_dotenv()

# Logging
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

# Web search: optional server-side proxy (POST {query, limit} -> {results}),
# tried before hitting DuckDuckGo directly
SEARCH_PROXY_URL = os.getenv("SEARCH_PROXY_URL")
SEARCH_TIMEOUT = float(os.getenv("SEARCH_TIMEOUT", "8"))
SEARCH_USER_AGENT = os.getenv(
    "SEARCH_USER_AGENT",
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/146.0.0.0 Safari/537.36",
)
SEARCH_ACCEPT_LANGUAGE = os.getenv("SEARCH_ACCEPT_LANGUAGE", "en-US,en;q=0.9")

# Default result counts when the model omits "limit"
DEFAULT_SEARCH_LIMIT = int(os.getenv("DEFAULT_SEARCH_LIMIT", "5"))
DEFAULT_DOCUMENT_LIMIT = int(os.getenv("DEFAULT_DOCUMENT_LIMIT", "3"))

# browse_url
BROWSE_TIMEOUT = float(os.getenv("BROWSE_TIMEOUT", "15"))
BROWSE_MAX_CHARS = int(os.getenv("BROWSE_MAX_CHARS", "10000"))
