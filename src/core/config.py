"""
Agent configuration - environment driven, with optional .env file.
"""

import os
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()

# Language model (Ollama) configuration - default disabled, keyword fallback routing is used
LLM_ENABLED = os.getenv("LLM_ENABLED", "false").lower() == "true"
OLLAMA_MODEL = os.getenv("OLLAMA_MODEL", "llama3.2")
OLLAMA_HOST = os.getenv("OLLAMA_HOST")  # None -> ollama client default
LLM_TEMPERATURE = float(os.getenv("LLM_TEMPERATURE", "0.7"))
LLM_MAX_TOKENS = int(os.getenv("LLM_MAX_TOKENS", "500"))

# Data sources
MUSIC_DB_PATH = os.getenv("MUSIC_DB_PATH", "./data/sqlite/music.db")
DOCUMENTS_PATH = os.getenv("DOCUMENTS_PATH", "./data/documents")

# Approved command execution limits (fixed)
COMMAND_TIMEOUT_SEC = 30
COMMAND_MAX_OUTPUT_BYTES = 1024 * 1024

# Document search limits (fixed)
MAX_SEARCH_RESULTS = 3
MAX_EXCERPT_CHARS = 500
MAX_EXCERPT_PARAGRAPHS = 3

# API configuration
CHAT_API_ENABLED = os.getenv("CHAT_API_ENABLED", "true").lower() == "true"
DEBUG = os.getenv("DEBUG", "false").lower() == "true"
API_CORS_ORIGINS = [
    origin.strip()
    for origin in os.getenv(
        "API_CORS_ORIGINS",
        "http://localhost:3000,http://127.0.0.1:3000"
    ).split(",")
    if origin.strip()
]

# Version string
VERSION = "1.0.0"


def llm_enabled():
    """Check if the Ollama classifier should be used."""
    return os.getenv("LLM_ENABLED", "false").lower() == "true"


def debug_enabled():
    """Check if debug mode is enabled."""
    return os.getenv("DEBUG", "false").lower() == "true"


def get_music_db_path() -> Path:
    return Path(os.getenv("MUSIC_DB_PATH", MUSIC_DB_PATH))


def get_documents_path() -> Path:
    return Path(os.getenv("DOCUMENTS_PATH", DOCUMENTS_PATH))


def validate_config():
    """Validate configuration and return any issues."""
    issues = []

    if llm_enabled() and not OLLAMA_MODEL:
        issues.append("LLM_ENABLED requires OLLAMA_MODEL to be set")

    if not 0.0 <= LLM_TEMPERATURE <= 2.0:
        issues.append(f"Invalid LLM_TEMPERATURE: {LLM_TEMPERATURE}")

    if LLM_MAX_TOKENS < 1:
        issues.append("LLM_MAX_TOKENS must be >= 1")

    if not get_music_db_path().exists():
        issues.append(f"Music database not found at {get_music_db_path()}")

    if not get_documents_path().is_dir():
        issues.append(f"Documents directory not found at {get_documents_path()}")

    return issues
