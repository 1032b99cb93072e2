import os

from dotenv import load_dotenv

# Load from .env if it exists (useful for local development)
load_dotenv()

LOGGING_LEVEL = os.getenv("LOGGING_LEVEL", "INFO").upper() or "INFO"

# Provider credentials (env var names, values are read at call time)
ANTHROPIC_API_KEY_ENV = "ANTHROPIC_API_KEY"
DEEPSEEK_API_KEY_ENV = "DEEPSEEK_API_KEY"
OPENAI_API_KEY_ENV = "OPENAI_API_KEY"
GEMINI_API_KEY_ENV = "GEMINI_API_KEY"

DEEPSEEK_BASE_URL = "https://api.deepseek.com"

# --- CONFIG --- generation
LLM_TIMEOUT_S = float(os.getenv("LLM_TIMEOUT_S", "60"))
# "provider:model,provider:model"; empty means the built-in chain
LLM_FALLBACK_CHAIN = os.getenv("LLM_FALLBACK_CHAIN", "")
ANTHROPIC_MAX_TOKENS = 4096
GEMINI_TEMPERATURE = 0.2
STRUCTURED_TOOL_NAME = "structured_output"

# === CONFIGURATION === quiz
DEFAULT_QUESTION_COUNT = 5
