import os

# ✅ Database
DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./mockprep.db")
RUN_MIGRATIONS = os.getenv("RUN_MIGRATIONS", "0") == "1"

# ✅ Identity (tokens issued by the external identity provider)
SECRET_KEY = os.getenv("SECRET_KEY", "change-me")
ALGORITHM = os.getenv("ALGORITHM", "HS256")

# ✅ OpenAI
OPENAI_API_KEY = os.getenv("OPENAI_API_KEY")
LLM_TIMEOUT_SECONDS = float(os.getenv("LLM_TIMEOUT_SECONDS", "30"))
QUESTION_MODEL = os.getenv("QUESTION_MODEL", "gpt-4o-mini")
CONVERSATION_MODEL = os.getenv("CONVERSATION_MODEL", "gpt-4o-mini")
FEEDBACK_MODEL = os.getenv("FEEDBACK_MODEL", "gpt-4o-mini")

# ✅ Session conductor
# Number of most recent transcript turns sent with each conversational turn
TRANSCRIPT_WINDOW = int(os.getenv("TRANSCRIPT_WINDOW", "10"))

# ✅ Rate limiting for LLM-backed endpoints
RATE_LIMIT_MAX_REQUESTS = int(os.getenv("RATE_LIMIT_MAX_REQUESTS", "30"))
RATE_LIMIT_WINDOW_SECONDS = int(os.getenv("RATE_LIMIT_WINDOW_SECONDS", "60"))

# ✅ Logging / HTTP
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
CORS_ORIGINS = [
    origin.strip()
    for origin in os.getenv("CORS_ORIGINS", "http://localhost:3000,http://127.0.0.1:3000").split(",")
    if origin.strip()
]

# ✅ Voice session (browser SDK workflow started for each call)
VOICE_WORKFLOW_ID = os.getenv("VOICE_WORKFLOW_ID")
