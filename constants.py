import os

HOST = os.getenv("HOST", "0.0.0.0")
PORT = int(os.getenv("PORT", 3001))

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
LOG_FILE = os.getenv("LOG_FILE", None)

RELOAD = os.getenv("RELOAD", "false").lower() in ("1", "true", "yes")

# Upper bound for a single outbound frame to one peer
SEND_TIMEOUT_SECONDS = float(os.getenv("SEND_TIMEOUT_SECONDS", 5.0))

CORS_ORIGINS = os.getenv("CORS_ORIGINS", "*").split(",")

HEALTH_BODY = "ok"
ACK_BODY = "signaling-ok"
