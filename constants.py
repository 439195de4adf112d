import os

HOST = os.getenv("HOST", "0.0.0.0")
PORT = int(os.getenv("PORT", 5000))
RELOAD = os.getenv("RELOAD", "false").lower() in ("1", "true", "yes")

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
LOG_FILE = os.getenv("LOG_FILE", None)

CORS_ORIGINS = [o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()]

STUN_SERVERS = [
    s.strip()
    for s in os.getenv(
        "STUN_SERVERS",
        "stun:stun.l.google.com:19302,"
        "stun:stun1.l.google.com:19302,"
        "stun:stun2.l.google.com:19302,"
        "stun:stun3.l.google.com:19302,"
        "stun:stun4.l.google.com:19302",
    ).split(",")
    if s.strip()
]

TURN_URL = os.getenv("TURN_URL", None)
TURN_USERNAME = os.getenv("TURN_USERNAME", None)
TURN_CREDENTIAL = os.getenv("TURN_CREDENTIAL", None)

# A call is strictly one-to-one
MAX_ROOM_MEMBERS = 2
