import os
from pathlib import Path

from dotenv import load_dotenv

# Load .env from project root
env_path = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(dotenv_path=env_path)

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./bailbond.db")

# CORS - comma separated list of portal origins
ALLOWED_ORIGINS = os.getenv(
    "ALLOWED_ORIGINS",
    "http://localhost:5173,http://localhost:3000",
).split(",")

# Check-in submission rate limit (per client IP)
CHECKIN_RATE_LIMIT_PER_MINUTE = int(os.getenv("CHECKIN_RATE_LIMIT_PER_MINUTE", "30"))

# Agency jurisdiction bounding box - defaults to the State of Hawaii
JURISDICTION_NAME = os.getenv("JURISDICTION_NAME", "Hawaii")
JURISDICTION_MIN_LAT = float(os.getenv("JURISDICTION_MIN_LAT", "18.9"))
JURISDICTION_MAX_LAT = float(os.getenv("JURISDICTION_MAX_LAT", "22.5"))
JURISDICTION_MIN_LON = float(os.getenv("JURISDICTION_MIN_LON", "-161.0"))
JURISDICTION_MAX_LON = float(os.getenv("JURISDICTION_MAX_LON", "-154.8"))

# Client portal (check-in flow) settings
PORTAL_API_BASE_URL = os.getenv("PORTAL_API_BASE_URL", "http://localhost:8000")
# Origin the portal is served from; the fingerprint ceremony is scoped to its host
PORTAL_ORIGIN = os.getenv("PORTAL_ORIGIN", "http://localhost:5173")
PORTAL_RP_NAME = os.getenv("PORTAL_RP_NAME", "Bail Bond Client Portal")
PORTAL_HTTP_TIMEOUT = float(os.getenv("PORTAL_HTTP_TIMEOUT", "15.0"))
