# config.py
import os
BASE_DIR = os.path.abspath(os.path.dirname(__file__))

class Config:
    # API keys handed out to the conversational platforms
    MAGICK_API_KEY  = os.getenv("MAGICK_API_KEY", "")
    LANDBOT_API_KEY = os.getenv("LANDBOT_API_KEY", "")

    MAX_REQUESTS_PER_MIN = int(os.getenv("MAX_REQUESTS_PER_MIN", "1000") or 1000)

    # Salesforce OAuth (password grant)
    SF_TOKEN_URL      = os.getenv("SF_TOKEN_URL", "https://login.salesforce.com/services/oauth2/token")
    SF_GRANT_TYPE     = os.getenv("SF_GRANT_TYPE", "password")
    SF_CLIENT_ID      = os.getenv("SF_CLIENT_ID", "")
    SF_CLIENT_SECRET  = os.getenv("SF_CLIENT_SECRET", "")
    SF_USERNAME       = os.getenv("SF_USERNAME", "")
    SF_PASSWORD       = os.getenv("SF_PASSWORD", "")

    SF_INSTANCE_URL         = os.getenv("SF_INSTANCE_URL", "")
    SF_DUPLICATES_ENDPOINT  = os.getenv("SF_DUPLICATES_ENDPOINT", "")
    SF_API_VERSION          = os.getenv("SF_API_VERSION", "v57.0")

    # seconds
    SF_TOKEN_TIMEOUT      = 20
    SF_DUPLICATES_TIMEOUT = 20
    SF_COMPOSITE_TIMEOUT  = 30

    # duplicates.log / createOpportunity.log live here
    LOG_DIR = os.getenv("LOG_DIR", os.path.join(BASE_DIR, "logs"))
