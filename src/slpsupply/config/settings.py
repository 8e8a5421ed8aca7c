import os
from dotenv import load_dotenv
load_dotenv()
# ---- Chronik indexer ----
CHRONIK_BASE_URL = os.environ.get("CHRONIK_BASE_URL", "https://chronik.be.cash/xec")

CHRONIK_REQUESTS_PER_SEC = float(os.environ.get("CHRONIK_REQUESTS_PER_SEC", "5.0"))
CHRONIK_TIMEOUT_SEC = int(os.environ.get("CHRONIK_TIMEOUT_SEC", "15"))
CHRONIK_MAX_RETRIES = int(os.environ.get("CHRONIK_MAX_RETRIES", "5"))

# ----- SLP -----

# Only the fungible token type is accounted for
SLP_FUNGIBLE_TOKEN_TYPE = 1

# Output 0 carries the OP_RETURN payload
SLP_PAYLOAD_VOUT = 0

# How ledger entries and spent inputs are identified: "script" or "outpoint"
OUTPUT_KEY_MODE = os.environ.get("SLPSUPPLY_OUTPUT_KEY", "script")
