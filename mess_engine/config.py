"""
Mess Variant Engine Configuration

Environment-driven settings. Read once at import time, except
ADMIN_API_KEY which the routers read per request.
"""

import os

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

# Nutrition matching band (percent of target per macro)
DEFAULT_TOLERANCE_PERCENT = float(os.getenv("MESS_DEFAULT_TOLERANCE_PERCENT", "10"))

# One veg, one non-veg, one vegan option per meal
MAX_OFFER_CATEGORIES = int(os.getenv("MESS_MAX_OFFER_CATEGORIES", "3"))

CURRENCY_SYMBOL = os.getenv("MESS_CURRENCY_SYMBOL", "₹")

PORT = int(os.getenv("PORT", "8000"))
CORS_ORIGINS = [
    origin.strip()
    for origin in os.getenv("CORS_ORIGINS", "*").split(",")
    if origin.strip()
]
