from datetime import datetime, date
from dotenv import load_dotenv
import os
import pytz

load_dotenv()

# All audit timestamps and daily number prefixes use this timezone
APP_TIMEZONE = os.getenv("APP_TIMEZONE", "Asia/Kolkata")


def now() -> datetime:
    return datetime.now(pytz.timezone(APP_TIMEZONE))


def today() -> date:
    return now().date()
