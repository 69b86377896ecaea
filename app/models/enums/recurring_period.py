from enum import Enum

class RecurringPeriod(str, Enum):
    monthly = "monthly"
    quarterly = "quarterly"
    yearly = "yearly"
