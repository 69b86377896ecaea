from enum import Enum

class BillingPeriod(str, Enum):
    monthly = "monthly"
    yearly = "yearly"
