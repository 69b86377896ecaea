from enum import Enum

class DiscountType(str, Enum):
    percentage = "percentage"
    fixed = "fixed"
    none = "none"
