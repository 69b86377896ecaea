from enum import Enum

class POSSaleStatus(str, Enum):
    completed = "completed"
    refunded = "refunded"
    partially_refunded = "partially_refunded"
    cancelled = "cancelled"
