from enum import Enum

class POSPaymentMethod(str, Enum):
    cash = "cash"
    card = "card"
    bank_transfer = "bank_transfer"
    mobile_payment = "mobile_payment"
    mixed = "mixed"
