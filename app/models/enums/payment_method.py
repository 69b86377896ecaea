from enum import Enum

class PaymentMethod(str, Enum):
    cash = "cash"
    bank_transfer = "bank_transfer"
    card = "card"
    check = "check"
    online = "online"
    other = "other"
