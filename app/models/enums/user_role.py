from enum import Enum

class UserRole(str, Enum):
    owner = "owner"
    admin = "admin"
    accountant = "accountant"
    cashier = "cashier"
    super_admin = "super_admin"
