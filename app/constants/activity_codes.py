from enum import Enum


class ActivityCode(str, Enum):
    # auth
    REGISTER_COMPANY = "REGISTER_COMPANY"
    LOGIN = "LOGIN"
    LOGOUT = "LOGOUT"

    # users
    CREATE_USER = "CREATE_USER"
    DEACTIVATE_USER = "DEACTIVATE_USER"

    # customers
    CREATE_CUSTOMER = "CREATE_CUSTOMER"
    UPDATE_CUSTOMER = "UPDATE_CUSTOMER"
    DEACTIVATE_CUSTOMER = "DEACTIVATE_CUSTOMER"

    # products
    CREATE_PRODUCT = "CREATE_PRODUCT"
    UPDATE_PRODUCT = "UPDATE_PRODUCT"
    DEACTIVATE_PRODUCT = "DEACTIVATE_PRODUCT"

    # invoices / quotes
    CREATE_INVOICE = "CREATE_INVOICE"
    UPDATE_INVOICE = "UPDATE_INVOICE"
    SEND_INVOICE = "SEND_INVOICE"
    CANCEL_INVOICE = "CANCEL_INVOICE"
    DELETE_INVOICE = "DELETE_INVOICE"
    CONVERT_QUOTE_TO_INVOICE = "CONVERT_QUOTE_TO_INVOICE"
    MARK_INVOICE_OVERDUE = "MARK_INVOICE_OVERDUE"

    # payments
    CREATE_PAYMENT = "CREATE_PAYMENT"
    UPDATE_PAYMENT = "UPDATE_PAYMENT"
    DELETE_PAYMENT = "DELETE_PAYMENT"
    GATEWAY_PAYMENT = "GATEWAY_PAYMENT"

    # pos
    CREATE_POS_SALE = "CREATE_POS_SALE"
    REFUND_POS_SALE = "REFUND_POS_SALE"

    # subscription plans
    CREATE_PLAN = "CREATE_PLAN"
    UPDATE_PLAN = "UPDATE_PLAN"
    DEACTIVATE_PLAN = "DEACTIVATE_PLAN"

    # company and subscription
    UPDATE_COMPANY_PROFILE = "UPDATE_COMPANY_PROFILE"
    CHANGE_SUBSCRIPTION_PLAN = "CHANGE_SUBSCRIPTION_PLAN"
    CHANGE_USER_ROLE = "CHANGE_USER_ROLE"
    SET_SUBSCRIPTION_STATUS = "SET_SUBSCRIPTION_STATUS"
    EXPIRE_TRIAL = "EXPIRE_TRIAL"

    # expenses
    CREATE_EXPENSE = "CREATE_EXPENSE"
    UPDATE_EXPENSE = "UPDATE_EXPENSE"
    DELETE_EXPENSE = "DELETE_EXPENSE"
