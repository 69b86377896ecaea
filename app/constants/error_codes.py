from enum import Enum


class ErrorCode(str, Enum):
    # generic
    VALIDATION_ERROR = "VALIDATION_ERROR"
    UNAUTHORIZED = "UNAUTHORIZED"
    PERMISSION_DENIED = "PERMISSION_DENIED"
    NOT_FOUND = "NOT_FOUND"
    CONFLICT = "CONFLICT"
    INTERNAL_ERROR = "INTERNAL_ERROR"

    # auth / users / companies
    USER_EMAIL_EXISTS = "USER_EMAIL_EXISTS"
    USER_ROLE_INVALID = "USER_ROLE_INVALID"
    USER_NOT_FOUND = "USER_NOT_FOUND"
    USER_INACTIVE = "USER_INACTIVE"
    SESSION_EXPIRED = "SESSION_EXPIRED"
    COMPANY_NOT_FOUND = "COMPANY_NOT_FOUND"
    SUBSCRIPTION_SUSPENDED = "SUBSCRIPTION_SUSPENDED"
    PLAN_LIMIT_REACHED = "PLAN_LIMIT_REACHED"
    SUBSCRIPTION_REQUIRED = "SUBSCRIPTION_REQUIRED"

    # masters
    CUSTOMER_NOT_FOUND = "CUSTOMER_NOT_FOUND"
    CUSTOMER_EMAIL_EXISTS = "CUSTOMER_EMAIL_EXISTS"
    CUSTOMER_VERSION_CONFLICT = "CUSTOMER_VERSION_CONFLICT"
    PRODUCT_NOT_FOUND = "PRODUCT_NOT_FOUND"
    PRODUCT_SKU_EXISTS = "PRODUCT_SKU_EXISTS"
    PRODUCT_VERSION_CONFLICT = "PRODUCT_VERSION_CONFLICT"
    INSUFFICIENT_STOCK = "INSUFFICIENT_STOCK"

    # billing
    INVOICE_NOT_FOUND = "INVOICE_NOT_FOUND"
    INVOICE_INVALID_STATE = "INVOICE_INVALID_STATE"
    INVOICE_VERSION_CONFLICT = "INVOICE_VERSION_CONFLICT"
    QUOTE_NOT_FOUND = "QUOTE_NOT_FOUND"
    PAYMENT_NOT_FOUND = "PAYMENT_NOT_FOUND"
    INVALID_AMOUNT = "INVALID_AMOUNT"

    # gateways
    GATEWAY_NOT_FOUND = "GATEWAY_NOT_FOUND"
    GATEWAY_NOT_CONFIGURED = "GATEWAY_NOT_CONFIGURED"
    GATEWAY_ERROR = "GATEWAY_ERROR"
    WEBHOOK_SIGNATURE_INVALID = "WEBHOOK_SIGNATURE_INVALID"

    # pos
    POS_SALE_NOT_FOUND = "POS_SALE_NOT_FOUND"
    POS_SALE_ITEM_NOT_FOUND = "POS_SALE_ITEM_NOT_FOUND"
    POS_REFUND_INVALID = "POS_REFUND_INVALID"

    # subscriptions
    PLAN_NOT_FOUND = "PLAN_NOT_FOUND"
    PLAN_NAME_EXISTS = "PLAN_NAME_EXISTS"

    # expenses
    EXPENSE_NOT_FOUND = "EXPENSE_NOT_FOUND"
