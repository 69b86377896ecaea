from app.constants.activity_codes import ActivityCode


ACTIVITY_TEMPLATES = {
    # ---------------- AUTH ----------------
    ActivityCode.REGISTER_COMPANY:
        "{actor_email} registered company {target_name}",

    ActivityCode.LOGIN:
        "{actor_role} ({actor_email}) logged in",

    ActivityCode.LOGOUT:
        "{actor_role} ({actor_email}) logged out",

    # ---------------- USERS ----------------
    ActivityCode.CREATE_USER:
        "{actor_role} ({actor_email}) created user {target_email} with role {target_role}",

    ActivityCode.DEACTIVATE_USER:
        "{actor_role} ({actor_email}) deactivated user {target_email}",

    # ---------------- CUSTOMERS ----------------
    ActivityCode.CREATE_CUSTOMER:
        "{actor_role} ({actor_email}) created customer {target_name}",

    ActivityCode.UPDATE_CUSTOMER:
        "{actor_role} ({actor_email}) updated customer {target_name}: {changes}",

    ActivityCode.DEACTIVATE_CUSTOMER:
        "{actor_role} ({actor_email}) deactivated customer {target_name}",

    # ---------------- PRODUCTS ----------------
    ActivityCode.CREATE_PRODUCT:
        "{actor_role} ({actor_email}) created product {target_name} ({sku})",

    ActivityCode.UPDATE_PRODUCT:
        "{actor_role} ({actor_email}) updated product {target_name}: {changes}",

    ActivityCode.DEACTIVATE_PRODUCT:
        "{actor_role} ({actor_email}) deactivated product {target_name}",

    # ---------------- INVOICES ----------------
    ActivityCode.CREATE_INVOICE:
        "{actor_role} ({actor_email}) created {kind} {target_name} for {total}",

    ActivityCode.UPDATE_INVOICE:
        "{actor_role} ({actor_email}) updated {kind} {target_name}",

    ActivityCode.SEND_INVOICE:
        "{actor_role} ({actor_email}) sent {kind} {target_name}",

    ActivityCode.CANCEL_INVOICE:
        "{actor_role} ({actor_email}) cancelled {kind} {target_name}",

    ActivityCode.DELETE_INVOICE:
        "{actor_role} ({actor_email}) deleted {kind} {target_name}",

    ActivityCode.CONVERT_QUOTE_TO_INVOICE:
        "{actor_role} ({actor_email}) converted quote {target_name} to invoice {invoice_number}",

    ActivityCode.MARK_INVOICE_OVERDUE:
        "{actor_role} ({actor_email}) marked invoice {target_name} overdue: {changes}",

    # ---------------- PAYMENTS ----------------
    ActivityCode.CREATE_PAYMENT:
        "{actor_role} ({actor_email}) recorded {method} payment of {amount} on invoice {target_name}",

    ActivityCode.UPDATE_PAYMENT:
        "{actor_role} ({actor_email}) updated payment #{payment_id} on invoice {target_name}: {changes}",

    ActivityCode.DELETE_PAYMENT:
        "{actor_role} ({actor_email}) deleted payment #{payment_id} of {amount} on invoice {target_name}",

    ActivityCode.GATEWAY_PAYMENT:
        "Invoice {target_name} received {provider} payment of {amount} (ref: {reference})",

    # ---------------- POS ----------------
    ActivityCode.CREATE_POS_SALE:
        "{actor_role} ({actor_email}) completed POS sale {target_name} for {total} via {method}",

    ActivityCode.REFUND_POS_SALE:
        "{actor_role} ({actor_email}) refunded {amount} on POS sale {target_name}",

    # ---------------- SUBSCRIPTION PLANS ----------------
    ActivityCode.CREATE_PLAN:
        "{actor_role} ({actor_email}) created subscription plan {target_name}",

    ActivityCode.UPDATE_PLAN:
        "{actor_role} ({actor_email}) updated subscription plan {target_name}: {changes}",

    ActivityCode.DEACTIVATE_PLAN:
        "{actor_role} ({actor_email}) deactivated subscription plan {target_name}",

    # ---------------- COMPANY ----------------
    ActivityCode.UPDATE_COMPANY_PROFILE:
        "{actor_role} ({actor_email}) updated company profile: {changes}",

    ActivityCode.CHANGE_SUBSCRIPTION_PLAN:
        "{actor_role} ({actor_email}) switched subscription to {target_name}",

    ActivityCode.CHANGE_USER_ROLE:
        "{actor_role} ({actor_email}) changed role of {target_email} from {old_role} to {new_role}",

    ActivityCode.SET_SUBSCRIPTION_STATUS:
        "{actor_role} ({actor_email}) set subscription of {target_name} to {status}: {reason}",

    ActivityCode.EXPIRE_TRIAL:
        "{actor_role} ({actor_email}) moved {target_name} to past_due: trial ended {trial_ends_at}",

    # ---------------- EXPENSES ----------------
    ActivityCode.CREATE_EXPENSE:
        "{actor_role} ({actor_email}) recorded {category} expense of {amount} ({status})",

    ActivityCode.UPDATE_EXPENSE:
        "{actor_role} ({actor_email}) updated expense #{expense_id}: {changes}",

    ActivityCode.DELETE_EXPENSE:
        "{actor_role} ({actor_email}) deleted expense #{expense_id} of {amount}",
}
