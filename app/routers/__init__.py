# app/routers/__init__.py

from .users.user_router import router as user_router

from .auth.auth_router import router as auth_router
from .auth.activity_router import router as activity_router

from .masters.customer_router import router as customer_router
from .masters.product_router import router as product_router

from .billing.invoice_router import router as invoice_router
from .billing.gateway_router import router as gateway_router
from .billing.payment_router import router as payment_router

from .pos.pos_router import router as pos_router
from .subscriptions.subscription_plan_router import router as subscription_plan_router
from .reports.report_router import router as report_router

from .companies.company_router import router as company_router
from .portal.portal_router import router as portal_router
from .expenses.expense_router import router as expense_router


__all__ = [
"user_router",

"auth_router",
"activity_router",

"customer_router",
"product_router",

"invoice_router",
"gateway_router",
"payment_router",

"pos_router",
"subscription_plan_router",
"report_router",

"company_router",
"portal_router",
"expense_router",
]
