# Tenancy
from app.models.companies.company_models import Company
from app.models.subscriptions.subscription_plan_models import SubscriptionPlan

# users and auth
from app.models.users.user_models import User
from app.models.support.activity_models import UserActivity

# Masters
from app.models.masters.customer_models import Customer
from app.models.masters.product_models import Product

# Billing
from app.models.billing.invoice_models import Invoice, InvoiceItem
from app.models.billing.payment_models import Payment

# Point of sale
from app.models.pos.pos_sale_models import POSSale, POSSaleItem

# Expenses
from app.models.expenses.expense_models import Expense
