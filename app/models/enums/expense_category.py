from enum import Enum

class ExpenseCategory(str, Enum):
    rent = "Rent"
    utilities = "Utilities"
    salaries = "Salaries"
    supplies = "Supplies"
    marketing = "Marketing"
    travel = "Travel"
    insurance = "Insurance"
    professional_services = "Professional Services"
    equipment = "Equipment"
    software = "Software"
    maintenance = "Maintenance"
    office_expenses = "Office Expenses"
    telecommunications = "Telecommunications"
    other = "Other"
