"""Square OAuth permission scopes."""

# Full catalog, grouped the way Square's permission reference groups them
AVAILABLE_SCOPES: tuple[str, ...] = (
    # Payments
    "PAYMENTS_WRITE",
    "PAYMENTS_READ",
    "PAYMENTS_WRITE_ADDITIONAL_RECIPIENTS",
    "PAYMENTS_WRITE_IN_PERSON",
    # Customers
    "CUSTOMERS_WRITE",
    "CUSTOMERS_READ",
    # Orders
    "ORDERS_WRITE",
    "ORDERS_READ",
    # Items
    "ITEMS_WRITE",
    "ITEMS_READ",
    # Merchant profile
    "MERCHANT_PROFILE_READ",
    "MERCHANT_PROFILE_WRITE",
    # Employees
    "EMPLOYEES_READ",
    "EMPLOYEES_WRITE",
    # Bank accounts
    "BANK_ACCOUNTS_READ",
    # Settlements
    "SETTLEMENTS_READ",
    # Loyalty
    "LOYALTY_READ",
    "LOYALTY_WRITE",
    # Gift cards
    "GIFTCARDS_READ",
    "GIFTCARDS_WRITE",
    # Online store
    "ONLINE_STORE_SITE_READ",
    "ONLINE_STORE_SNIPPETS_WRITE",
    "ONLINE_STORE_SNIPPETS_READ",
    # Invoices
    "INVOICES_READ",
    "INVOICES_WRITE",
    # Inventory
    "INVENTORY_READ",
    "INVENTORY_WRITE",
    # Disputes
    "DISPUTES_READ",
    "DISPUTES_WRITE",
    # Devices
    "DEVICE_CREDENTIAL_MANAGEMENT",
    # Cash drawers
    "CASH_DRAWER_READ",
)

# What the gift card storefront asks a merchant to grant
REQUIRED_SCOPES: tuple[str, ...] = (
    "PAYMENTS_WRITE",
    "PAYMENTS_READ",
    "CUSTOMERS_WRITE",
    "CUSTOMERS_READ",
    "ORDERS_WRITE",
    "ORDERS_READ",
    "GIFTCARDS_READ",
    "GIFTCARDS_WRITE",
    "MERCHANT_PROFILE_READ",
    "DISPUTES_READ",
    "DISPUTES_WRITE",
)


def unknown_scopes(scopes: list[str] | tuple[str, ...]) -> list[str]:
    """Return the entries of ``scopes`` that are not in the catalog."""
    known = set(AVAILABLE_SCOPES)
    return [s for s in scopes if s not in known]


def missing_scopes(granted: list[str] | tuple[str, ...]) -> list[str]:
    """Return required scopes absent from a granted scope list."""
    granted_set = set(granted)
    return [s for s in REQUIRED_SCOPES if s not in granted_set]
