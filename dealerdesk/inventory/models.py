"""Vehicle lifecycle constants."""

STATUS_INVENTORY = 'Inventory'
STATUS_SOLD = 'Sold'
STATUS_ARB = 'ARB'
STATUS_WITHDRAWN = 'Withdrawn'
STATUS_COMPLETE = 'Complete'

VEHICLE_STATUSES = (STATUS_INVENTORY, STATUS_SOLD, STATUS_ARB, STATUS_WITHDRAWN, STATUS_COMPLETE)

TITLE_STATUSES = ('Present', 'Absent', 'In Transit')
MISSING_TITLE_STATUSES = ('Absent', 'In Transit')

# Cleared when a buyer withdraws from a sale
SALE_FIELDS = (
    'sale_invoice', 'sale_date', 'buyer_dealership', 'buyer_contact_name',
    'buyer_aa_id', 'buyer_reference', 'sale_invoice_status',
)

# Cleared on a hard inventory withdrawal
PURCHASE_FIELDS = ('bought_price', 'buy_fee', 'other_charges')

EDITABLE_FIELDS = (
    'vin', 'year', 'make', 'model', 'trim', 'exterior_color', 'odometer',
    'title_status', 'vehicle_location', 'bought_price', 'buy_fee', 'other_charges',
)
