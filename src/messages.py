from datetime import date

PICKUP = "pickup"
RETURN = "return"
EVENTS = (PICKUP, RETURN)

RENTER = "renter"
LISTER = "lister"

# SMS templates by (event, role)
TEMPLATES = {
    (PICKUP, RENTER): lambda brand, day: (
        f"{brand}: Your item is scheduled for pickup today ({day}). "
        f'After you pick it up, open {brand} and tap "Confirm Pick Up."'
    ),
    (PICKUP, LISTER): lambda brand, day: (
        f"{brand}: A renter is scheduled to pick up your item today ({day}). "
        f"Once they’ve collected it, open {brand} to monitor the order status."
    ),
    (RETURN, RENTER): lambda brand, day: (
        f"{brand}: Your item rental is due back today ({day}). "
        f'After you return it, open {brand} and tap "Mark Item as Returned."'
    ),
    (RETURN, LISTER): lambda brand, day: (
        f"{brand}: A renter is scheduled to return your item today ({day}). "
        f'Once you receive it, open {brand} and tap "Mark Item as Dropped Off," '
        f'then tap "Approve Return" to finish the order.'
    ),
}


def build_body(event: str, role: str, due_day: date, brand: str = "GetSuited") -> str:
    """
    Build the SMS body for a reminder event and recipient role.
    """
    template = TEMPLATES.get((event, role))
    if template is None:
        raise ValueError(f"Unsupported reminder: event={event} role={role}")

    return template(brand, due_day.isoformat())
