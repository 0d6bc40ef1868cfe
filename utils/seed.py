from models import db
from models.service import Service

DEFAULT_SERVICES = [
    # (category, name, duration_min, price_cents)
    ("nails", "Classic Manicure", 30, 3000),
    ("nails", "Gel Manicure", 60, 4500),
    ("nails", "Full Set Acrylics", 90, 6500),
    ("babysitting", "Evening Babysitting", 180, 6000),
]

def seed_services():
    """Insert the starter catalogue; existing names are left alone."""
    existing = {(s.category, s.name) for s in Service.query.all()}
    created = 0
    for order, (category, name, duration, price) in enumerate(DEFAULT_SERVICES):
        if (category, name) in existing:
            continue
        db.session.add(Service(
            category=category,
            name=name,
            duration_min=duration,
            price_cents=price,
            sort_order=order,
        ))
        created += 1
    db.session.commit()
    return created
