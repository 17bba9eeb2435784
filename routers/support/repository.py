"""Support repository layer."""

from sqlalchemy.orm import Session


def _models():
    from models import CommodityRegistration, ContactMessage, CurrencyRegistration

    return {
        "commodity": CommodityRegistration,
        "currency": CurrencyRegistration,
        "contact": ContactMessage,
    }


def create(db: Session, kind: str, **fields):
    row = _models()[kind](**fields)
    db.add(row)
    return row


def list_all(db: Session, kind: str, *, status=None, limit: int = 200):
    model = _models()[kind]
    query = db.query(model)
    if status is not None and hasattr(model, "status"):
        query = query.filter(model.status == status)
    return query.order_by(model.created_at.desc(), model.id.desc()).limit(limit).all()


def get(db: Session, kind: str, *, row_id: int):
    model = _models()[kind]
    return db.query(model).filter(model.id == row_id).first()
