"""Content repository layer."""

from sqlalchemy.orm import Session


def list_content(db: Session, *, active_only: bool = True):
    from models import Content

    query = db.query(Content)
    if active_only:
        query = query.filter(Content.is_active.is_(True))
    return query.order_by(Content.key.asc()).all()


def get_content(db: Session, *, key: str):
    from models import Content

    return db.query(Content).filter(Content.key == key).first()


def upsert_content(db: Session, *, key: str, value: str, updated_by: str, title=None, section=None, is_active=None):
    from models import Content

    row = get_content(db, key=key)
    if row is None:
        row = Content(key=key, value=value, title=title, section=section, updated_by=updated_by)
        if is_active is not None:
            row.is_active = is_active
        db.add(row)
        return row

    row.value = value
    row.updated_by = updated_by
    if title is not None:
        row.title = title
    if section is not None:
        row.section = section
    if is_active is not None:
        row.is_active = is_active
    return row


def get_site_metadata(db: Session):
    from models import SiteMetadata

    return db.query(SiteMetadata).order_by(SiteMetadata.id.desc()).first()


def save_site_metadata(db: Session, *, updated_by: str, **fields):
    from models import SiteMetadata

    row = get_site_metadata(db)
    if row is None:
        row = SiteMetadata(updated_by=updated_by, **fields)
        db.add(row)
        return row
    for name, value in fields.items():
        setattr(row, name, value)
    row.updated_by = updated_by
    return row
