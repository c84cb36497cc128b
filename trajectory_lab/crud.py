import logging
from datetime import datetime, timezone
from typing import List, Optional
from sqlmodel import Session, select

from .models import FinancialProfile, ProfileRecord

logger = logging.getLogger(__name__)

def get_profiles(session: Session) -> List[ProfileRecord]:
    statement = select(ProfileRecord).order_by(ProfileRecord.created_at)
    return session.exec(statement).all()

def get_profile(session: Session, profile_id: str) -> Optional[ProfileRecord]:
    return session.get(ProfileRecord, profile_id)

def create_profile(session: Session, profile: FinancialProfile) -> ProfileRecord:
    """
    Store a profile under its own id. An existing record with the same id is
    replaced, so re-posting a profile behaves like an update.
    """
    db_profile = session.get(ProfileRecord, profile.id)
    if db_profile is None:
        db_profile = ProfileRecord(id=profile.id, name=profile.name, payload=profile.model_dump_json())
        db_profile.created_at = datetime.now(timezone.utc)
    else:
        db_profile.name = profile.name
        db_profile.payload = profile.model_dump_json()
    db_profile.updated_at = datetime.now(timezone.utc)
    session.add(db_profile)
    session.commit()
    session.refresh(db_profile)
    logger.info("Saved profile %s", db_profile.id)
    return db_profile

def update_profile(session: Session, profile_id: str, profile: FinancialProfile) -> Optional[ProfileRecord]:
    db_profile = session.get(ProfileRecord, profile_id)
    if not db_profile:
        return None
    # The URL id wins over whatever id the body carries
    stored = profile.model_copy(update={"id": profile_id})
    db_profile.name = stored.name
    db_profile.payload = stored.model_dump_json()
    db_profile.updated_at = datetime.now(timezone.utc)
    session.add(db_profile)
    session.commit()
    session.refresh(db_profile)
    return db_profile

def delete_profile(session: Session, profile_id: str) -> Optional[ProfileRecord]:
    db_profile = session.get(ProfileRecord, profile_id)
    if not db_profile:
        return None
    session.delete(db_profile)
    session.commit()
    logger.info("Deleted profile %s", profile_id)
    return db_profile
