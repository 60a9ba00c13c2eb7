from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError
from typing import Optional
from uuid import uuid4
from datetime import datetime
import bcrypt

from pocket_ledger.db.core import UserDB, NotFoundError
from pocket_ledger.models.user import UserCreate, UserUpdate


# ===== PASSWORD HASHING UTILITIES =====

def hash_password(password: str) -> str:
    return bcrypt.hashpw(password.encode('utf-8'), bcrypt.gensalt()).decode('utf-8')


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return bcrypt.checkpw(plain_password.encode('utf-8'), hashed_password.encode('utf-8'))


# ===== DATABASE OPERATIONS =====

def create_db_user(db: Session, user_data: UserCreate) -> UserDB:
    """Create a new user in the database"""

    existing_user = db.query(UserDB).filter(UserDB.email == user_data.email).first()
    if existing_user:
        raise ValueError("Email already registered")

    db_user = UserDB(
        id=uuid4(),
        email=user_data.email,
        name=user_data.name,
        password_hash=hash_password(user_data.password),
        preferred_currency=user_data.preferred_currency,
        created_at=datetime.utcnow(),
        updated_at=datetime.utcnow()
    )

    try:
        db.add(db_user)
        db.commit()
        db.refresh(db_user)
        return db_user
    except IntegrityError:
        db.rollback()
        raise ValueError("Email already registered")


def read_db_user(db: Session, user_id: Optional[int] = None, email: Optional[str] = None) -> Optional[UserDB]:
    """Read a user by database id or email"""

    query = db.query(UserDB)

    if user_id:
        return query.filter(UserDB.db_id == user_id).first()
    elif email:
        return query.filter(UserDB.email == email.lower().strip()).first()
    else:
        raise ValueError("Must provide at least one identifier (user_id or email)")


def update_db_user(db: Session, user_id: int, user_updates: UserUpdate) -> UserDB:
    """Update profile fields of a user"""

    db_user = read_db_user(db, user_id=user_id)
    if not db_user:
        raise NotFoundError(f"User with id {user_id} not found")

    update_data = user_updates.model_dump(exclude_unset=True)
    # Only the profile image may be cleared; a null name or currency means "unchanged"
    update_data = {k: v for k, v in update_data.items() if v is not None or k == "profile_image"}
    for field, value in update_data.items():
        setattr(db_user, field, value)

    db_user.updated_at = datetime.utcnow()
    try:
        db.commit()
        db.refresh(db_user)
        return db_user
    except IntegrityError:
        db.rollback()
        raise ValueError("User update failed due to database constraint")


def authenticate_user(db: Session, email: str, password: str) -> Optional[UserDB]:
    """Return the user when the credentials match, otherwise None"""

    user = read_db_user(db, email=email)
    if not user:
        return None
    if not verify_password(password, user.password_hash):
        return None
    return user
