"""
Identity Gateway

Local email/password identity. Session tokens are opaque random strings kept in
process memory; restarting the app signs everyone out.
"""
import secrets
from typing import Dict, Optional

from sqlalchemy.orm import Session

from pocket_ledger.crud import crud_user
from pocket_ledger.db.core import UserDB, UnauthenticatedError
from pocket_ledger.logging_config import get_logger
from pocket_ledger.models.user import UserCreate
from pocket_ledger.services.telemetry import TelemetrySink

logger = get_logger(__name__)


class LocalIdentityGateway:

    def __init__(self, telemetry: TelemetrySink):
        self.telemetry = telemetry
        self._sessions: Dict[str, int] = {}

    def sign_up(self, db: Session, user_data: UserCreate) -> UserDB:
        db_user = crud_user.create_db_user(db, user_data)
        self.telemetry.record_event("sign_up_success", {"user_id": db_user.db_id})
        logger.info(f"User {db_user.db_id} signed up")
        return db_user

    def sign_in(self, db: Session, email: str, password: str) -> str:
        """Return a new session token, or raise UnauthenticatedError on bad credentials"""
        db_user = crud_user.authenticate_user(db, email=email, password=password)
        if not db_user:
            logger.info("Rejected sign-in attempt")
            raise UnauthenticatedError("Incorrect email or password")

        token = secrets.token_urlsafe(32)
        self._sessions[token] = db_user.db_id
        self.telemetry.record_event("sign_in_success", {"user_id": db_user.db_id})
        return token

    def sign_out(self, token: str) -> None:
        user_id = self._sessions.pop(token, None)
        if user_id is not None:
            self.telemetry.record_event("sign_out", {"user_id": user_id})

    def current_user_id(self, token: Optional[str]) -> Optional[int]:
        if not token:
            return None
        return self._sessions.get(token)

    def require_user_id(self, token: Optional[str]) -> int:
        user_id = self.current_user_id(token)
        if user_id is None:
            raise UnauthenticatedError("Not authenticated")
        return user_id
