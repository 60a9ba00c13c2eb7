from datetime import date
from typing import Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from pocket_ledger.db.core import get_db
from pocket_ledger.services.budget_tracker import BudgetTracker
from pocket_ledger.services.identity import LocalIdentityGateway
from pocket_ledger.services.ledger import LedgerAggregator
from pocket_ledger.services.reports import ReportEngine
from pocket_ledger.services.telemetry import LoggingTelemetrySink, TelemetrySink
from pocket_ledger.services.transactions import TransactionService

# Collaborators shared by every request of the process
telemetry_sink = LoggingTelemetrySink()
identity_gateway = LocalIdentityGateway(telemetry_sink)

bearer_scheme = HTTPBearer(auto_error=False)


def get_telemetry() -> TelemetrySink:
    return telemetry_sink


def get_identity_gateway() -> LocalIdentityGateway:
    return identity_gateway


def get_clock():
    return date.today


def get_token(credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme)) -> Optional[str]:
    return credentials.credentials if credentials else None


def get_current_user_id(
    token: Optional[str] = Depends(get_token),
    identity: LocalIdentityGateway = Depends(get_identity_gateway)
) -> int:
    user_id = identity.current_user_id(token)
    if user_id is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return user_id


# ===== SERVICE FACTORIES =====

def get_ledger(db: Session = Depends(get_db), telemetry: TelemetrySink = Depends(get_telemetry)) -> LedgerAggregator:
    return LedgerAggregator(db, telemetry)


def get_budget_tracker(
    db: Session = Depends(get_db),
    telemetry: TelemetrySink = Depends(get_telemetry),
    today=Depends(get_clock)
) -> BudgetTracker:
    return BudgetTracker(db, telemetry, today=today)


def get_report_engine(
    db: Session = Depends(get_db),
    telemetry: TelemetrySink = Depends(get_telemetry),
    today=Depends(get_clock)
) -> ReportEngine:
    return ReportEngine(db, telemetry, today=today)


def get_transaction_service(
    db: Session = Depends(get_db),
    ledger: LedgerAggregator = Depends(get_ledger),
    tracker: BudgetTracker = Depends(get_budget_tracker),
    telemetry: TelemetrySink = Depends(get_telemetry)
) -> TransactionService:
    return TransactionService(db, ledger, tracker, telemetry)
