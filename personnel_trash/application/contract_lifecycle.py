"""Read-only view of the contract lifecycle used by the recycle bin.

Contract numbering and extension overlap rules belong to contract management.
The trash only asks two things: whether an instructor still has a running
contract, and what a contract's end date is once its extension chain changes.
"""

from collections.abc import Sequence
from datetime import date, timedelta
from typing import Final

from sqlmodel import Session

from ..domain.entities import ContractStatus
from ..infrastructure.database.models import Extension
from ..infrastructure.database.repositories import ContractRepository

ACTIVE_CONTRACT_STATUSES: Final = frozenset(
    {ContractStatus.ACTIVE, ContractStatus.EXTENDED}
)


def has_active_contracts(session: Session, instructor_id: str) -> bool:
    """True while any of the instructor's contracts is in a non-terminal state."""
    contracts = ContractRepository(session).find_for_instructor(
        instructor_id, statuses=ACTIVE_CONTRACT_STATUSES
    )
    return bool(contracts)


def effective_end_date(contract_end: date, extensions: Sequence[Extension]) -> date:
    """End date of the highest-numbered extension, else the contract's own."""
    if not extensions:
        return contract_end
    last = max(extensions, key=lambda e: e.extension_number)
    return last.end_date


def end_date_after_extension_removal(
    removed: Extension, remaining: Sequence[Extension]
) -> tuple[date, ContractStatus]:
    """End date and status a contract falls back to when its last extension goes.

    With extensions left, the contract ends where the previous one ends and
    stays extended. Without any, it ends the day before the removed extension
    started, which was the original contract end date.
    """
    if remaining:
        return effective_end_date(removed.start_date, remaining), ContractStatus.EXTENDED
    return removed.start_date - timedelta(days=1), ContractStatus.ACTIVE
