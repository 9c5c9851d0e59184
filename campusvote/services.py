from dataclasses import dataclass
from typing import Optional

from campusvote.analytics import Analytics
from campusvote.crud import Accounts
from campusvote.database import Database
from campusvote.eligibility import EligibilityResolver
from campusvote.email_delivery import CredentialMailer
from campusvote.poll_registry import PollRegistry
from campusvote.vote_ledger import VoteLedger
from campusvote.voter_registry import VoterRegistry


@dataclass
class Services:
    db: Database
    ledger: VoteLedger
    resolver: EligibilityResolver
    voters: VoterRegistry
    polls: PollRegistry
    analytics: Analytics
    accounts: Accounts


def build_services(db: Optional[Database] = None, mailer=None) -> Services:
    """Wire every component around one shared storage context."""
    db = db if db is not None else Database()
    mailer = mailer if mailer is not None else CredentialMailer()
    ledger = VoteLedger(db)
    resolver = EligibilityResolver(db)
    return Services(
        db=db,
        ledger=ledger,
        resolver=resolver,
        voters=VoterRegistry(db, ledger, mailer),
        polls=PollRegistry(db, resolver, ledger),
        analytics=Analytics(db, resolver, ledger),
        accounts=Accounts(db),
    )
