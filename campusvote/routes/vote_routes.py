from fastapi import APIRouter, Depends

from campusvote.models.vote_model import Vote
from campusvote.routes.deps import get_services, public_user, require_voter, to_json
from campusvote.security import Identity
from campusvote.services import Services

vote_router = APIRouter(prefix="/voter", tags=["Vote"])


@vote_router.get("/profile")
def get_profile(voter: Identity = Depends(require_voter), services: Services = Depends(get_services)):
    return {"success": True, "voter": to_json(public_user(services.voters.get_voter(voter.id)))}


@vote_router.get("/polls")
def get_polls(voter: Identity = Depends(require_voter), services: Services = Depends(get_services)):
    """Polls the voter is eligible for, each flagged with has_voted."""
    record = services.voters.get_voter(voter.id)
    return {"success": True, "polls": to_json(services.resolver.polls_for(record))}


@vote_router.post("/vote")
def cast_vote(vote: Vote, voter: Identity = Depends(require_voter), services: Services = Depends(get_services)):
    """
    Casts a vote for the logged-in voter.
    """
    services.ledger.cast_vote(vote.poll_id, voter.id, vote.candidate)
    return {"success": True, "message": "Vote cast successfully!", "candidate": vote.candidate}
