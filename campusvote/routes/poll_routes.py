from fastapi import APIRouter, Depends

from campusvote.models.poll_model import PollCreate, PollToggle, PollUpdate
from campusvote.routes.deps import get_services, require_admin, to_json
from campusvote.security import Identity
from campusvote.services import Services

router = APIRouter(prefix="/admin/polls", tags=["Admin Polls"])


@router.get("")
def get_all_polls(_: Identity = Depends(require_admin), services: Services = Depends(get_services)):
    return {"success": True, "polls": to_json(services.polls.list_polls())}


@router.post("")
def create_poll(poll: PollCreate, admin: Identity = Depends(require_admin),
                services: Services = Depends(get_services)):
    created = services.polls.create_poll(poll, created_by=admin.id)
    return {
        "success": True,
        "message": "Poll created successfully!",
        "poll_id": str(created["_id"]),
        "eligible_voters_count": created["eligible_voters_snapshot"],
    }


@router.put("/{poll_id}")
def update_poll(poll_id: str, changes: PollUpdate, _: Identity = Depends(require_admin),
                services: Services = Depends(get_services)):
    return {"success": True, "poll": to_json(services.polls.update_poll(poll_id, changes))}


@router.put("/{poll_id}/toggle")
def toggle_poll(poll_id: str, body: PollToggle, _: Identity = Depends(require_admin),
                services: Services = Depends(get_services)):
    poll = services.polls.toggle_poll(poll_id, body.is_active)
    return {"success": True, "is_active": poll["is_active"]}


@router.delete("/{poll_id}")
def delete_poll(poll_id: str, _: Identity = Depends(require_admin), services: Services = Depends(get_services)):
    deleted_votes = services.polls.delete_poll(poll_id)
    return {
        "success": True,
        "deleted_votes": deleted_votes,
        "message": "Poll and all associated votes deleted successfully",
    }


@router.get("/{poll_id}/results")
def get_results(poll_id: str, _: Identity = Depends(require_admin), services: Services = Depends(get_services)):
    return {"success": True, **to_json(services.ledger.tally(poll_id))}
