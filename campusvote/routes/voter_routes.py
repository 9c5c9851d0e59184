from typing import Optional

from fastapi import APIRouter, Depends, File, UploadFile

from campusvote.models.voter_model import (
    BulkActionRequest, GroupBy, SendCredentialsRequest, VoterFilter, VoterIn, VoterUpdate,
)
from campusvote.roster import parse_roster
from campusvote.routes.deps import get_services, require_admin, to_json
from campusvote.services import Services

router = APIRouter(prefix="/admin/voters", tags=["Admin Voters"], dependencies=[Depends(require_admin)])


@router.get("")
def list_voters(
    group_by: GroupBy = "none",
    year: Optional[str] = None,
    section: Optional[str] = None,
    department: Optional[str] = None,
    reg_no: Optional[str] = None,
    email: Optional[str] = None,
    services: Services = Depends(get_services),
):
    voter_filter = VoterFilter(year=year, section=section, department=department, reg_no=reg_no, email=email)
    if group_by == "none":
        return {"success": True, "voters": to_json(services.voters.query_voters(voter_filter))}
    groups = services.voters.group_voters(voter_filter, group_by)
    return {"success": True, "groups": to_json(groups)}


@router.post("")
def add_voter(voter: VoterIn, services: Services = Depends(get_services)):
    created = services.voters.create_voter(voter)
    return {"success": True, "voter": to_json(created)}


@router.put("")
def update_voter(changes: VoterUpdate, services: Services = Depends(get_services)):
    updated = services.voters.update_voter(changes)
    return {"success": True, "voter": to_json(updated)}


@router.post("/upload")
async def upload_voters(file: UploadFile = File(...), services: Services = Depends(get_services)):
    content = await file.read()
    roster = parse_roster(file.filename, content)
    created = services.voters.bulk_create_voters(roster.rows)
    return {
        "success": True,
        "count": len(created),
        "sheets_processed": len(roster.sheet_names),
        "sheet_names": roster.sheet_names,
        "total_rows_processed": len(roster.rows),
    }


@router.post("/bulk-actions")
def bulk_action(body: BulkActionRequest, services: Services = Depends(get_services)):
    result = services.voters.bulk_mutate(body.action, body.voter_ids, body.filters)
    return {"success": True, **result}


@router.post("/send-credentials")
def send_credentials(body: SendCredentialsRequest, services: Services = Depends(get_services)):
    if body.voter_id:
        result = services.voters.bulk_mutate("send-credentials", voter_ids=[body.voter_id])
    else:
        result = services.voters.bulk_mutate("send-credentials", voter_filter=VoterFilter())
    return {"success": True, **result}


@router.delete("/groups")
def delete_group(
    year: str,
    section: Optional[str] = None,
    department: Optional[str] = None,
    services: Services = Depends(get_services),
):
    group_key = {"year": year, "section": section, "department": department}
    deleted = services.voters.delete_group(group_key)
    return {
        "success": True,
        "deleted_count": deleted,
        "message": f"Successfully deleted {deleted} voters",
    }


@router.get("/{voter_id}")
def get_voter(voter_id: str, services: Services = Depends(get_services)):
    return {"success": True, "voter": to_json(services.voters.get_voter(voter_id))}


@router.delete("/{voter_id}")
def delete_voter(voter_id: str, services: Services = Depends(get_services)):
    services.voters.delete_voter(voter_id)
    return {"success": True, "message": "Voter and their votes deleted"}
