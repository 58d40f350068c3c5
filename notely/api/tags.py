"""Tag management."""

from fastapi import APIRouter, Depends, HTTPException

from notely.core.auth_middleware import AuthContext, require_auth
from notely.core.schemas_notes import TagCreate, TagOut, TagUpdate
from notely.db import tags as tags_db

router = APIRouter(prefix="/tags")


@router.get("", response_model=list[TagOut])
async def list_tags(auth: AuthContext = Depends(require_auth)) -> list[TagOut]:
    return tags_db.list_tags(auth.user_id)


@router.post("", response_model=TagOut, status_code=201)
async def create_tag(request: TagCreate, auth: AuthContext = Depends(require_auth)) -> TagOut:
    name = request.name.strip()
    if tags_db.get_tag_by_name(auth.user_id, name):
        raise HTTPException(status_code=409, detail="Tag already exists")
    row = tags_db.create_tag(auth.user_id, name, request.color)
    return TagOut(id=row["id"], name=row["name"], color=row.get("color"))


@router.put("/{tag_id}", response_model=TagOut)
async def update_tag(tag_id: str, request: TagUpdate, auth: AuthContext = Depends(require_auth)) -> TagOut:
    fields = request.model_dump(exclude_none=True)
    if "name" in fields:
        fields["name"] = fields["name"].strip()
    if not fields:
        raise HTTPException(status_code=422, detail="Nothing to update")

    row = tags_db.update_tag(auth.user_id, tag_id, fields)
    if not row:
        raise HTTPException(status_code=404, detail="Tag not found")
    return TagOut(id=row["id"], name=row["name"], color=row.get("color"))


@router.delete("/{tag_id}")
async def delete_tag(tag_id: str, auth: AuthContext = Depends(require_auth)) -> dict:
    if not tags_db.delete_tag(auth.user_id, tag_id):
        raise HTTPException(status_code=404, detail="Tag not found")
    return {"message": "Tag deleted"}
