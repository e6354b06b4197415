from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from ..core.errors import DuplicateTemplate
from ..db.database import get_db
from ..schemas.template import TemplateCreate, TemplateUpdate, TemplateOut
from ..security.auth import UserContext, get_current_user
from ..services import quick_reply_service as service

router = APIRouter()

NOT_FOUND = {"message": "Template not found."}


@router.get("")
def index(db: Session = Depends(get_db), user: UserContext = Depends(get_current_user)):
    return {"templates": [TemplateOut.model_validate(t).model_dump(mode='json') for t in service.get_user_templates(db)]}


@router.post("")
def store(payload: TemplateCreate, db: Session = Depends(get_db), user: UserContext = Depends(get_current_user)):
    try:
        template = service.create_template(db, user, payload.name, payload.template_text, payload.sort_order or 0)
    except DuplicateTemplate as e:
        return JSONResponse(status_code=422, content={"message": str(e)})
    return {"template": TemplateOut.model_validate(template).model_dump(mode='json'), "message": "Template created successfully."}


@router.post("/create-defaults")
def create_defaults(db: Session = Depends(get_db), user: UserContext = Depends(get_current_user)):
    service.create_default_templates(db, user)
    return {"message": "Default templates created successfully."}


@router.put("/{template_id}")
def update(template_id: int, payload: TemplateUpdate, db: Session = Depends(get_db), user: UserContext = Depends(get_current_user)):
    try:
        updated = service.update_template(db, user, template_id, payload.model_dump(exclude_none=True))
    except DuplicateTemplate as e:
        return JSONResponse(status_code=422, content={"message": str(e)})
    if not updated:
        return JSONResponse(status_code=404, content=NOT_FOUND)
    return {"message": "Template updated successfully."}


@router.delete("/{template_id}")
def destroy(template_id: int, db: Session = Depends(get_db), user: UserContext = Depends(get_current_user)):
    if not service.delete_template(db, user, template_id):
        return JSONResponse(status_code=404, content=NOT_FOUND)
    return {"message": "Template deleted successfully."}
