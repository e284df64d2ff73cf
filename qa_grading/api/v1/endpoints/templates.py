# qa_grading/api/v1/endpoints/templates.py
from fastapi import APIRouter, Depends

from qa_grading.core.security import CurrentUser, get_current_user
from qa_grading.schemas.template import TemplateResolveRequest, TemplateResolveResponse
from qa_grading.services import templates as template_service

router = APIRouter(prefix="/templates", tags=["templates"])


@router.post("/resolve", response_model=TemplateResolveResponse)
def resolve_template(
    payload: TemplateResolveRequest,
    current_user: CurrentUser = Depends(get_current_user),
):
    return TemplateResolveResponse(
        class_code=payload.class_code,
        valid=template_service.validate_class_code(payload.class_code),
        trial_class=template_service.is_trial_class(payload.class_code),
        template_id=template_service.get_template_id_for_class_code(
            payload.class_code, payload.templates
        ),
    )
