"""GET /api/templates, POST /api/templates/detect — built-in engine export templates."""
import logging
from fastapi import APIRouter, HTTPException
from pydantic import BaseModel

from core.templates import get_template, list_templates, match_template
from models.schema import EngineTemplate, TemplateMatch

router = APIRouter()
logger = logging.getLogger(__name__)


class DetectRequest(BaseModel):
    columns: list[str]


@router.get("/templates", response_model=list[EngineTemplate])
def templates():
    return list_templates()


@router.get("/templates/{template_id}", response_model=EngineTemplate)
def template_detail(template_id: str):
    template = get_template(template_id)
    if template is None:
        raise HTTPException(404, detail=f"Template '{template_id}' not found.")
    return template


@router.post("/templates/detect", response_model=TemplateMatch)
def detect(req: DetectRequest):
    match = match_template(req.columns)
    if match.template:
        logger.info("Detected template %s for %d columns", match.template.id, len(req.columns))
    return match
