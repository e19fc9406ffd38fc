import logging
from typing import Any, Dict, List

from backend.extensions import db
from backend.models.job_template import JobTemplate, JobTemplateMaterial, JobTemplateTask
from backend.schemas.job_template_schema import JobTemplateInputSchema
from backend.services.common import atomic, get_or_404, load_payload, require_contractor
from backend.services.errors import AuthorizationError, ValidationError
from backend.utils.validation import normalize_tags

logger = logging.getLogger(__name__)


class JobTemplateService:
    """Reusable job descriptions a contractor can start quotes from."""

    @staticmethod
    def _apply(template, payload):
        if 'category_tags' in payload:
            tags = normalize_tags(payload['category_tags'])
            if not tags:
                raise ValidationError("At least one category tag is required", errors={'category_tags': ['Required']})
            template.category_tags = tags
        for key in ('title', 'description'):
            if key in payload:
                setattr(template, key, payload[key].strip())
        for key in ('estimated_duration_days', 'estimated_budget'):
            if key in payload:
                setattr(template, key, payload[key])
        if 'tasks' in payload:
            template.tasks = [
                JobTemplateTask(description=task['description'].strip(), estimated_hours=task['estimated_hours'], sort_order=index)
                for index, task in enumerate(payload['tasks'])
            ]
        if 'materials' in payload:
            template.materials = [
                JobTemplateMaterial(
                    description=material['description'].strip(),
                    quantity=material['quantity'],
                    unit_price=round(material['unit_price'], 2),
                    sort_order=index,
                )
                for index, material in enumerate(payload['materials'])
            ]

    @staticmethod
    def get_template(actor, template_id: int) -> JobTemplate:
        require_contractor(actor)
        template = get_or_404(JobTemplate, template_id, 'Job template')
        if template.contractor_id != actor.id:
            raise AuthorizationError("You can only use your own job templates")
        return template

    @staticmethod
    def list_templates(actor) -> List[JobTemplate]:
        require_contractor(actor)
        return JobTemplate.query.filter_by(contractor_id=actor.id).order_by(JobTemplate.title).all()

    @staticmethod
    def create_template(actor, data: Dict[str, Any]) -> JobTemplate:
        require_contractor(actor)
        payload = load_payload(JobTemplateInputSchema(), data)

        template = JobTemplate(contractor_id=actor.id)
        JobTemplateService._apply(template, payload)
        with atomic('create the job template'):
            db.session.add(template)

        logger.info(f"Job template {template.id} '{template.title}' created by contractor {actor.id}")
        return template

    @staticmethod
    def update_template(actor, template_id: int, data: Dict[str, Any]) -> JobTemplate:
        """Partial update; tasks and materials are replaced as a whole when given."""
        template = JobTemplateService.get_template(actor, template_id)
        payload = load_payload(JobTemplateInputSchema(), data, partial=True)

        with atomic('update the job template'):
            JobTemplateService._apply(template, payload)

        logger.info(f"Job template {template.id} updated by contractor {actor.id}: {sorted(payload)}")
        return template

    @staticmethod
    def delete_template(actor, template_id: int) -> None:
        template = JobTemplateService.get_template(actor, template_id)
        with atomic('delete the job template'):
            db.session.delete(template)
        logger.info(f"Job template {template_id} deleted by contractor {actor.id}")
