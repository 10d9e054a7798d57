"""SMS body rendering using Jinja2.

Templates live in the yaya.notifications.sms_templates package directory and
are rendered with StrictUndefined so a missing variable fails loudly.
"""

import logging
from typing import Any, Dict

from jinja2 import Environment, PackageLoader, StrictUndefined, TemplateError

from yaya.domain.models import Job

from .models import NotificationTemplateError

logger = logging.getLogger(__name__)


def build_job_match_context(job: Job) -> Dict[str, Any]:
    """Template variables for a job-match SMS."""
    return {
        "skill": job.skill_required.value,
        "location": job.location.value,
        "daily_rate": job.daily_rate,
        "duration": job.project_duration.value,
        "notes": job.additional_notes,
        "contact_phone": job.contact_phone,
    }


class SmsTemplateRenderer:
    """Renders SMS bodies from package templates.

    Templates are cached by the Jinja2 environment after first load.
    """

    def __init__(
        self,
        template_dir: str = "sms_templates",
        job_match_template: str = "job_match.txt.j2",
    ):
        self.job_match_template_name = job_match_template

        # SMS is plain text, nothing to escape
        self.env = Environment(
            loader=PackageLoader("yaya.notifications", template_dir),
            autoescape=False,
            undefined=StrictUndefined,
            keep_trailing_newline=False,
        )

        logger.debug(f"Initialized SmsTemplateRenderer with templates from {template_dir}")

    def render_job_match(self, job: Job) -> str:
        """Render the job alert SMS for ``job`` as a single line.

        Raises:
            NotificationTemplateError: If template rendering fails
        """
        return self.render(self.job_match_template_name, build_job_match_context(job))

    def render(self, template_name: str, context: Dict[str, Any]) -> str:
        """Render any template, collapsing it to one trimmed line.

        Raises:
            NotificationTemplateError: If template rendering fails
        """
        try:
            template = self.env.get_template(template_name)
            return " ".join(template.render(context).split("\n")).strip()
        except TemplateError as e:
            error_msg = f"Template rendering failed: {e}"
            logger.error(error_msg, exc_info=True)
            raise NotificationTemplateError(error_msg) from e
