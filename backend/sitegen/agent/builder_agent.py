import html
import re

from sitegen.agent.artifacts import SiteSpecification
from sitegen.agent.base import BaseAgent, MockAgent
from sitegen.agent.llm_client import LLMClient, strip_code_fences
from sitegen.agent.prompts.builder import (
    BUILDER_PROMPT_TEMPLATE,
    BUILDER_SYSTEM_PROMPT,
    DEFAULT_NAV_SECTIONS,
    MASTER_TEMPLATE,
    TEMPLATE_PLACEHOLDERS,
)
from sitegen.core.config import settings

_DOCTYPE = re.compile(r"<!doctype\s+html", re.IGNORECASE)


def has_doctype(markup: str) -> bool:
    return bool(_DOCTYPE.search(markup or ""))


def render_master_template(values: dict[str, str], nav_sections: list[tuple[str, str]]) -> str:
    nav_items = "\n".join(
        f'                    <li><a href="#{html.escape(anchor)}">{html.escape(label)}</a></li>'
        for anchor, label in nav_sections
    )
    escaped = {key: html.escape(value) for key, value in values.items()}
    return MASTER_TEMPLATE.substitute(escaped, nav_items=nav_items)


class BuilderAgent(BaseAgent[SiteSpecification, str]):
    """
    Agent responsible for reskinning the master template into the final markup document.
    """

    def __init__(self, llm: LLMClient | None = None):
        super().__init__(model_name=settings.MODEL_BUILDER or settings.MODEL_DEFAULT, llm=llm)

    @staticmethod
    def build_prompt(input_data: SiteSpecification) -> str:
        template = render_master_template(TEMPLATE_PLACEHOLDERS, DEFAULT_NAV_SECTIONS)
        return BUILDER_PROMPT_TEMPLATE.format(
            specification=input_data.model_dump_json(indent=2, exclude_none=True),
            template=template,
        ).strip()

    async def run(self, input_data: SiteSpecification) -> str:
        raw_output = await self.llm.generate_text(
            self.build_prompt(input_data),
            system_prompt=BUILDER_SYSTEM_PROMPT,
        )
        markup = strip_code_fences(raw_output)
        if not markup:
            raise ValueError("Builder returned empty markup")
        return markup


class MockBuilderAgent(MockAgent[SiteSpecification, str]):
    """Renders the master template with the specification's name, palette and sections."""

    async def run(self, input_data: SiteSpecification) -> str:
        style = input_data.site_style_guidelines
        business_name = input_data.business_name or "Your Business"
        values = {
            **TEMPLATE_PLACEHOLDERS,
            "business_name": business_name,
            "meta_description": f"{business_name} - official website.",
            "tagline": f"Welcome to {business_name}.",
            "location": "Visit us or get in touch today.",
        }
        if style:
            for key in ("primary_color", "secondary_color", "accent_color", "font_heading", "font_body"):
                value = getattr(style, key)
                if value:
                    values[key] = value

        nav_sections = DEFAULT_NAV_SECTIONS
        if input_data.page_sections:
            nav_sections = [
                (section.section_id, section.section_name)
                for section in input_data.page_sections
                if section.section_id not in {"hero", "footer"}
            ] or DEFAULT_NAV_SECTIONS
        return render_master_template(values, nav_sections)
