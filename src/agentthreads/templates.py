"""Prompt templates shared by all threads."""

from dataclasses import dataclass, field

SYSTEM_PROMPT = """You are an AI assistant working in thread "{title}".

Project worktrees:
{worktrees}

Operating system: {os} ({arch}), shell: {shell}
{rules}"""


def _default_templates() -> dict[str, str]:
    return {"system_prompt": SYSTEM_PROMPT}


@dataclass
class Templates:
    """Named ``str.format`` templates.

    Missing placeholders render as empty strings rather than failing.
    """

    templates: dict[str, str] = field(default_factory=_default_templates)

    def names(self) -> list[str]:
        return sorted(self.templates)

    def render(self, template_name: str, /, **values: object) -> str:
        template = self.templates[template_name]
        return template.format_map(_Defaulting(values))


class _Defaulting(dict):
    def __missing__(self, key: str) -> str:
        return ""
