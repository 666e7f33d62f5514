"""Prompt templates for task-priority suggestion."""

SYSTEM_PROMPT = (
    "You are an expert project manager for construction and site-maintenance "
    "work. You evaluate the urgency and importance of tasks."
)

USER_PROMPT_TEMPLATE = """Evaluate the urgency and importance of the following task based on its title and description.

Task Title: {title}
Task Description: {description}

Based on your evaluation, suggest a priority for the task. The priority must be one of: Low, Medium, High.

Return a JSON object with a single key, "priority", whose value is the suggested priority.

{{
  "priority": "<Low|Medium|High>"
}}"""


def build_user_prompt(title: str, description: str) -> str:
    return USER_PROMPT_TEMPLATE.format(
        title=title.strip(),
        description=description.strip() or "(none)",
    )
