"""
Prompt templates for every request sent to the text and image models.

All functions here are pure: they interpolate a subject, filters or an
expert into fixed template text and never raise. A blank subject simply
produces a less specific prompt.
"""

from find_my_expert.constants import DEFAULT_REGION_CLAUSE, RECORD_SEPARATOR
from find_my_expert.models.expert import Expert, ExpertDetails
from find_my_expert.models.search import Filters

DISCOVERY_FORMAT_INSTRUCTIONS = f"""

For each expert found, provide their full name, university, and department.
Also, include a brief, one-paragraph summary of their specific expertise and relevant work.
Include a concise, one-sentence justification explaining why this expert is a relevant match for the search query.
Based on the name and any public profile, state their likely gender as male, female, or unknown.
If you find a publicly available profile photo URL for the expert, include it; otherwise write N/A.

Structure each expert's information STRICTLY as follows, using '{RECORD_SEPARATOR}' as a separator between experts:

Name: [Full Name]
University: [University Name]
Department: [Department Name]
Gender: [male, female, or unknown]
ImageUrl: [Profile photo URL or N/A]
Expertise: [Summary of expertise]
Justification: [One-sentence explanation of relevance]
{RECORD_SEPARATOR}
"""

DETAIL_PROMPT = """
Provide a detailed list of publications and notable projects/work for the academic expert: {name} from {university}, who works in the {department} department.

Focus on their most significant and relevant contributions related to their stated expertise.
Find 3-5 key publications and 2-3 key projects.

Return the information strictly as a JSON object with two keys: "publications" and "projects".
- "publications": should be an array of strings, with each string being a formatted citation of a key publication.
- "projects": should be an array of strings, with each string briefly describing a significant project or area of work.

If no information can be found for a category, return an empty array for that key. For example: {{ "publications": [], "projects": ["Project A description..."] }}
"""

SUGGESTIONS_PROMPT = """
Based on the search for academic experts in "{subject}", generate 3 to 5 creative, alternative, or more specific search queries that might yield better or related results.
The suggestions should be distinct and offer different angles for the search.

Return the suggestions strictly as a JSON array of strings. For example: ["suggestion 1", "suggestion 2", "suggestion 3"]
"""

INTERVIEW_SUGGESTIONS_PROMPT = """
You are helping a user prepare to interview {name}, an academic expert in the {department} department at {university}.
Their expertise: {expertise}

Their key publications:
{publications}

Their key projects:
{projects}

Generate 4 insightful interview questions the user could ask this expert.
Each question must reference one of the publications or projects listed above by name.
If none are listed, base the questions on their stated expertise instead.

Return the questions strictly as a JSON array of strings. For example: ["question 1", "question 2"]
"""

TRENDING_PROMPT = """
Generate a list of exactly 5 currently trending or emerging academic research topics that a curious person might want to find experts in.
The list must be diverse: at least two of the five topics must come from outside science, technology, engineering, and mathematics (for example the humanities, arts, law, or social sciences).
Keep each topic short, between 2 and 5 words, suitable as a search query.

Return the topics strictly as a JSON array of strings. For example: ["topic 1", "topic 2", "topic 3", "topic 4", "topic 5"]
"""

BACKGROUND_IMAGE_PROMPT = (
    "Create a visually stunning, abstract, and artistic background image related to the concept of '{subject}'. "
    "The style should be modern, subtle, and atmospheric, suitable for a website background. "
    "Avoid any text or legible words. Focus on textures, gradients, and conceptual shapes."
)

INTERVIEW_SYSTEM_PROMPT = """
You are role-playing as {name}, an academic expert in the {department} department at {university}.
Your expertise: {expertise}

Your key publications:
{publications}

Your key projects:
{projects}

Answer the user's questions in the first person, as this expert would, drawing on the work listed above.
Keep answers conversational and concise, a few short paragraphs at most.
If asked about something outside your listed work, say so honestly rather than inventing specifics.
"""

_NONE_LISTED = "- None listed"


def _bullets(items: list[str]) -> str:
    return "\n".join(f"- {item}" for item in items) or _NONE_LISTED


def _location_clause(filters: Filters) -> str:
    """Join zip code, state and country fragments in that order."""
    parts = []
    if filters.zip_code.strip():
        parts.append(f"near the zip code {filters.zip_code.strip()}")
    if filters.state.strip():
        parts.append(f"in the state of {filters.state.strip()}")
    if filters.country.strip():
        parts.append(f"in {filters.country.strip()}")
    if not parts:
        parts.append(DEFAULT_REGION_CLAUSE)
    return f" The search should be focused on institutions {' '.join(parts)}."


def compose_discovery_prompt(subject: str, filters: Filters | None = None) -> str:
    """Build the expert discovery prompt for a subject and optional filters.

    Example:
        compose_discovery_prompt("Urban Planning", Filters(state="Ohio"))
        -> "Find university faculty members who are experts in 'Urban Planning'.
            The search should be focused on institutions in the state of Ohio. ..."
    """
    filters = filters or Filters()
    prompt = f"Find university faculty members who are experts in '{subject.strip()}'."
    prompt += _location_clause(filters)

    if filters.university.strip():
        prompt += f" Specifically, look for experts at {filters.university.strip()}."
    if filters.department.strip():
        prompt += (
            f" They should ideally be in the {filters.department.strip()} department"
            " or a related field."
        )
    if filters.keywords.strip():
        prompt += (
            " Their biography, publications, or expertise summary must include terms"
            f" related to '{filters.keywords.strip()}'."
        )

    return prompt + DISCOVERY_FORMAT_INSTRUCTIONS


def compose_detail_prompt(expert: Expert) -> str:
    return DETAIL_PROMPT.format(
        name=expert.name, university=expert.university, department=expert.department
    )


def compose_suggestions_prompt(subject: str) -> str:
    return SUGGESTIONS_PROMPT.format(subject=subject.strip())


def compose_interview_suggestions_prompt(expert: Expert, details: ExpertDetails) -> str:
    return INTERVIEW_SUGGESTIONS_PROMPT.format(
        name=expert.name,
        university=expert.university,
        department=expert.department,
        expertise=expert.expertise,
        publications=_bullets(details.publications),
        projects=_bullets(details.projects),
    )


def compose_trending_prompt() -> str:
    return TRENDING_PROMPT


def compose_background_image_prompt(subject: str) -> str:
    return BACKGROUND_IMAGE_PROMPT.format(subject=subject.strip())


def compose_interview_system_prompt(expert: Expert, details: ExpertDetails) -> str:
    """Persona instruction for the simulated interview."""
    return INTERVIEW_SYSTEM_PROMPT.format(
        name=expert.name,
        university=expert.university,
        department=expert.department,
        expertise=expert.expertise,
        publications=_bullets(details.publications),
        projects=_bullets(details.projects),
    )
