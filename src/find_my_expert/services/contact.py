"""Draft contact emails for discovered experts."""

import re
from urllib.parse import quote

from pydantic import BaseModel

from find_my_expert.models.expert import Expert

CONTACT_BODY = """Dear Dr. {last_name},

My name is [Your Name] and I am a [Your Title/Position] at [Your Organization].

I came across your profile while researching experts in "{query}" and was very interested in your work.

[Your specific question or reason for contact].

Thank you for your time and consideration.

Sincerely,
[Your Name]"""


class ContactDraft(BaseModel):
    email: str  # placeholder guessed from name and university; must be verified
    subject: str
    body: str

    @property
    def mailto(self) -> str:
        return f"mailto:{self.email}?subject={quote(self.subject)}&body={quote(self.body)}"


def placeholder_email(expert: Expert) -> str:
    """Guess "first.last@university.edu". Only a starting point for the user."""
    name_slug = re.sub(r"[^a-z.]", "", re.sub(r"\s+", ".", expert.name.lower()))
    domain = re.sub(r"university of|college", "", expert.university.lower()).strip()
    domain = re.sub(r"[^a-z]", "", re.sub(r"\s+", "", domain))
    return f"{name_slug}@{domain}.edu"


def draft_contact(expert: Expert, query: str) -> ContactDraft:
    return ContactDraft(
        email=placeholder_email(expert),
        subject=f'Inquiry regarding your work on "{query}"',
        body=CONTACT_BODY.format(last_name=expert.last_name, query=query),
    )
