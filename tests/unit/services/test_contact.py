"""Unit tests for contact drafts."""

from find_my_expert.models.expert import Expert
from find_my_expert.services.contact import draft_contact, placeholder_email


def _expert(name: str, university: str) -> Expert:
    return Expert(id="x-0", name=name, university=university, department="D", expertise="E")


def test_placeholder_email():
    assert placeholder_email(_expert("Jane Q. Doe", "Stanford University")) == "jane.q..doe@stanforduniversity.edu"
    assert placeholder_email(_expert("Ada Lovelace", "University of London")) == "ada.lovelace@london.edu"
    assert placeholder_email(_expert("Li Wei", "Boston College")) == "li.wei@boston.edu"


def test_draft_contact(sample_expert):
    draft = draft_contact(sample_expert, "Analytical Engines")

    assert draft.email == "ada.lovelace@london.edu"
    assert draft.subject == 'Inquiry regarding your work on "Analytical Engines"'
    assert draft.body.startswith("Dear Dr. Lovelace,")
    assert 'researching experts in "Analytical Engines"' in draft.body
    assert draft.mailto.startswith("mailto:ada.lovelace@london.edu?subject=Inquiry%20regarding")
