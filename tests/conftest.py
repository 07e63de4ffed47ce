"""Pytest configuration and fixtures."""

import pytest

from find_my_expert.models.expert import Expert, ExpertDetails


@pytest.fixture
def sample_expert() -> Expert:
    """A parsed expert as discovery would produce it."""
    return Expert(
        id="Ada-Lovelace-0",
        name="Ada Lovelace",
        university="University of London",
        department="Mathematics",
        gender="female",
        expertise="Analytical engines and early computing.",
        justification="Pioneer of programmable computation.",
    )


@pytest.fixture
def sample_details() -> ExpertDetails:
    return ExpertDetails(
        publications=["Lovelace, A. (1843). Notes on the Analytical Engine."],
        projects=["Bernoulli number algorithm"],
    )


@pytest.fixture
def discovery_text() -> str:
    """Two well-formed expert blocks in the format the discovery prompt asks for."""
    return (
        "Here are some experts:\n\n"
        "Name: Jane Q. Doe\n"
        "University: Stanford University\n"
        "Department: Computer Science\n"
        "Gender: Female\n"
        "ImageUrl: https://example.edu/jane.jpg\n"
        "Expertise: Deep learning for vision.\n"
        "Also works on robotics.\n"
        "Justification: Leading researcher in neural networks.\n"
        "---\n"
        "Name: John Smith\n"
        "University: MIT\n"
        "Department: EECS\n"
        "Gender: male\n"
        "ImageUrl: N/A\n"
        "Expertise: Reinforcement learning.\n"
        "Justification: Wrote the standard textbook.\n"
        "---\n"
    )
