"""Pytest configuration and shared fixtures for procmap tests."""

import random
from pathlib import Path

import pytest

from procmap import LayoutEngine, NodeSizer, parse_description

SAMPLES_DIR = Path(__file__).resolve().parent.parent / "samples"


@pytest.fixture
def permit_data():
    """Two-phase process with expandable steps, a decision and three blocks."""
    return {
        "title": "Vehicle Access Permit",
        "phases": [
            {
                "id": "details",
                "name": "Applicant Details",
                "color": "#1864AB",
                "estimationBlocks": [
                    {
                        "id": "personal",
                        "label": "Entering personal details",
                        "stepsIncluded": ["1.1", "1.2", "1.3"],
                    }
                ],
                "steps": [
                    {
                        "id": "1.1",
                        "name": "Enter the applicant's full legal name",
                        "actionTypes": ["Documentation: Form-filling"],
                        "hiddenActions": [
                            {"description": "Open the driving license and find the name"}
                        ],
                    },
                    {
                        "id": "1.2",
                        "name": "Enter the applicant's date of birth",
                        "actionTypes": ["Documentation: Form-filling"],
                    },
                    {
                        "id": "1.3",
                        "name": "Enter the National ID number in the required format",
                        "actionTypes": [
                            "Documentation: Form-filling",
                            "Information: Searching",
                        ],
                        "errorLoop": {"condition": "Format does not match"},
                        "hiddenActions": [
                            {"description": "Find the ID number on the license"},
                            {"description": "Understand the required format"},
                        ],
                    },
                ],
            },
            {
                "id": "eligibility",
                "name": "Eligibility Assessment",
                "color": "#E67700",
                "estimationBlocks": [
                    {
                        "id": "assess",
                        "label": "Assessing eligibility",
                        "stepsIncluded": ["2.1", "2.2"],
                    },
                    {
                        "id": "upload",
                        "label": "Selecting documents",
                        "stepsIncluded": ["2.3"],
                    },
                ],
                "steps": [
                    {
                        "id": "2.1",
                        "name": "Read the eligibility rules",
                        "actionTypes": ["Information: Reading"],
                    },
                    {
                        "id": "2.2",
                        "name": "Is the applicant eligible?",
                        "isDecisionPoint": True,
                    },
                    {
                        "id": "2.3",
                        "name": "Select supporting documents",
                        "actionTypes": ["Documentation: Uploading"],
                    },
                ],
            },
        ],
    }


@pytest.fixture
def permit(permit_data):
    """Validated ProcessDescription built from permit_data."""
    return parse_description(permit_data)


@pytest.fixture
def minimal():
    """Two phases with a single plain task each."""
    return parse_description(
        {
            "phases": [
                {"id": "p1", "name": "First", "steps": [{"id": "A", "name": "Do A"}]},
                {"id": "p2", "name": "Second", "steps": [{"id": "B", "name": "Do B"}]},
            ]
        }
    )


@pytest.fixture
def engine():
    """Default LayoutEngine instance."""
    return LayoutEngine()


@pytest.fixture
def sizer():
    """Default NodeSizer instance."""
    return NodeSizer()


@pytest.fixture
def rng():
    """Seeded random generator for reproducible randomizer tests."""
    return random.Random(1234)


@pytest.fixture
def sample_path():
    """Path to the bundled sample description."""
    return SAMPLES_DIR / "green_zone_permit.json"
