"""Persona definitions loaded from YAML."""

from __future__ import annotations

import logging
from pathlib import Path

import yaml
from pydantic import BaseModel, ValidationError

logger = logging.getLogger(__name__)

SAMPLE_PERSONAS = """personas:
  - id: first-time-user
    goal: "Understand what the product does and sign up"
    task: "Find the sign-up flow and create an account"
  - id: returning-user
    goal: "Log in and pick up where they left off"
    task: "Sign in with existing credentials and open the main dashboard"
"""


class Persona(BaseModel):
    id: str
    goal: str = ""
    task: str = ""


def load_personas(path: str | Path) -> list[Persona]:
    """Parse the ``personas:`` list from a YAML file."""
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Personas file not found: {path}")

    with open(path, encoding="utf-8") as f:
        try:
            data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ValueError(f"Invalid YAML in {path}: {e}") from e

    entries = data.get("personas") if isinstance(data, dict) else None
    if not isinstance(entries, list):
        raise ValueError(f"{path} has no 'personas' list")

    try:
        personas = [Persona(**entry) for entry in entries]
    except (TypeError, ValidationError) as e:
        raise ValueError(f"Malformed persona in {path}: {e}") from e

    logger.debug("Loaded %d personas from %s", len(personas), path)
    return personas


def find_persona(personas: list[Persona], persona_id: str) -> Persona:
    for persona in personas:
        if persona.id == persona_id:
            return persona
    available = ", ".join(p.id for p in personas)
    raise KeyError(f"Persona not found: {persona_id}. Available personas: {available}")
