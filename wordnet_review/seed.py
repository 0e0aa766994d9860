"""
Default word list loader.

Reads a bundled JSON word list and adds every word that is not already
present, so each seeded item gets its initial schedule entry exactly once.

Expected format:
    {"words": [{"word": "construct", "meaning": "...", "morphemes": ["con", "struct"]}]}

"chinese" is accepted as an alias of "meaning".
"""

from __future__ import annotations

import json
from pathlib import Path

from loguru import logger
from pydantic import AliasChoices, BaseModel, Field
from pydantic import ValidationError as PydanticValidationError

from .errors import NotFoundError, ValidationError
from .repository import ReviewRepository


class SeedWord(BaseModel):
    """One word in a seed file."""

    word: str = Field(min_length=1)
    meaning: str | None = Field(default=None, validation_alias=AliasChoices("meaning", "chinese"))
    morphemes: list[str] = Field(default_factory=list)


class SeedFile(BaseModel):
    """Top-level seed document."""

    words: list[SeedWord] = Field(default_factory=list)


def load_seed_file(path: Path) -> list[SeedWord]:
    """
    Parse and validate a seed file.

    Raises:
        ValidationError: File missing, not JSON, or not in the expected shape
    """
    try:
        raw = json.loads(Path(path).read_text(encoding="utf-8"))
        return SeedFile.model_validate(raw).words
    except FileNotFoundError as e:
        raise ValidationError(f"Seed file not found: {path}") from e
    except json.JSONDecodeError as e:
        raise ValidationError(f"Seed file is not valid JSON: {e}") from e
    except PydanticValidationError as e:
        raise ValidationError(f"Seed file has an invalid shape: {e}") from e


def seed_repository(repository: ReviewRepository, path: Path) -> int:
    """
    Add every seed word that the item store does not know yet.

    Returns:
        Number of items added
    """
    added = 0
    for seed in load_seed_file(path):
        item_id = repository.normalize_word(seed.word)
        try:
            repository.items.get(item_id)
            continue
        except NotFoundError:
            pass

        repository.add_item(item_id, meaning=seed.meaning, morphemes=seed.morphemes)
        added += 1

    logger.info(f"Seeded {added} items from {path}")
    return added
