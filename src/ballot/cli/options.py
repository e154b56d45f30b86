"""Options shared by CLI commands."""

from __future__ import annotations

from typing import Any

from ballot.config import Settings, settings


def resolve_settings(**overrides: Any) -> Settings:
    """Return the global settings with every non-None override applied."""
    update = {key: value for key, value in overrides.items() if value is not None}
    return settings.model_copy(update=update)
