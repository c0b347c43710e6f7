"""Pydantic configuration models with code-baked defaults.

Each model is one section of ``reversible.toml``; the top level lives on
:class:`~reversible.config.settings.ReversibleSettings`. Defaults are baked
here, so a file only needs the keys it overrides.
"""

from __future__ import annotations

from pydantic import BaseModel, Field


class PluginsConfig(BaseModel):
    """[plugins] section."""

    model_config = {"frozen": True}

    enabled: bool = True
    entry_point_group: str = "reversible.plugins"
    disabled: list[str] = Field(default_factory=list)


class InvokerConfig(BaseModel):
    """[invoker] section."""

    model_config = {"frozen": True}

    log_inputs: bool = False

