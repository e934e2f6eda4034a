"""Application configuration: settings schema and config.yaml loader"""

import os
from pathlib import Path
from typing import Any, Optional

import yaml
from pydantic import BaseModel, Field


CONFIG_FILE = "config.yaml"


class Settings(BaseModel):
    app_name:           str = "mdsite"
    site_name:          str = Field(default="mdsite", description="Appended to every page title")
    content_dir:        str = Field(default="routes",      description="Markdown source directory")
    output_dir:         str = Field(default="dist",        description="Rendered site directory")
    assets_dir:         str = Field(default="assets",      description="Static assets copied to <output>/assets")
    components_dir:     str = Field(default="components",  description="Sources for {{component:name}} markers")
    template_file:      Optional[str] = Field(default=None, description="Page shell; built-in shell when unset")
    scripts_dir:        str = Field(default="lua-scripts", description="Interpolation scripts directory")
    script_extension:   str = Field(default=".lua", pattern=r"^\.\w+$")
    script_interpreter: str = Field(default="lua",  description="Executable used to run interpolation scripts")
    script_timeout:     float = Field(default=10.0, ge=0, description="Seconds per script call; 0 disables")
    workers:            int = Field(default=4,   ge=1, description="Render worker pool size")
    external_links:     bool = Field(default=True,  description="Open markdown links in a new tab")
    optimize_images:    bool = Field(default=True,  description="Create WebP variants after copying assets")
    optimizer:          str = Field(default="optimizt", description="External WebP optimizer binary")
    fail_on_error:      bool = Field(default=False, description="Exit non-zero when any document fails")
    incremental:        bool = Field(default=False, description="Skip documents unchanged since the last build")
    db_url:             str = "sqlite:///mdsite.db"
    cache_ttl:          float = Field(default=300.0, gt=0, description="Render/response cache TTL in seconds")
    cache_size:         int = Field(default=256, ge=1, description="Render/response cache capacity")
    port:               int = Field(default=8000, ge=1, le=65535)


def load_config(overrides: dict[str, Any] = None) -> Settings:
    """Load Settings from config.yaml, then MDSITE_<FIELD> env vars, then non-None CLI overrides."""
    data: dict[str, Any] = {}
    if Path(CONFIG_FILE).exists():
        try:
            data = yaml.safe_load(Path(CONFIG_FILE).read_text()) or {}
        except yaml.YAMLError as e:
            raise ValueError(f"Invalid {CONFIG_FILE}: {e}") from e

    for name in Settings.model_fields:
        if val := os.getenv(f"MDSITE_{name.upper()}"):
            data[name] = val

    if overrides:
        data.update({k: v for k, v in overrides.items() if v is not None})
    return Settings(**data)
