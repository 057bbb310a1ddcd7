"""Centralized configuration for internal-link using Pydantic Settings."""

from pathlib import Path

from pydantic import Field, model_validator
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
    YamlConfigSettingsSource,
)


DEFAULT_CONFIG_FILE = Path("~/.internal-link.yaml")
DEFAULT_CACHE_DIR = Path("~/.cache/internal-link")


class Settings(BaseSettings):
    """Strictly typed configuration for one analysis run.

    Values are resolved in priority order: keyword arguments (command line
    flags), ``INTERNAL_LINK_*`` environment variables, a ``.env`` file, the
    YAML config file, then the defaults below.
    """

    model_config = SettingsConfigDict(
        env_prefix="INTERNAL_LINK_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        validate_default=True,
        extra="ignore",
    )

    root: Path = Field(default=Path("."), description="Directory holding the markdown corpus")
    config_file: Path | None = Field(
        default=None,
        description="YAML file with option defaults (falls back to ~/.internal-link.yaml)",
    )

    # Tokenizer
    min_ngram: int = Field(default=2, ge=1, description="Minimum number of words in phrases to match")
    max_ngram: int = Field(default=3, ge=1, description="Maximum number of words in phrases to match")

    # Analysis
    min_score: float = Field(default=0.3, ge=0.0, description="Minimum similarity score for a suggestion")
    single_file: str | None = Field(default=None, description="Analyze only this file against all others")
    workers: int = Field(default=1, ge=1, description="Threads used to tokenize documents while loading")

    # Applying changes
    dry_run: bool = Field(default=False, description="Report suggestions without rewriting files")
    stop_on_error: bool = Field(
        default=False,
        description="Abort the apply phase on the first link that cannot be inserted",
    )

    # Cache
    use_cache: bool = Field(default=True, description="Reuse term-frequency tables of unchanged files")
    cache_dir: Path = Field(default=DEFAULT_CACHE_DIR, description="Directory for cached analysis results")

    # Logging
    log_level: str = Field(default="info", description="Logging level")
    log_json: bool = Field(default=False, description="Emit structured JSON logs")

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        init_kwargs = getattr(init_settings, "init_kwargs", {})
        config_file = Path(init_kwargs.get("config_file") or DEFAULT_CONFIG_FILE).expanduser()
        yaml_settings = YamlConfigSettingsSource(settings_cls, yaml_file=config_file)
        return (init_settings, env_settings, dotenv_settings, yaml_settings, file_secret_settings)

    @model_validator(mode="after")
    def _check_ngram_range(self) -> "Settings":
        if self.max_ngram < self.min_ngram:
            raise ValueError(
                f"max_ngram ({self.max_ngram}) must be greater than or equal to min_ngram ({self.min_ngram})"
            )
        return self

    def resolved_cache_dir(self) -> Path:
        """Cache directory with ``~`` expanded."""
        return self.cache_dir.expanduser()

    def is_single_file_mode(self) -> bool:
        """Check whether only one source document is analyzed.

        Returns:
            True if ``single_file`` is set, False for whole-corpus runs
        """
        return bool(self.single_file)
