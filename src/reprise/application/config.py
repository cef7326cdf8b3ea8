from pathlib import Path
from typing import Any, Literal

from pydantic import Field, field_validator
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)


class AppConfig(BaseSettings):
    """
    Configuration model for reprise.
    Supports loading from:
    1. Environment variables (REPRISE_*)
    2. Config file (~/.config/reprise/config.toml)
    3. Manual overrides (CLI)
    """

    model_config = SettingsConfigDict(
        env_prefix="REPRISE_",
        extra="ignore",
    )

    # Paths
    vault_root: Path | None = None
    matrix_path: Path = Field(
        default_factory=lambda: Path.home() / ".config/reprise/of-matrix.json"
    )
    summary_path: Path | None = None

    # Review
    deck: str | None = None
    # "global": one matrix for every vault; "vault": one per vault root.
    matrix_scope: Literal["global", "vault"] = "global"

    verbose: int = 0

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        from pydantic_settings import TomlConfigSettingsSource

        # Evaluated per call so a patched HOME is honored.
        candidates = [
            Path.home() / ".config/reprise/config.toml",
            Path.home() / ".reprise.toml",
        ]
        toml_file = next((f for f in candidates if f.exists()), None)

        if toml_file:
            return (
                init_settings,
                env_settings,
                TomlConfigSettingsSource(settings_cls, toml_file=toml_file),
            )
        return (
            init_settings,
            env_settings,
        )

    @field_validator("vault_root", "summary_path", mode="before")
    @classmethod
    def resolve_optional_path(cls, v: Any) -> Path | None:
        if v is None or v == "":
            return None
        return Path(v).expanduser().resolve()

    @field_validator("matrix_path", mode="before")
    @classmethod
    def resolve_path(cls, v: Any) -> Path:
        return Path(v).expanduser().resolve()

    def effective_matrix_path(self) -> Path:
        """Where the difficulty matrix lives for this configuration."""
        if self.matrix_scope == "vault" and self.vault_root is not None:
            base = self.vault_root if not self.vault_root.is_file() else self.vault_root.parent
            return base / ".reprise" / "of-matrix.json"
        return self.matrix_path


def resolve_config(cli_overrides: dict[str, Any] | None = None) -> AppConfig:
    """
    Multi-layered configuration resolution.
    1. Defaults in AppConfig
    2. ~/.config/reprise/config.toml (if exists)
    3. Environment variables (REPRISE_*)
    4. cli_overrides (passed from Typer)
    """
    overrides = {k: v for k, v in (cli_overrides or {}).items() if v is not None}
    config = AppConfig(**overrides)

    if config.vault_root is None:
        config.vault_root = Path.cwd()

    return config
