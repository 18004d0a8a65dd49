# txexit/config.py
import json
import re
from pathlib import Path
from typing import Iterable, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

RULE_NAME = "Rails/TransactionExitStatement"


class ConfigurationError(ValueError):
    """Raised when the allow-list or rule configuration cannot be built."""


class Settings(BaseSettings):
    allowed_methods: list[str] = Field(default_factory=list)
    allowed_patterns: list[str] = Field(default_factory=list)
    config_file: Optional[Path] = None
    log_level: str = "WARNING"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="TXEXIT_",
        case_sensitive=False,
        extra="ignore",
    )


class RuleConfig(BaseModel):
    """The rule's section of a RuboCop-style configuration document."""

    enabled: bool = Field(True, alias="Enabled")
    allowed_methods: list[str] = Field(default_factory=list, alias="AllowedMethods")
    allowed_patterns: list[str] = Field(default_factory=list, alias="AllowedPatterns")
    # Deprecated spellings, merged into the allowed lists
    ignored_methods: list[str] = Field(default_factory=list, alias="IgnoredMethods")
    ignored_patterns: list[str] = Field(default_factory=list, alias="IgnoredPatterns")

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    @property
    def method_names(self) -> list[str]:
        return [*self.allowed_methods, *self.ignored_methods]

    @property
    def pattern_sources(self) -> list[str]:
        return [*self.allowed_patterns, *self.ignored_patterns]


class AllowListConfig(BaseModel):
    """Immutable snapshot of extra transactional method names and patterns."""

    exact_names: frozenset[str] = frozenset()
    patterns: tuple[re.Pattern[str], ...] = ()

    model_config = ConfigDict(frozen=True)

    def matches(self, name: str) -> bool:
        if name in self.exact_names:
            return True
        return any(pattern.search(name) for pattern in self.patterns)


def make_allow_list(
    names: Iterable[str] = (), patterns: Iterable[str] = ()
) -> AllowListConfig:
    """Compile an AllowListConfig, failing fast on invalid regexes."""
    sources = list(patterns)
    try:
        return AllowListConfig(exact_names=frozenset(names), patterns=tuple(sources))
    except ValidationError as exc:
        bad = [
            sources[err["loc"][1]]
            for err in exc.errors()
            if len(err["loc"]) > 1 and isinstance(err["loc"][1], int)
        ]
        raise ConfigurationError(f"Invalid allowed pattern(s): {bad or sources}") from exc


def load_rule_config(path: Path) -> RuleConfig:
    """Read the rule section from a JSON configuration file.

    The section may sit under the rule name or at the top level of the document.
    """
    try:
        document = json.loads(Path(path).read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        raise ConfigurationError(f"Cannot read config file {path}: {exc}") from exc
    if not isinstance(document, dict):
        raise ConfigurationError(f"Config file {path} must contain a JSON object")

    section = document.get(RULE_NAME, document)
    try:
        return RuleConfig.model_validate(section)
    except ValidationError as exc:
        raise ConfigurationError(f"Invalid {RULE_NAME} section in {path}: {exc}") from exc


def build_allow_list(
    settings: Optional[Settings] = None,
    rule_config: Optional[RuleConfig] = None,
    methods: Iterable[str] = (),
    patterns: Iterable[str] = (),
) -> AllowListConfig:
    """Merge environment settings, config file and explicit values."""
    names: list[str] = []
    sources: list[str] = []
    if settings is not None:
        names.extend(settings.allowed_methods)
        sources.extend(settings.allowed_patterns)
    if rule_config is not None:
        names.extend(rule_config.method_names)
        sources.extend(rule_config.pattern_sources)
    names.extend(methods)
    sources.extend(patterns)
    # keep first occurrence order so compiled patterns stay deterministic
    return make_allow_list(names, dict.fromkeys(sources))


settings = Settings()
