# core/config.py
from functools import lru_cache
from typing import Any, Dict

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from core.ir.models import CodeStyle, GenerationContext


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="FLOWGEN_", env_file=".env", case_sensitive=False, extra="ignore")

    app_name: str = "flowgen"
    environment: str = Field(default="development")
    debug: bool = Field(default=False)

    log_level: str = Field(default="WARNING")
    log_format: str = Field(default="console", pattern="^(console|json)$")

    project_name: str = Field(default="generated-workflow")
    output_dir: str = Field(default="./output")
    module_format: str = Field(default="esm", pattern="^(esm|cjs)$")
    ordering_strategy: str = Field(default="depth_first", pattern="^(depth_first|kahn)$")

    indent_size: int = Field(default=2, ge=0, le=8)
    use_spaces: bool = Field(default=True)
    semicolons: bool = Field(default=True)
    single_quotes: bool = Field(default=True)
    trailing_commas: bool = Field(default=True)

    enable_langfuse: bool = Field(default=False)
    enable_tests: bool = Field(default=False)
    enable_docs: bool = Field(default=False)
    enable_comments: bool = Field(default=True)

    def code_style(self) -> CodeStyle:
        return CodeStyle(
            indent_size=self.indent_size,
            use_spaces=self.use_spaces,
            semicolons=self.semicolons,
            single_quotes=self.single_quotes,
            trailing_commas=self.trailing_commas,
        )

    def generation_context(self, **overrides: Any) -> GenerationContext:
        """Context built from these settings; ``None`` overrides are ignored."""
        values: Dict[str, Any] = {
            "project_name": self.project_name,
            "output_path": self.output_dir,
            "module_format": self.module_format,
            "code_style": self.code_style(),
            "include_langfuse": self.enable_langfuse,
            "include_tests": self.enable_tests,
            "include_docs": self.enable_docs,
            "include_comments": self.enable_comments,
        }
        values.update({key: value for key, value in overrides.items() if value is not None})
        return GenerationContext(**values)


class Features:
    def __init__(self, settings: Settings):
        self._settings = settings

    @property
    def langfuse(self) -> bool:
        return self._settings.enable_langfuse

    @property
    def tests(self) -> bool:
        return self._settings.enable_tests

    @property
    def docs(self) -> bool:
        return self._settings.enable_docs

    @property
    def comments(self) -> bool:
        return self._settings.enable_comments

    def enabled(self) -> list:
        return [name for name in ("langfuse", "tests", "docs", "comments") if getattr(self, name)]


@lru_cache()
def get_settings() -> Settings:
    return Settings()


@lru_cache()
def get_features() -> Features:
    return Features(get_settings())
