"""Configuration models describing docsort settings."""

from __future__ import annotations

import re
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

DEFAULT_FALLBACK_CATEGORY = "Overig"

DEFAULT_CATEGORIES: Dict[str, str] = {
    "Financiën": "1. Financiën",
    "Bankafschriften": "1. Financiën/1.01. Bankafschriften",
    "Belastingen": "1. Financiën/1.02. Belastingen",
    "Facturen": "1. Financiën/1.03. Facturen",
    "Loonstroken": "1. Financiën/1.04. Loonstroken",
    "Verzekeringen": "2. Verzekeringen",
    "Wonen": "3. Wonen",
    "Werk": "4. Werk",
    "Gezondheid": "5. Gezondheid",
    "Onderwijs": "6. Onderwijs",
    "Voertuigen": "7. Voertuigen",
    "Persoonlijke documenten": "8. Persoonlijke documenten",
    DEFAULT_FALLBACK_CATEGORY: f"0. {DEFAULT_FALLBACK_CATEGORY}",
}

# Evaluated top to bottom; the first match wins.
DEFAULT_HEURISTICS: List[Dict[str, str]] = [
    {
        "pattern": r"bankafschrift|rekeningafschrift|bank\s*statement|account\s+statement",
        "category": "Bankafschriften",
    },
    {"pattern": r"loonstrook|salarisstrook|payslip|pay\s*stub", "category": "Loonstroken"},
    {
        "pattern": r"belastingdienst|aangifte\s+inkomstenbelasting|\baanslag|tax\s+return",
        "category": "Belastingen",
    },
    {"pattern": r"factuur|invoice|btw[-\s]?nummer", "category": "Facturen"},
    {"pattern": r"\bpolis|verzekering|insurance\s+policy", "category": "Verzekeringen"},
    {"pattern": r"huurcontract|hypotheek|mortgage|lease\s+agreement", "category": "Wonen"},
    {"pattern": r"arbeidsovereenkomst|werkgever|employment\s+contract", "category": "Werk"},
    {
        "pattern": r"huisarts|ziekenhuis|\brecept\b|zorgverzekeraar|\bpati[eë]nt\b",
        "category": "Gezondheid",
    },
    {"pattern": r"diploma|cijferlijst|transcript|universiteit", "category": "Onderwijs"},
    {"pattern": r"kenteken|\bapk\b|\brdw\b|vehicle\s+registration", "category": "Voertuigen"},
    {
        "pattern": r"paspoort|identiteitskaart|passport|rijbewijs",
        "category": "Persoonlijke documenten",
    },
]


class DocsortBaseModel(BaseModel):
    """Shared configuration for docsort Pydantic models.

    Settings are frozen so a loaded configuration cannot change during a run.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)


class LLMSettings(DocsortBaseModel):
    """LLM configuration options.

    Attributes:
        provider: Backend used for completions (``none`` disables model calls).
        model: Model or deployment name to target when issuing requests.
        temperature: Sampling temperature for generative calls.
        max_tokens: Maximum number of tokens in responses.
        api_key: Optional credential for hosted providers.
        api_base_url: Optional endpoint override (required for Azure).
        api_version: API version forwarded to Azure OpenAI.
        poll_interval_seconds: How often a pending request checks for cancellation.
    """

    provider: Literal["gemini", "openai", "azure", "ollama", "none"] = "gemini"
    model: str = "gemini-1.5-pro-latest"
    temperature: float = 0.1
    max_tokens: int = 512
    api_key: Optional[str] = None
    api_base_url: Optional[str] = None
    api_version: Optional[str] = None
    poll_interval_seconds: float = Field(default=0.2, gt=0)


class ProcessingOptions(DocsortBaseModel):
    """Processing options governing discovery and text extraction.

    Attributes:
        supported_extensions: File extensions considered for organization.
        recurse_directories: Whether to recurse into subdirectories.
        process_hidden_files: Whether hidden files should be included.
        follow_symlinks: Whether to traverse symbolic links.
        ocr_enabled: Whether to OCR PDFs whose text layer is too short.
        ocr_min_chars: Text length below which OCR augmentation kicks in.
        ocr_language: Tesseract language code used for OCR.
    """

    supported_extensions: List[str] = Field(
        default_factory=lambda: [".pdf", ".docx", ".txt", ".md"]
    )
    recurse_directories: bool = False
    process_hidden_files: bool = False
    follow_symlinks: bool = False
    ocr_enabled: bool = False
    ocr_min_chars: int = Field(default=100, ge=0)
    ocr_language: str = "eng"

    @field_validator("supported_extensions")
    @classmethod
    def _normalize_extensions(cls, value: List[str]) -> List[str]:
        normalized: list[str] = []
        for extension in value:
            cleaned = extension.strip().lower()
            if not cleaned:
                continue
            if not cleaned.startswith("."):
                cleaned = f".{cleaned}"
            if cleaned not in normalized:
                normalized.append(cleaned)
        return normalized


class OrganizationOptions(DocsortBaseModel):
    """Settings that govern naming and placement of organized files.

    Attributes:
        rename_files: Whether files may be renamed at all.
        descriptive_filenames: Whether to ask the model for descriptive names.
        ai_folder_suggestions: Whether to ask the model for a full folder path.
        generate_metadata: Whether to write a JSON sidecar for each moved file.
        max_folder_depth: Maximum number of segments in a suggested folder path.
        metadata_preview_chars: Length of the text preview stored in sidecars.
    """

    rename_files: bool = False
    descriptive_filenames: bool = True
    ai_folder_suggestions: bool = False
    generate_metadata: bool = False
    max_folder_depth: int = Field(default=4, ge=1)
    metadata_preview_chars: int = Field(default=500, ge=0)


class HeuristicRuleSettings(DocsortBaseModel):
    """A single keyword rule used when the model cannot decide.

    Attributes:
        pattern: Case-insensitive regular expression searched in extracted text.
        category: Category key assigned when the pattern matches.
    """

    pattern: str
    category: str

    @field_validator("pattern")
    @classmethod
    def _check_pattern(cls, value: str) -> str:
        try:
            re.compile(value)
        except re.error as exc:
            raise ValueError(f"invalid heuristic pattern {value!r}: {exc}") from exc
        return value


class ClassificationSettings(DocsortBaseModel):
    """Category map and fallback configuration.

    Attributes:
        categories: Ordered mapping of category key to relative folder path.
        fallback_category: Key used when nothing better can be determined.
        heuristics: Ordered keyword rules applied when the model is inconclusive.
    """

    categories: Dict[str, str] = Field(default_factory=lambda: dict(DEFAULT_CATEGORIES))
    fallback_category: str = DEFAULT_FALLBACK_CATEGORY
    heuristics: List[HeuristicRuleSettings] = Field(
        default_factory=lambda: [HeuristicRuleSettings(**rule) for rule in DEFAULT_HEURISTICS]
    )

    @model_validator(mode="before")
    @classmethod
    def _ensure_fallback_present(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        categories = data.get("categories")
        if categories is None:
            categories = dict(DEFAULT_CATEGORIES)
        if not isinstance(categories, dict):
            return data
        if not categories:
            raise ValueError("classification.categories must define at least one category")
        for key, path in categories.items():
            if not isinstance(key, str) or not key.strip():
                raise ValueError(f"category key {key!r} must be a non-empty string")
            if not isinstance(path, str) or not path.strip():
                raise ValueError(f"category {key!r} needs a folder path, got {path!r}")
        fallback = str(data.get("fallback_category") or DEFAULT_FALLBACK_CATEGORY).strip()
        if not fallback:
            raise ValueError("classification.fallback_category must not be blank")
        if fallback not in categories:
            categories = {**categories, fallback: f"0. {fallback}"}
        return {**data, "categories": categories, "fallback_category": fallback}


class PromptLimits(DocsortBaseModel):
    """Character budgets for document text embedded in prompts.

    Attributes:
        classification_chars: Text budget for the classification prompt.
        filename_chars: Text budget for the filename suggestion prompt.
        folder_chars: Text budget for the folder suggestion prompt.
    """

    classification_chars: int = Field(default=8_000, gt=0)
    filename_chars: int = Field(default=4_000, gt=0)
    folder_chars: int = Field(default=4_000, gt=0)


class LoggingSettings(DocsortBaseModel):
    """Runtime logging configuration.

    Attributes:
        level: Logging verbosity level.
        max_size_mb: Maximum log size before rotation.
        backup_count: Number of historical log files to retain.
        file_logging: Whether to write a rotating log file under ``~/.docsort/logs``.
    """

    level: str = "WARNING"
    max_size_mb: int = 10
    backup_count: int = 5
    file_logging: bool = True


class CLIOptions(DocsortBaseModel):
    """CLI behavior defaults and presentation preferences.

    Attributes:
        quiet_default: Whether commands suppress non-error output by default.
        summary_default: Whether commands only print summary lines by default.
        confirm_default: Whether suggestions are confirmed interactively by default.
    """

    quiet_default: bool = False
    summary_default: bool = False
    confirm_default: bool = False


class DocsortConfig(DocsortBaseModel):
    """Top-level configuration struct for docsort.

    Attributes:
        llm: Language model settings.
        processing: Discovery and extraction settings.
        organization: Naming and placement settings.
        classification: Category map, fallback, and heuristic rules.
        prompts: Prompt length caps.
        logging: Logging configuration.
        cli: CLI presentation defaults.
    """

    llm: LLMSettings = Field(default_factory=LLMSettings)
    processing: ProcessingOptions = Field(default_factory=ProcessingOptions)
    organization: OrganizationOptions = Field(default_factory=OrganizationOptions)
    classification: ClassificationSettings = Field(default_factory=ClassificationSettings)
    prompts: PromptLimits = Field(default_factory=PromptLimits)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)
    cli: CLIOptions = Field(default_factory=CLIOptions)


__all__ = [
    "DEFAULT_CATEGORIES",
    "DEFAULT_FALLBACK_CATEGORY",
    "DEFAULT_HEURISTICS",
    "DocsortBaseModel",
    "LLMSettings",
    "ProcessingOptions",
    "OrganizationOptions",
    "HeuristicRuleSettings",
    "ClassificationSettings",
    "PromptLimits",
    "LoggingSettings",
    "CLIOptions",
    "DocsortConfig",
]
