"""Conversion options.

Options are plain dataclass fields. The CLI and the MCP server build them from
their own arguments; :meth:`ConversionOptions.from_env` reads the
``OWL2STEP_*`` environment variables for embedding callers.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional

ENV_PREFIX = "OWL2STEP_"
DEFAULT_SCHEMA_DIR = "schemas"
DEFAULT_INPUT_FORMAT = "turtle"

_TRUE_VALUES = {"1", "true", "yes", "on"}


@dataclass
class ConversionOptions:
    """Settings of one conversion.

    Attributes:
        schema_dir: Directory holding the ifcOWL Turtle resources
        cache_dir: Directory for compiled schema caches, or None to disable
        input_format: rdflib parser name of the input graph
        schema_version: Version label to use instead of the declared one
        strict_version: Fail instead of warning when the pin disagrees with the input
        max_list_length: Cells walked per list before the chain is cut, or None
    """

    schema_dir: Path = Path(DEFAULT_SCHEMA_DIR)
    cache_dir: Optional[Path] = None
    input_format: str = DEFAULT_INPUT_FORMAT
    schema_version: Optional[str] = None
    strict_version: bool = False
    max_list_length: Optional[int] = None

    def __post_init__(self) -> None:
        self.schema_dir = Path(self.schema_dir)
        if self.cache_dir is not None:
            self.cache_dir = Path(self.cache_dir)
        if self.max_list_length is not None and self.max_list_length < 1:
            raise ValueError(f"max_list_length must be positive, got {self.max_list_length}")

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "ConversionOptions":
        """Build options from ``OWL2STEP_*`` variables, defaulting unset ones.

        Raises:
            ValueError: If OWL2STEP_MAX_LIST_LENGTH is not a positive integer
        """
        env = os.environ if environ is None else environ

        def get(name: str) -> Optional[str]:
            value = env.get(ENV_PREFIX + name)
            return value or None

        max_length = get("MAX_LIST_LENGTH")
        cache_dir = get("CACHE_DIR")
        return cls(
            schema_dir=Path(get("SCHEMA_DIR") or DEFAULT_SCHEMA_DIR),
            cache_dir=Path(cache_dir) if cache_dir else None,
            input_format=get("INPUT_FORMAT") or DEFAULT_INPUT_FORMAT,
            schema_version=get("SCHEMA_VERSION"),
            strict_version=(get("STRICT_VERSION") or "").lower() in _TRUE_VALUES,
            max_list_length=int(max_length) if max_length else None,
        )
