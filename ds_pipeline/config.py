from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from .types import Stage

DEFAULT_ENTITY_TYPES = ["PERSON", "ORGANIZATION", "LOCATION"]


@dataclass
class ComponentConfig:
    """Generic component configuration."""

    name: str
    params: Dict[str, Any] = field(default_factory=dict)


@dataclass
class FilterConfig:
    """Sentence admission bounds (token bounds are inclusive)."""

    min_tokens: int = 6
    max_tokens: int = 50
    min_mentions: int = 2


@dataclass
class PipelineConfig:
    """Top-level pipeline configuration."""

    loader: ComponentConfig
    annotator: Optional[ComponentConfig] = None
    candidate_lookup: Optional[ComponentConfig] = None
    relation_store: Optional[ComponentConfig] = None
    filter: FilterConfig = field(default_factory=FilterConfig)
    entity_types: List[str] = field(default_factory=lambda: list(DEFAULT_ENTITY_TYPES))
    negative_proportion: int = 4
    seed: Optional[int] = None
    workers: int = 1
    cache_dir: str = ".ds_cache"
    stages: List[Stage] = field(default_factory=lambda: list(Stage))

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> "PipelineConfig":
        def build(section: str) -> Optional[ComponentConfig]:
            if section not in data or data[section] is None:
                return None
            entry = data[section]
            return ComponentConfig(name=entry["name"], params=entry.get("params", {}))

        loader = build("loader") or ComponentConfig(name="text")

        stages = [Stage(s) for s in data.get("stages", [s.value for s in Stage])]
        negative_proportion = data.get("negative_proportion", 4)
        if negative_proportion < 0:
            raise ValueError("negative_proportion must be >= 0")
        workers = data.get("workers", 1)
        if workers < 1:
            raise ValueError("workers must be >= 1")

        return PipelineConfig(
            loader=loader,
            annotator=build("annotator"),
            candidate_lookup=build("candidate_lookup"),
            relation_store=build("relation_store"),
            filter=FilterConfig(**data.get("filter", {})),
            entity_types=data.get("entity_types", list(DEFAULT_ENTITY_TYPES)),
            negative_proportion=negative_proportion,
            seed=data.get("seed"),
            workers=workers,
            cache_dir=data.get("cache_dir", ".ds_cache"),
            stages=stages,
        )
