"""Catalogue of draw templates."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Dict, Iterable, Iterator, List, Optional

from .draw.builder import DEFAULT_ITEM_LABEL, TierCounts, build_prize_pool, normalize_counts
from .draw.pool import PrizePool

if TYPE_CHECKING:
    from .models import GachaTemplate


@dataclass(frozen=True)
class TemplateDefinition:
    """Display metadata and per-tier counts describing one pool.

    Attributes
    ----------
    id : str
        Template identifier; also the key under which session state is stored.
    name : str
        Display name.
    theme : str
        Display category tag (``"classic"``, ``"neon"``, ...).
    counts : Dict[str, int]
        Normalized per-tier counts keyed by ``"tier1"`` .. ``"tier5"``.
    item_label : str
        Noun used in generated item names.
    """

    id: str
    name: str
    theme: str
    counts: Dict[str, int] = field(default_factory=dict)
    item_label: str = DEFAULT_ITEM_LABEL

    @classmethod
    def create(
        cls,
        id: str,
        name: str,
        theme: str,
        counts: Optional[TierCounts] = None,
        item_label: str = DEFAULT_ITEM_LABEL,
    ) -> "TemplateDefinition":
        """Build a definition, validating and normalizing ``counts``."""
        return cls(
            id=id,
            name=name,
            theme=theme,
            counts=normalize_counts(counts),
            item_label=item_label,
        )

    @property
    def total_items(self) -> int:
        return sum(self.counts.values())

    def build_pool(self) -> PrizePool:
        """Return a fresh, fully undrawn pool for this template."""
        return build_prize_pool(
            self.id, self.name, self.theme, self.counts, item_label=self.item_label
        )


SYSTEM_TEMPLATES: tuple[TemplateDefinition, ...] = (
    TemplateDefinition.create(
        "default", "Classic Draw", "classic",
        {"tier1": 1, "tier2": 3, "tier3": 12, "tier4": 40, "tier5": 100},
    ),
    TemplateDefinition.create(
        "premium", "Premium Draw", "golden",
        {"tier1": 2, "tier2": 4, "tier3": 15, "tier4": 50, "tier5": 120},
        item_label="Premium",
    ),
    TemplateDefinition.create(
        "fantasy", "Fantasy Draw", "magical",
        {"tier1": 1, "tier2": 3, "tier3": 10, "tier4": 35, "tier5": 80},
        item_label="Magic Item",
    ),
    TemplateDefinition.create(
        "cyber", "Cyber Draw", "neon",
        {"tier1": 1, "tier2": 2, "tier3": 8, "tier4": 25, "tier5": 60},
        item_label="Cyber Chip",
    ),
    TemplateDefinition.create(
        "retro", "Retro Draw", "vintage",
        {"tier1": 2, "tier2": 5, "tier3": 18, "tier4": 60, "tier5": 140},
        item_label="Vintage",
    ),
    TemplateDefinition.create(
        "space", "Space Draw", "cosmic",
        {"tier1": 1, "tier2": 4, "tier3": 14, "tier4": 45, "tier5": 110},
        item_label="Star Stone",
    ),
)

DEFAULT_TEMPLATE_ID = "default"


class TemplateRegistry:
    """Ordered catalogue of template definitions keyed by id."""

    def __init__(self, templates: Iterable[TemplateDefinition] = ()) -> None:
        self._templates: Dict[str, TemplateDefinition] = {}
        for template in templates:
            self.register(template)

    def register(self, template: TemplateDefinition, *, replace: bool = False) -> None:
        if not replace and template.id in self._templates:
            raise ValueError(f"Template '{template.id}' is already registered")
        self._templates[template.id] = template

    def get(self, template_id: str) -> Optional[TemplateDefinition]:
        return self._templates.get(template_id)

    def __getitem__(self, template_id: str) -> TemplateDefinition:
        try:
            return self._templates[template_id]
        except KeyError as exc:
            raise KeyError(f"Unknown template '{template_id}'") from exc

    def __contains__(self, template_id: object) -> bool:
        return template_id in self._templates

    def __iter__(self) -> Iterator[TemplateDefinition]:
        return iter(list(self._templates.values()))

    def __len__(self) -> int:
        return len(self._templates)

    def ids(self) -> List[str]:
        return list(self._templates)

    @classmethod
    def system(cls) -> "TemplateRegistry":
        """Registry holding the built-in templates."""
        return cls(SYSTEM_TEMPLATES)

    @classmethod
    def from_records(cls, records: Iterable["GachaTemplate"]) -> "TemplateRegistry":
        """Registry built from database rows, preserving their order."""
        return cls(record.to_definition() for record in records)


def get_template(template_id: str) -> Optional[TemplateDefinition]:
    """Return the built-in template with ``template_id``, if any."""
    for template in SYSTEM_TEMPLATES:
        if template.id == template_id:
            return template
    return None


__all__ = [
    "DEFAULT_TEMPLATE_ID",
    "SYSTEM_TEMPLATES",
    "TemplateDefinition",
    "TemplateRegistry",
    "get_template",
]
