"""
Tuning for the recommendation core.

Defaults are the production values; ``from_settings`` lets the RECS_* env
vars override them.
"""

from dataclasses import dataclass

from config.settings import Settings


DEFAULT_PAGE_SIZE = 4
DEFAULT_HISTORY_LIMIT = 30
SEARCH_WEIGHT = 1
# Interactions are a stronger taste signal than a search filter
INTERACTION_WEIGHT = 2
DEFAULT_TOP_N = 2


@dataclass(frozen=True)
class RecommendationConfig:
    page_size: int = DEFAULT_PAGE_SIZE
    history_limit: int = DEFAULT_HISTORY_LIMIT
    search_weight: int = SEARCH_WEIGHT
    interaction_weight: int = INTERACTION_WEIGHT
    top_n: int = DEFAULT_TOP_N

    def __post_init__(self):
        for name in ("page_size", "history_limit", "search_weight", "interaction_weight", "top_n"):
            if getattr(self, name) < 1:
                raise ValueError(f"{name} must be >= 1")

    @classmethod
    def from_settings(cls, settings: Settings) -> "RecommendationConfig":
        return cls(
            page_size=settings.recs_page_size,
            history_limit=settings.recs_history_limit,
            search_weight=settings.recs_search_weight,
            interaction_weight=settings.recs_interaction_weight,
            top_n=settings.recs_top_n,
        )
