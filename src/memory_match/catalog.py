from __future__ import annotations

import logging
from typing import Iterable, List, Optional, Protocol, Sequence

from pydantic import BaseModel, ConfigDict, Field

from .difficulty import RoundConfig
from .errors import InsufficientContentError
from .rng import RandomSource

logger = logging.getLogger(__name__)

# Above this similarity threshold a round prefers items from a single category,
# which makes the cards look alike.
SAME_CATEGORY_THRESHOLD = 0.7


class PlayableItem(BaseModel):
    """An item from the content catalog that can be printed on a pair of cards."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., min_length=1)
    content_ref: str = Field(..., description="Opaque reference to the displayable content, e.g. an image URL")
    category: str = Field("general")
    age_band: Optional[str] = None


class Catalog(Protocol):
    """Source of playable items for a round.

    Implementations may narrow the pool by any of the arguments; all of them are
    hints. Category preference for similar-looking rounds is applied afterwards
    by ``select_round_items``.
    """

    def items(self, category: Optional[str], age_band: Optional[str], level: int) -> Sequence[PlayableItem]:
        ...


class InMemoryCatalog:
    """Catalog over a fixed list; used by the CLI and tests.

    Only ``age_band`` narrows the pool (items without a band suit every player).
    ``category`` and ``level`` are accepted for the protocol and ignored.
    """

    def __init__(self, items: Iterable[PlayableItem]) -> None:
        self._items: List[PlayableItem] = list(items)

    def items(self, category: Optional[str] = None, age_band: Optional[str] = None, level: int = 1) -> List[PlayableItem]:
        out = self._items
        if age_band is not None:
            out = [i for i in out if i.age_band in (None, age_band)]
        return list(out)

    @classmethod
    def generated(cls, count: int, categories: Sequence[str] = ("tops", "shoes", "bags")) -> "InMemoryCatalog":
        return cls(
            PlayableItem(id=f"item-{i}", content_ref=f"item-{i}.png", category=categories[i % len(categories)])
            for i in range(count)
        )


def select_round_items(
    items: Sequence[PlayableItem],
    config: RoundConfig,
    category: Optional[str] = None,
    rng: Optional[RandomSource] = None,
) -> List[PlayableItem]:
    """Pick ``config.pair_count`` items for a round.

    High similarity rounds prefer items of ``category``; if that category is too
    thin for the round the whole pool is used instead.
    """
    pool = list(items)
    if category and config.similarity_threshold > SAME_CATEGORY_THRESHOLD:
        same = [i for i in pool if i.category == category]
        if len(same) >= config.pair_count:
            pool = same
        else:
            logger.warning(
                "Only %d '%s' items for a %d-pair round; using the full pool of %d",
                len(same),
                category,
                config.pair_count,
                len(pool),
            )
    if len(pool) < config.pair_count:
        raise InsufficientContentError(f"Level {config.level} needs {config.pair_count} items, catalog has {len(pool)}")
    if rng is not None:
        pool = rng.shuffled(pool)
    selected = pool[: config.pair_count]
    logger.debug("Selected %d items for level %d", len(selected), config.level)
    return selected
