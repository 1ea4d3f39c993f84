import logging
from typing import Dict, Iterable, List, Mapping, Union

from .models import CategoryName, CATEGORY_ORDER, Design, Selection

logger = logging.getLogger(__name__)

TagCounts = Dict[CategoryName, Dict[str, int]]

def build_design_lookup(designs: Union[Iterable[Design], Mapping[str, Design]]) -> Dict[str, Design]:
    """Index designs by id"""
    if isinstance(designs, Mapping):
        return dict(designs)
    return {design.id: design for design in designs}

def tally_selections(selections: List[Selection],
                     designs: Union[Iterable[Design], Mapping[str, Design]]) -> TagCounts:
    """
    Count tag occurrences of the selected designs per category

    Selections whose selected design cannot be resolved are skipped. Rejected
    designs do not contribute. Counters keep first-seen insertion order, which
    the ranking uses to break ties.
    """
    lookup = build_design_lookup(designs)
    counts: TagCounts = {category: {} for category in CATEGORY_ORDER}
    skipped = 0

    for selection in selections:
        design = lookup.get(selection.selected_id) if selection.selected_id else None
        if design is None:
            skipped += 1
            logger.warning(f"Design {selection.selected_id!r} not found, skipping selection "
                           f"from round {selection.round_number}")
            continue

        for category in CATEGORY_ORDER:
            category_counts = counts[category]
            for tag in design.tags_for(category):
                category_counts[tag] = category_counts.get(tag, 0) + 1

    if skipped:
        logger.info(f"Tally skipped {skipped} of {len(selections)} selections")

    return counts
