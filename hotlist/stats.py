from typing import Dict, Optional

from hotlist.models import AggregationResult, SourceStats
from hotlist.sources.catalog import SourceCatalog


def source_stats(result: AggregationResult, catalog: Optional[SourceCatalog] = None) -> Dict[str, SourceStats]:
    """
    Group an aggregation result's items by source

    Args:
        result (AggregationResult): A finished aggregation
        catalog (Optional[SourceCatalog]): Used for display names; ids are used when absent

    Returns:
        Dict[str, SourceStats]: Item count and latest collection time per source id
    """
    stats: Dict[str, SourceStats] = {}
    for item in result.items:
        if item.source_id not in stats:
            descriptor = catalog.descriptor(item.source_id) if catalog is not None else None
            stats[item.source_id] = SourceStats(
                source_id=item.source_id,
                name=descriptor.name if descriptor else item.source_id,
            )
        entry = stats[item.source_id]
        entry.count += 1
        entry.latest_collected_at = max(entry.latest_collected_at, item.collected_at)
    return stats
