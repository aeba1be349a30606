"""
Tabular summaries of a region graph for reporting.
"""

import pandas as pd
from typing import List, Optional, Tuple
import logging

from regions_model_graph import RegionGraph

logger = logging.getLogger(__name__)


def population_summary(
    graph: RegionGraph,
    age_bands: Optional[List[Tuple[int, int]]] = None,
    max_age: int = 120
) -> pd.DataFrame:
    """
    Inclusive and exclusive population per location and age band.

    Args:
        graph: Built region graph
        age_bands: (start_age, end_age) windows; defaults to [(0, max_age)]
        max_age: Upper bound of the default window

    Returns:
        DataFrame with columns location_id, name, start_age, end_age,
        total_population, exclusive_population, sub_locations.
        Locations without a population report zeros.
    """
    age_bands = age_bands or [(0, max_age)]

    rows = []
    for location in graph.locations:
        has_population = graph.has_population(location.id)
        exclusive = graph.get_exclusive_population(location.id) if has_population else None
        sub_locations = len(graph.get_all_sub_locations(location.id))

        for start_age, end_age in age_bands:
            rows.append({
                'location_id': location.id,
                'name': location.name,
                'start_age': start_age,
                'end_age': end_age,
                'total_population': graph.get_total_population_size(location.id, start_age, end_age),
                'exclusive_population': exclusive.get_count(start_age, end_age) if exclusive is not None else 0,
                'sub_locations': sub_locations
            })

    logger.info(f"Summarized {len(graph.locations)} locations over {len(age_bands)} age band(s)")
    return pd.DataFrame(rows)


def poi_summary(graph: RegionGraph) -> pd.DataFrame:
    """Number of POIs per location and type."""
    rows = [
        {
            'location_id': group.location_id,
            'group_type': group.group_type.value,
            'number': group.number
        }
        for group in graph.iter_poi_groups()
    ]
    if not rows:
        return pd.DataFrame(columns=['location_id', 'group_type', 'number'])

    return (
        pd.DataFrame(rows)
        .groupby(['location_id', 'group_type'], as_index=False)['number']
        .sum()
    )
