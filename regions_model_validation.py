"""
Dataset validation framework for region graphs.

This module checks a built region graph for hierarchical population
consistency (every parent population entirely contains its children's
populations), footprint validity and footprint coverage.
"""

import logging
from typing import Dict, List, Tuple

from regions_model_errors import DatasetConsistencyError
from regions_model_graph import RegionGraph

logger = logging.getLogger(__name__)


class RegionConsistencyValidator:
    """
    Region dataset validation component.

    Produces a validation report for a region graph and enforces the
    checks that must pass before a graph may be queried.
    """

    def __init__(self, config):
        """
        Initialize validation framework.

        Args:
            config: Model configuration object
        """
        self.config = config

        logger.info("Initialized Region Consistency Validator")

    def validate_graph(self, graph: RegionGraph) -> Dict:
        """
        Run all validation checks.

        Args:
            graph: Built region graph

        Returns:
            Dictionary with validation results
        """
        validation_results = {
            'hierarchy_consistency': self._check_hierarchy(graph),
            'area_checks': self._check_areas(graph),
            'population_checks': self._check_populations(graph)
        }

        validation_results['overall_valid'] = self._assess_overall_validity(
            validation_results
        )

        return validation_results

    def assert_consistent(self, graph: RegionGraph):
        """
        Fail if any parent population cannot hold its children's populations.

        Raises:
            DatasetConsistencyError: Listing every violating (parent, child) pair
        """
        violations = graph.containment_violations()
        if not violations:
            logger.info(f"✓ Hierarchy consistent across {len(graph.locations)} locations")
            return

        for parent_id, child_id in violations:
            logger.error(
                f"Location {parent_id} has too few people to support the nested population of {child_id}"
            )
        raise DatasetConsistencyError(
            f"{len(violations)} location(s) have too few people to support their nested populations: "
            + ", ".join(f"{parent} -> {child}" for parent, child in violations),
            violations
        )

    def _check_hierarchy(self, graph: RegionGraph) -> Dict:
        """Check that children fit inside their parents."""
        violations: List[Tuple[str, str]] = graph.containment_violations()
        return {
            'violations': violations,
            'consistent': len(violations) == 0
        }

    def _check_areas(self, graph: RegionGraph) -> Dict:
        """Check footprint validity and coverage."""
        invalid = [area.location_id for area in graph.areas() if not area.is_valid()]
        missing = [loc.id for loc in graph.locations_without_areas()]

        results = {
            'invalid_areas': invalid,
            'locations_without_areas': missing,
            'valid_areas': len(invalid) == 0
        }
        if self.config.require_areas:
            results['complete_coverage'] = len(missing) == 0

        return results

    def _check_populations(self, graph: RegionGraph) -> Dict:
        """Summarize population coverage."""
        with_population = [loc.id for loc in graph.locations if graph.has_population(loc.id)]
        return {
            'locations_with_population': len(with_population),
            'total_recorded': sum(graph.get_population(i).size() for i in with_population),
            'has_locations': len(graph.locations) > 0
        }

    def _assess_overall_validity(self, validation_results: Dict) -> bool:
        """Assess overall dataset validity."""
        checks = [
            validation_results['hierarchy_consistency']['consistent'],
            validation_results['area_checks']['valid_areas'],
            validation_results['area_checks'].get('complete_coverage', True),
            validation_results['population_checks']['has_locations']
        ]
        return all(checks)
