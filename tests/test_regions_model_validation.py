from __future__ import annotations

import logging

import pytest

from regions_model_errors import DatasetConsistencyError
from regions_model_geometry import GeometricArea
from regions_model_graph import RegionGraph, RegionGraphBuilder
from regions_model_utils_config import RegionModelConfig
from regions_model_validation import RegionConsistencyValidator


def with_point_areas(builder: RegionGraphBuilder) -> RegionGraphBuilder:
    for location in builder.locations:
        area = GeometricArea(location.id)
        area.add_point(1.0, 2.0)
        builder.set_area(area)
    return builder


def nested_graph(builder: RegionGraphBuilder, child_count: int) -> RegionGraph:
    builder.add_child("A", "B")
    builder.set_population("A", "All", 0, 20, 40)
    builder.set_population("B", "All", 0, 10, child_count)
    return with_point_areas(builder).build()


def test_consistent_graph_is_valid(builder: RegionGraphBuilder) -> None:
    results = RegionConsistencyValidator(RegionModelConfig()).validate_graph(nested_graph(builder, 30))

    assert results['hierarchy_consistency'] == {'violations': [], 'consistent': True}
    assert results['area_checks']['complete_coverage']
    assert results['population_checks']['locations_with_population'] == 2
    assert results['population_checks']['total_recorded'] == 70
    assert results['overall_valid']


def test_oversubscribed_child_is_reported(builder: RegionGraphBuilder) -> None:
    results = RegionConsistencyValidator(RegionModelConfig()).validate_graph(nested_graph(builder, 50))

    assert results['hierarchy_consistency']['violations'] == [("A", "B")]
    assert not results['overall_valid']


def test_missing_areas_only_matter_when_required(builder: RegionGraphBuilder) -> None:
    graph = builder.build()

    strict = RegionConsistencyValidator(RegionModelConfig()).validate_graph(graph)
    assert strict['area_checks']['locations_without_areas'] == ["A", "B", "C", "D"]
    assert not strict['overall_valid']

    lenient = RegionConsistencyValidator(RegionModelConfig(require_areas=False)).validate_graph(graph)
    assert 'complete_coverage' not in lenient['area_checks']
    assert lenient['overall_valid']


def test_assert_consistent_passes_quietly(builder: RegionGraphBuilder, caplog: pytest.LogCaptureFixture) -> None:
    with caplog.at_level(logging.INFO):
        RegionConsistencyValidator(RegionModelConfig()).assert_consistent(nested_graph(builder, 30))
    assert "Hierarchy consistent" in caplog.text


def test_assert_consistent_raises_with_violations(builder: RegionGraphBuilder,
                                                  caplog: pytest.LogCaptureFixture) -> None:
    graph = nested_graph(builder, 50)
    with pytest.raises(DatasetConsistencyError) as excinfo:
        RegionConsistencyValidator(RegionModelConfig()).assert_consistent(graph)

    assert excinfo.value.violations == [("A", "B")]
    assert "A -> B" in str(excinfo.value)
    assert "too few people" in caplog.text
