from __future__ import annotations

from pathlib import Path

import pytest

from regions_model_errors import (
    CycleError,
    DatasetConsistencyError,
    DatasetFormatError,
    DuplicatePopulationError,
    MissingAreaError,
    MissingPopulationError,
    UnknownLocationError,
)
from regions_model_graph import RegionGraph
from regions_model_poi import POIType
from regions_model_utils_config import RegionModelConfig
from regions_model_utils_data_loader import RegionDatasetLoader, load_region_dataset


def append(path: Path, *lines: str) -> None:
    with open(path, "a") as f:
        for line in lines:
            f.write(line + "\n")


@pytest.fixture
def unity(unity_dir: Path) -> RegionGraph:
    return load_region_dataset(str(unity_dir))


def test_loads_locations(unity: RegionGraph) -> None:
    assert {loc.id for loc in unity.locations} == {
        "CensusRegion-RoundValley", "CensusRegion-Unity", "Unity-LutherPlace", "Unity-UCHS"
    }
    assert {loc.name for loc in unity.locations} == {"Round Valley No 410", "Unity", "Luther Place", "UCHS"}
    assert unity.get_location("Unity-LutherPlace").name == "Luther Place"


def test_loads_location_attributes(unity: RegionGraph) -> None:
    assert unity.get_location("Unity-UCHS").get_boolean("IsHighSchool")
    assert not unity.get_location("CensusRegion-Unity").get_boolean("SupportsFarms")
    assert unity.get_location("CensusRegion-Unity").get_boolean("SupportsUrbanDetachedUnits")


def test_loads_hierarchy(unity: RegionGraph) -> None:
    assert unity.get_all_sub_locations("CensusRegion-Unity") == {
        unity.get_location("Unity-UCHS"), unity.get_location("Unity-LutherPlace")
    }
    assert unity.get_all_sub_locations("Unity-UCHS") == set()
    # Geographically inside Round Valley, but no relationship was defined
    assert unity.get_all_sub_locations("CensusRegion-RoundValley") == set()


def test_loads_areas(unity: RegionGraph) -> None:
    uchs = unity.get_area("Unity-UCHS")
    round_valley = unity.get_area("CensusRegion-RoundValley")

    assert uchs.is_point()
    assert round_valley.is_region()
    assert (uchs.latitudes[0], uchs.longitudes[0]) == pytest.approx((52.44050321, -109.1532727))
    assert round_valley.latitudes == pytest.approx((52.668713, 52.668297, 52.404338, 52.405595))
    assert round_valley.longitudes == pytest.approx((-109.460515, -109.026555, -109.025181, -109.457081))


def test_loaded_areas_intersect(unity: RegionGraph) -> None:
    round_valley = unity.get_area("CensusRegion-RoundValley")
    town = unity.get_area("CensusRegion-Unity")

    assert round_valley.intersects(town)
    assert town.intersects(round_valley)
    assert town.intersects(unity.get_area("Unity-UCHS"))
    assert not unity.get_area("Unity-LutherPlace").intersects(unity.get_area("Unity-UCHS"))
    assert unity.get_area("Unity-UCHS").intersects(unity.get_area("Unity-UCHS"))


def test_loaded_populations(unity: RegionGraph) -> None:
    assert unity.get_total_population_size("CensusRegion-Unity", 40, 80) == 1015
    assert unity.get_exclusive_population_size("CensusRegion-Unity", 40, 80) == 980
    assert unity.get_exclusive_population_size("CensusRegion-Unity", 0, 120) == \
        unity.get_exclusive_population("CensusRegion-Unity").size()
    assert unity.get_total_population_size("CensusRegion-RoundValley", 70, 73) == 12
    assert unity.get_total_population_size("Unity-UCHS", 0, 100) == 0
    assert unity.get_total_population_size("Unity-LutherPlace", 0, 120) == 35
    assert unity.get_exclusive_population_size("Unity-LutherPlace", 0, 120) == 35


def test_loaded_population_attributes(unity: RegionGraph) -> None:
    assert unity.get_population("CensusRegion-RoundValley").get_boolean("Is Rural")
    assert unity.get_population("CensusRegion-Unity").get_boolean("Is Urban")
    assert unity.get_population("CensusRegion-Unity").get_number("Number of Partnered Men") == 1000


def test_loaded_poi_groups(unity: RegionGraph) -> None:
    businesses = unity.get_poi_groups("CensusRegion-Unity")
    assert {g.max_employees for g in businesses} == {0, 10}
    assert {g.min_employees for g in businesses} == {0, 1}
    assert {g.group_type for g in businesses} == {POIType.WORKPLACE}
    assert sorted(g.number for g in businesses) == [100, 500]
    assert businesses[1].citation is None

    school = unity.get_poi_groups("Unity-UCHS")[0]
    assert school.group_type == POIType.SECONDARY_SCHOOL
    assert (school.min_attendees, school.max_attendees, school.number) == (100, 200, 1)


def test_missing_folder(tmp_path: Path) -> None:
    with pytest.raises(NotADirectoryError):
        load_region_dataset(str(tmp_path / "nowhere"))


def test_missing_required_file(unity_copy: Path) -> None:
    (unity_copy / "populations.csv").unlink()
    with pytest.raises(DatasetFormatError):
        load_region_dataset(str(unity_copy))


def test_optional_files_may_be_absent(unity_copy: Path) -> None:
    for name in ("location_attributes.csv", "population_attributes.csv", "poi_groups.csv"):
        (unity_copy / name).unlink()
    graph = load_region_dataset(str(unity_copy))
    assert graph.get_poi_groups("CensusRegion-Unity") == []
    assert not graph.get_location("Unity-UCHS").has_attribute("IsHighSchool")


def test_missing_column(unity_copy: Path) -> None:
    (unity_copy / "hierarchy.csv").write_text("parent,child\nCensusRegion-Unity,Unity-UCHS\n")
    with pytest.raises(DatasetFormatError):
        load_region_dataset(str(unity_copy))


def test_non_numeric_age(unity_copy: Path) -> None:
    append(unity_copy / "populations.csv", "CensusRegion-RoundValley,All,eighty,90,1,")
    with pytest.raises(DatasetFormatError):
        load_region_dataset(str(unity_copy))


def test_area_for_unknown_location(unity_copy: Path) -> None:
    append(unity_copy / "areas.csv", "Nowhere,1.0,2.0")
    with pytest.raises(UnknownLocationError):
        load_region_dataset(str(unity_copy))


def test_area_with_two_points_is_rejected(unity_copy: Path) -> None:
    append(unity_copy / "locations.csv", "Line,A line")
    append(unity_copy / "areas.csv", "Line,1.0,2.0", "Line,3.0,4.0")
    with pytest.raises(DatasetFormatError):
        load_region_dataset(str(unity_copy))


def test_location_without_area(unity_copy: Path) -> None:
    append(unity_copy / "locations.csv", "Nowhere,No footprint")
    with pytest.raises(MissingAreaError):
        load_region_dataset(str(unity_copy))

    graph = load_region_dataset(str(unity_copy), RegionModelConfig(require_areas=False))
    assert [loc.id for loc in graph.locations_without_areas()] == ["Nowhere"]


def test_overlapping_population_rows(unity_copy: Path) -> None:
    append(unity_copy / "populations.csv", "CensusRegion-RoundValley,All,60,75,5,")
    with pytest.raises(DuplicatePopulationError):
        load_region_dataset(str(unity_copy))


def test_overlapping_population_rows_allowed_when_configured(unity_copy: Path) -> None:
    append(unity_copy / "populations.csv", "CensusRegion-RoundValley,All,60,75,5,")
    config = RegionModelConfig(reject_overlapping_populations=False)
    graph = load_region_dataset(str(unity_copy), config)
    assert graph.get_population("CensusRegion-RoundValley").size() == 395


def test_cyclic_hierarchy(unity_copy: Path) -> None:
    append(unity_copy / "hierarchy.csv", "Unity-UCHS,CensusRegion-Unity")
    with pytest.raises(CycleError):
        load_region_dataset(str(unity_copy))


def test_population_attribute_without_population(unity_copy: Path) -> None:
    append(unity_copy / "population_attributes.csv", "Unity-UCHS,Is Urban,true")
    with pytest.raises(MissingPopulationError):
        load_region_dataset(str(unity_copy))


def test_unknown_poi_type(unity_copy: Path) -> None:
    append(unity_copy / "poi_groups.csv", "Unity-UCHS,Stadium,0,0,0,0,1,,")
    with pytest.raises(DatasetFormatError):
        load_region_dataset(str(unity_copy))


def test_inconsistent_hierarchy_aborts_load(unity_copy: Path) -> None:
    append(unity_copy / "populations.csv", "Unity-UCHS,Female,10,20,700,")
    with pytest.raises(DatasetConsistencyError) as excinfo:
        load_region_dataset(str(unity_copy))
    assert excinfo.value.violations == [("CensusRegion-Unity", "Unity-UCHS")]

    graph = load_region_dataset(str(unity_copy), RegionModelConfig(validate_hierarchy=False))
    assert graph.containment_violations() == [("CensusRegion-Unity", "Unity-UCHS")]


def test_loader_defaults_to_config_data_dir(unity_dir: Path) -> None:
    loader = RegionDatasetLoader(RegionModelConfig(data_dir=str(unity_dir)))
    assert len(loader.load().locations) == 4


def test_custom_file_names(unity_copy: Path) -> None:
    (unity_copy / "locations.csv").rename(unity_copy / "places.csv")
    graph = load_region_dataset(str(unity_copy), RegionModelConfig(locations_file="places.csv"))
    assert graph.has_location("Unity-UCHS")
