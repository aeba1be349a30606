"""
Data loading utilities for region datasets.

Reads a folder of CSV files describing locations, their hierarchy,
footprints, attributes, populations and points of interest, and builds a
validated region graph from them.
"""

import pandas as pd
from pathlib import Path
from typing import Dict, List, Optional
import logging

from regions_model_errors import DatasetFormatError, DuplicatePopulationError, MissingAreaError
from regions_model_geometry import GeometricArea
from regions_model_graph import Location, RegionGraph, RegionGraphBuilder
from regions_model_poi import POIGroup
from regions_model_utils_config import RegionModelConfig
from regions_model_validation import RegionConsistencyValidator

logger = logging.getLogger(__name__)


class RegionDatasetLoader:
    """
    Region dataset loader.

    Drives a RegionGraphBuilder in dependency order (locations before
    anything that references them) and only returns graphs that pass the
    hierarchy consistency check.
    """

    LOCATION_COLUMNS = ['id', 'name']
    HIERARCHY_COLUMNS = ['parent_id', 'child_id']
    AREA_COLUMNS = ['location_id', 'latitude', 'longitude']
    ATTRIBUTE_COLUMNS = ['location_id', 'attribute', 'value']
    POPULATION_COLUMNS = ['location_id', 'segment', 'start_age', 'end_age', 'count']
    POI_GROUP_COLUMNS = [
        'location_id', 'group_type', 'min_employees', 'max_employees',
        'min_attendees', 'max_attendees', 'number', 'label', 'citation'
    ]

    def __init__(self, config: Optional[RegionModelConfig] = None):
        """
        Initialize data loader.

        Args:
            config: Model configuration object
        """
        self.config = config or RegionModelConfig()
        self.data_dir = Path(self.config.data_dir)
        self.validator = RegionConsistencyValidator(self.config)

    def load(self, folder: Optional[str] = None) -> RegionGraph:
        """
        Load a region dataset.

        Args:
            folder: Dataset folder (defaults to config.data_dir)

        Returns:
            Validated, read-only region graph

        Raises:
            NotADirectoryError: Folder does not exist
            DatasetFormatError: Required file or column missing, or bad values
            DatasetConsistencyError: Children not contained by their parents
        """
        folder = Path(folder) if folder is not None else self.data_dir
        if not folder.is_dir():
            raise NotADirectoryError(f"Provided path is not a directory: {folder.resolve()}")

        logger.info(f"Loading region dataset from {folder}")
        builder = RegionGraphBuilder()

        self._load_locations(builder, folder)
        self._load_hierarchy(builder, folder)
        self._load_areas(builder, folder)
        self._load_location_attributes(builder, folder)
        self._load_populations(builder, folder)
        self._load_population_attributes(builder, folder)
        self._load_poi_groups(builder, folder)

        graph = builder.build()

        if self.config.validate_hierarchy:
            self.validator.assert_consistent(graph)
        self._check_postconditions(graph)

        logger.info(f"✓ Region dataset loaded: {len(graph.locations)} locations")
        return graph

    # ========================================================================
    # FILE ACCESS
    # ========================================================================

    def read_table(self, folder: Path, filename: str, required_cols: List[str],
                   optional: bool = False) -> Optional[pd.DataFrame]:
        """
        Read one dataset CSV file with every column as a string.

        Args:
            folder: Dataset folder
            filename: File name inside the folder
            required_cols: Columns that must be present
            optional: Return None instead of failing when the file is absent

        Returns:
            DataFrame, or None for an absent optional file
        """
        file_path = folder / filename
        if not file_path.exists():
            if optional:
                logger.info(f"Optional file not found, skipping: {file_path}")
                return None
            raise DatasetFormatError(f"Required dataset file not found: {file_path}")

        df = pd.read_csv(file_path, dtype=str, keep_default_na=False, skipinitialspace=True)
        df.columns = [col.strip() for col in df.columns]

        # Validate required columns
        missing_cols = [col for col in required_cols if col not in df.columns]
        if missing_cols:
            raise DatasetFormatError(f"{filename} is missing required columns: {missing_cols}")

        for col in df.columns:
            df[col] = df[col].str.strip()

        logger.info(f" ✓ Read {len(df)} rows from {filename}")
        return df

    @staticmethod
    def _to_numeric(df: pd.DataFrame, columns: List[str], filename: str, integer: bool):
        for col in columns:
            try:
                values = pd.to_numeric(df[col])
            except ValueError as e:
                raise DatasetFormatError(f"{filename}: column '{col}' must be numeric ({e})") from e
            if integer:
                if (values % 1 != 0).any():
                    raise DatasetFormatError(f"{filename}: column '{col}' must hold whole numbers")
                values = values.astype(int)
            df[col] = values

    # ========================================================================
    # DATASET SECTIONS
    # ========================================================================

    def _load_locations(self, builder: RegionGraphBuilder, folder: Path):
        df = self.read_table(folder, self.config.locations_file, self.LOCATION_COLUMNS)
        for row in df.to_dict('records'):
            builder.add_location(Location(row['id'], row['name']))

    def _load_hierarchy(self, builder: RegionGraphBuilder, folder: Path):
        df = self.read_table(folder, self.config.hierarchy_file, self.HIERARCHY_COLUMNS)
        for row in df.to_dict('records'):
            builder.add_child(row['parent_id'], row['child_id'])

    def _load_areas(self, builder: RegionGraphBuilder, folder: Path):
        """Group footprint rows per location, in file order, into areas."""
        df = self.read_table(folder, self.config.areas_file, self.AREA_COLUMNS)
        self._to_numeric(df, ['latitude', 'longitude'], self.config.areas_file, integer=False)

        areas: Dict[str, GeometricArea] = {}
        for row in df.to_dict('records'):
            # Areas can only be set for known locations
            builder.get_location(row['location_id'])
            area = areas.setdefault(row['location_id'], GeometricArea(row['location_id']))
            area.add_point(row['latitude'], row['longitude'])

        for area in areas.values():
            if not area.is_valid():
                raise DatasetFormatError(
                    f"Area for {area.location_id} must be a point or a region "
                    f"(1 or at least 3 rows), got {len(area)} rows"
                )
            builder.set_area(area)

    def _load_location_attributes(self, builder: RegionGraphBuilder, folder: Path):
        df = self.read_table(
            folder, self.config.location_attributes_file, self.ATTRIBUTE_COLUMNS, optional=True
        )
        if df is None:
            return
        for row in df.to_dict('records'):
            builder.set_location_attribute(row['location_id'], row['attribute'], row['value'])

    def _load_populations(self, builder: RegionGraphBuilder, folder: Path):
        """Citation columns are read and ignored."""
        filename = self.config.populations_file
        df = self.read_table(folder, filename, self.POPULATION_COLUMNS)
        self._to_numeric(df, ['start_age', 'end_age', 'count'], filename, integer=True)

        for row in df.to_dict('records'):
            if (self.config.reject_overlapping_populations
                    and builder.has_population(row['location_id'])
                    and builder.get_population(row['location_id']).has_intersecting_population(
                        row['segment'], row['start_age'], row['end_age'])):
                raise DuplicatePopulationError(
                    f"Found overlapping segment ({row['segment']}) & age range "
                    f"({row['start_age']}-{row['end_age']}) in location {row['location_id']}."
                )
            builder.set_population(row['location_id'], row['segment'], row['start_age'], row['end_age'], row['count'])

        logger.info(f" ✓ Populations set for {len(df['location_id'].unique())} locations")

    def _load_population_attributes(self, builder: RegionGraphBuilder, folder: Path):
        df = self.read_table(
            folder, self.config.population_attributes_file, self.ATTRIBUTE_COLUMNS, optional=True
        )
        if df is None:
            return
        for row in df.to_dict('records'):
            builder.set_population_attribute(row['location_id'], row['attribute'], row['value'])

    def _load_poi_groups(self, builder: RegionGraphBuilder, folder: Path):
        filename = self.config.poi_groups_file
        df = self.read_table(folder, filename, self.POI_GROUP_COLUMNS, optional=True)
        if df is None:
            return
        self._to_numeric(
            df, ['min_employees', 'max_employees', 'min_attendees', 'max_attendees', 'number'],
            filename, integer=True
        )

        for row in df.to_dict('records'):
            try:
                group = POIGroup(
                    location_id=row['location_id'],
                    group_type=row['group_type'],
                    min_employees=row['min_employees'],
                    max_employees=row['max_employees'],
                    min_attendees=row['min_attendees'],
                    max_attendees=row['max_attendees'],
                    number=row['number'],
                    label=row['label'] or None,
                    citation=row['citation'] or None
                )
            except ValueError as e:
                raise DatasetFormatError(f"{filename}: invalid POI group for {row['location_id']} ({e})") from e
            builder.add_poi_group(group)

    def _check_postconditions(self, graph: RegionGraph):
        if not graph.locations:
            raise DatasetFormatError("Dataset must have at least one location.")

        if self.config.require_areas:
            missing = graph.locations_without_areas()
            if missing:
                raise MissingAreaError(
                    "Dataset must have an area for each location. The following were missing: "
                    + ", ".join(loc.id for loc in missing)
                )


def load_region_dataset(folder: str, config: Optional[RegionModelConfig] = None) -> RegionGraph:
    """Convenience wrapper around RegionDatasetLoader.load."""
    return RegionDatasetLoader(config).load(folder)
