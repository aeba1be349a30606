"""
Configuration management for the region population model.

Centralizes dataset locations and loading rules and provides validation.
"""

from dataclasses import asdict, dataclass
import yaml
import logging

logger = logging.getLogger(__name__)


@dataclass
class RegionModelConfig:
    """
    Configuration for region dataset loading.

    Attributes:
        version: Model version
        data_dir: Folder holding the dataset CSV files
        require_areas: Every location must have a footprint
        reject_overlapping_populations: Fail on population rows overlapping an
            existing cell of the same segment and location
        validate_hierarchy: Check that parents contain their children's populations
        max_age: Exclusive upper age used for "all ages" queries
        log_level: Logging level used by scripts
    """
    version: str = "1.0.0"

    # Data paths
    data_dir: str = "data"
    locations_file: str = "locations.csv"
    hierarchy_file: str = "hierarchy.csv"
    areas_file: str = "areas.csv"
    location_attributes_file: str = "location_attributes.csv"
    populations_file: str = "populations.csv"
    population_attributes_file: str = "population_attributes.csv"
    poi_groups_file: str = "poi_groups.csv"

    # Validation settings
    require_areas: bool = True
    reject_overlapping_populations: bool = True
    validate_hierarchy: bool = True

    max_age: int = 120
    log_level: str = "INFO"

    @classmethod
    def from_yaml(cls, yaml_path: str) -> 'RegionModelConfig':
        """Load configuration from YAML file."""
        with open(yaml_path, 'r') as f:
            config_dict = yaml.safe_load(f) or {}
        return cls(**config_dict)

    def to_yaml(self, yaml_path: str):
        """Save configuration to YAML file."""
        with open(yaml_path, 'w') as f:
            yaml.dump(asdict(self), f, default_flow_style=False)

    def validate(self) -> bool:
        """Validate configuration parameters."""
        checks = []

        # Ages are non-negative integers
        checks.append(isinstance(self.max_age, int) and self.max_age > 0)

        # Every file name is set
        file_names = [
            self.locations_file, self.hierarchy_file, self.areas_file,
            self.location_attributes_file, self.populations_file,
            self.population_attributes_file, self.poi_groups_file
        ]
        checks.append(all(isinstance(name, str) and name for name in file_names))
        checks.append(len(set(file_names)) == len(file_names))

        checks.append(self.log_level.upper() in ('DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'))

        is_valid = all(checks)
        if not is_valid:
            logger.error("Invalid configuration parameters")

        return is_valid
