"""
Technologies defined once and shared by every region.
"""
from .errors import ConfigurationError


class GlobalTechnologyDatabase:
    """Technologies keyed by (sector name, technology name)."""

    def __init__(self):
        self.technologies = {}

    def add_technology(self, sector_name, technology):
        self.technologies[(sector_name, technology.name)] = technology

    def get_technology(self, sector_name, tech_name):
        """Returns a copy of the global technology, which regions may modify freely."""
        try:
            return self.technologies[(sector_name, tech_name)].copy()
        except KeyError:
            raise ConfigurationError(f"No global technology {tech_name} in sector "
                                     f"{sector_name}.") from None

    def __contains__(self, key):
        return key in self.technologies

    def __len__(self):
        return len(self.technologies)
