"""
AWS region catalogue.
Maps region codes to display names and geographic areas for discovery
and validation of configuration regions.
"""
from typing import Dict, List, Optional, Tuple

from costcalc.domain.pricing_models import RegionInfo


# region code -> (display name, geographic area)
AWS_REGIONS: Dict[str, Tuple[str, str]] = {
    # US
    "us-east-1": ("US East (N. Virginia)", "North America"),
    "us-east-2": ("US East (Ohio)", "North America"),
    "us-west-1": ("US West (N. California)", "North America"),
    "us-west-2": ("US West (Oregon)", "North America"),

    # Canada
    "ca-central-1": ("Canada (Central)", "North America"),

    # Europe
    "eu-west-1": ("Europe (Ireland)", "Europe"),
    "eu-west-2": ("Europe (London)", "Europe"),
    "eu-west-3": ("Europe (Paris)", "Europe"),
    "eu-central-1": ("Europe (Frankfurt)", "Europe"),
    "eu-north-1": ("Europe (Stockholm)", "Europe"),

    # Asia Pacific
    "ap-south-1": ("Asia Pacific (Mumbai)", "Asia Pacific"),
    "ap-southeast-1": ("Asia Pacific (Singapore)", "Asia Pacific"),
    "ap-southeast-2": ("Asia Pacific (Sydney)", "Asia Pacific"),
    "ap-northeast-1": ("Asia Pacific (Tokyo)", "Asia Pacific"),
    "ap-northeast-2": ("Asia Pacific (Seoul)", "Asia Pacific"),

    # South America
    "sa-east-1": ("South America (Sao Paulo)", "South America"),
}


def normalize_region(region_code: str) -> str:
    """Strip and lowercase a region code."""
    return region_code.strip().lower()


def is_known_region(region_code: str) -> bool:
    return normalize_region(region_code) in AWS_REGIONS


def get_region_name(region_code: str) -> Optional[str]:
    """
    Get the display name for a region code.

    Args:
        region_code: AWS region code (e.g., 'ap-south-1')

    Returns:
        Display name (e.g., 'Asia Pacific (Mumbai)'), or None if not found
    """
    entry = AWS_REGIONS.get(normalize_region(region_code))
    return entry[0] if entry else None


def list_regions(services_by_region: Optional[Dict[str, List[str]]] = None) -> List[RegionInfo]:
    """
    All known regions, sorted by display name.

    Args:
        services_by_region: Optional region -> priced service codes

    Returns:
        List of RegionInfo
    """
    services_by_region = services_by_region or {}
    regions = [
        RegionInfo(
            code=code,
            name=name,
            location=location,
            services=services_by_region.get(code, []),
        )
        for code, (name, location) in AWS_REGIONS.items()
    ]
    return sorted(regions, key=lambda region: region.name)
