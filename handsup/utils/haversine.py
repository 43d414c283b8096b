from math import radians, sin, cos, sqrt, asin

# Mean Earth radius in kilometers
R = 6371.0

def haversine(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """
    Great-circle distance in kilometers between two points given in
    decimal degrees.
    """
    lat1, lon1, lat2, lon2 = map(radians, [lat1, lon1, lat2, lon2])

    dlon = lon2 - lon1
    dlat = lat2 - lat1

    a = sin(dlat / 2)**2 + cos(lat1) * cos(lat2) * sin(dlon / 2)**2
    # Rounding can push a fractionally above 1 for antipodal points
    c = 2 * asin(sqrt(min(1.0, a)))

    return R * c

def within_radius(lat1: float, lon1: float, lat2: float, lon2: float, radius_km: float) -> bool:
    """Boundary-inclusive radius check."""
    return haversine(lat1, lon1, lat2, lon2) <= radius_km
