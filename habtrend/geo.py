"""
Spatial projection
==================

Bloom events are plotted on a Lambert azimuthal equal-area plane centred
at 30N, 95W, so point density compares fairly across the map. The world
country polygons are reprojected into the same CRS before overlay.
"""

from __future__ import annotations
import logging
import math
from typing import Iterable, List

import geopandas as gpd
import numpy as np
from pyproj import CRS

from .config import NATURAL_EARTH_50M
from .errors import ProjectionError, ReferenceDataError
from .models import BloomEvent

logger = logging.getLogger(__name__)

GEOGRAPHIC_CRS = "EPSG:4326"
REPORT_CRS = CRS.from_proj4("+proj=laea +lat_0=30 +lon_0=-95 +datum=WGS84 +units=m +no_defs")


def _check_coordinates(e: BloomEvent) -> None:
    lat, lon = e.latitude, e.longitude
    if not (math.isfinite(lat) and math.isfinite(lon)):
        raise ProjectionError(f"Non-finite coordinates lat={lat} lon={lon}", event_id=e.event_id)
    if not -90.0 <= lat <= 90.0:
        raise ProjectionError(f"Latitude out of range: {lat}", event_id=e.event_id)
    if not -180.0 <= lon <= 180.0:
        raise ProjectionError(f"Longitude out of range: {lon}", event_id=e.event_id)


def project_events(events: Iterable[BloomEvent], crs=REPORT_CRS) -> gpd.GeoDataFrame:
    """
    Build a point GeoDataFrame of the geolocated events in `crs`.

    Events missing latitude or longitude are left out (they still count in
    the yearly aggregations). One output row per remaining event.
    """
    located: List[BloomEvent] = []
    skipped = 0
    for e in events:
        if not e.has_coordinates():
            skipped += 1
            continue
        _check_coordinates(e)
        located.append(e)

    if skipped:
        logger.info("%d events without coordinates left off the map", skipped)

    data = {
        "event_id": [e.event_id for e in located],
        "event_year": np.array([e.event_year for e in located], dtype=int),
        "seafood_toxin": [e.seafood_toxin for e in located],
        "latitude": [e.latitude for e in located],
        "longitude": [e.longitude for e in located],
    }
    geometry = gpd.points_from_xy(data["longitude"], data["latitude"], crs=GEOGRAPHIC_CRS)
    gdf = gpd.GeoDataFrame(data, geometry=geometry, crs=GEOGRAPHIC_CRS)
    return gdf.to_crs(crs)


def load_world_boundaries(source: str = NATURAL_EARTH_50M, crs=REPORT_CRS) -> gpd.GeoDataFrame:
    """Read country polygons (path or URL) and reproject them to `crs`."""
    logger.info("Reading world boundaries from %s", source)
    try:
        world = gpd.read_file(source)
    except Exception as e:
        raise ReferenceDataError(f"Cannot read world boundaries from {source}: {e}") from e
    if world.crs is None:
        world = world.set_crs(GEOGRAPHIC_CRS)
    return prepare_world(world, crs)


def prepare_world(world: gpd.GeoDataFrame, crs=REPORT_CRS) -> gpd.GeoDataFrame:
    """Reproject a polygon layer and drop geometries lost in the projection."""
    world = world.to_crs(crs)
    keep = ~(world.geometry.is_empty | world.geometry.isna())
    bounds = world.geometry.bounds
    keep &= np.isfinite(bounds.to_numpy()).all(axis=1)
    return world[keep]
