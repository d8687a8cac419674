import geopandas as gpd
import pytest
from shapely.geometry import box

from habtrend.geo import prepare_world
from habtrend.models import BloomEvent


@pytest.fixture
def three_events():
    return [
        BloomEvent(event_id=0, event_year=1995, latitude=10.0, longitude=20.0, seafood_toxin=True),
        BloomEvent(event_id=1, event_year=1995, latitude=None, longitude=None, seafood_toxin=False),
        BloomEvent(event_id=2, event_year=2000, latitude=30.0, longitude=40.0, seafood_toxin=False),
    ]


@pytest.fixture
def three_events_csv(tmp_path):
    path = tmp_path / "events.csv"
    path.write_text(
        "eventYear,latitude,longitude,seafoodToxin\n"
        "1995,10,20,1\n"
        "1995,,,0\n"
        "2000,30,40,0\n"
        "1985,5,5,1\n"
    )
    return str(path)


@pytest.fixture
def world():
    raw = gpd.GeoDataFrame(
        {"name": ["west", "east"]},
        geometry=[box(-130, 0, -60, 60), box(0, 0, 60, 50)],
        crs="EPSG:4326",
    )
    return prepare_world(raw)
