"""Static campus geometry: the admissible bounding rectangle and known habitats."""

from goosewatch.config import Settings, settings
from goosewatch.schemas.campus import CampusBounds, Habitat, HabitatType

HABITATS: list[Habitat] = [
    Habitat(
        id="1",
        name="Columbia Lake",
        coordinates=[(43.4685, -80.5400), (43.4695, -80.5390)],
        type=HabitatType.water,
    ),
    Habitat(
        id="2",
        name="Laurel Creek",
        coordinates=[(43.4700, -80.5450), (43.4710, -80.5440)],
        type=HabitatType.water,
    ),
    Habitat(
        id="3",
        name="Main Quad",
        coordinates=[(43.4720, -80.5430), (43.4730, -80.5420)],
        type=HabitatType.grass,
    ),
]


def campus_bounds_from_settings(config: Settings = settings) -> CampusBounds:
    return CampusBounds(
        north=config.CAMPUS_NORTH,
        south=config.CAMPUS_SOUTH,
        east=config.CAMPUS_EAST,
        west=config.CAMPUS_WEST,
    )
