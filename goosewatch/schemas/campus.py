from enum import Enum

from pydantic import BaseModel


class HabitatType(str, Enum):
    water = "water"
    grass = "grass"


class CampusBounds(BaseModel):
    north: float
    south: float
    east: float
    west: float

    def contains(self, latitude: float, longitude: float) -> bool:
        """Inclusive rectangle check; east/west may be given in either order."""
        west, east = sorted((self.west, self.east))
        return self.south <= latitude <= self.north and west <= longitude <= east


class Habitat(BaseModel):
    id: str
    name: str
    # Corner points as [latitude, longitude] pairs
    coordinates: list[tuple[float, float]]
    type: HabitatType
