"""Geographic point model."""

from typing import Any

from pydantic import Field, model_validator

from .base import RecordModel


class GeoPoint(RecordModel):
    """A longitude/latitude pair.

    Also accepts GeoJSON points: ``{"type": "Point", "coordinates": [lon, lat]}``.
    """

    lon: float = Field(..., ge=-180.0, le=180.0, description="Longitude in degrees")
    lat: float = Field(..., ge=-90.0, le=90.0, description="Latitude in degrees")

    @model_validator(mode="before")
    @classmethod
    def _from_geojson(cls, data: Any) -> Any:
        if isinstance(data, dict) and "coordinates" in data:
            coords = data["coordinates"]
            if not isinstance(coords, (list, tuple)) or len(coords) != 2:
                raise ValueError("GeoJSON coordinates must be [lon, lat]")
            return {"lon": coords[0], "lat": coords[1]}
        if isinstance(data, (list, tuple)) and len(data) == 2:
            return {"lon": data[0], "lat": data[1]}
        return data
