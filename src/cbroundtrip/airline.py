"""
The Airline record and its JSON document codec.

The document id and the "key" field of the stored value are the same string;
an Airline is always stored under its own key.
"""

import json
from dataclasses import asdict, dataclass, fields

from cbroundtrip.exceptions import DecodeError


@dataclass(frozen=True)
class Airline:
    """A single airline document from the travel-sample bucket"""

    callsign: str
    country: str
    iata: str
    icao: str
    name: str
    type: str
    key: str

    def __post_init__(self):
        if not isinstance(self.key, str) or not self.key.strip():
            raise ValueError("Airline key must be a non-empty string")

    def to_document(self) -> dict[str, str]:
        """Returns the JSON object that is stored in couchbase"""
        return asdict(self)

    def to_json(self) -> str:
        return json.dumps(self.to_document(), sort_keys=True)

    @classmethod
    def from_document(cls, doc) -> "Airline":
        """
        Builds an Airline from a fetched document.

        Extra fields in the document are ignored.
        Raises:
            DecodeError: the document is not an object, a field is missing,
            or a field is not a string
        """
        if not isinstance(doc, dict):
            raise DecodeError(
                f"Expected a JSON object for an airline, got {type(doc).__name__}"
            )
        values = {}
        for field in fields(cls):
            if field.name not in doc:
                raise DecodeError(f"Airline document is missing field '{field.name}'")
            value = doc[field.name]
            if not isinstance(value, str):
                raise DecodeError(
                    f"Airline field '{field.name}' must be a string, got {type(value).__name__}"
                )
            values[field.name] = value
        try:
            return cls(**values)
        except ValueError as _e:
            raise DecodeError(str(_e)) from _e


# airline_10 from the travel-sample bucket
SAMPLE_AIRLINE = Airline(
    callsign="MILE-AIR",
    country="United States",
    iata="Q5",
    icao="MLB",
    name="40-Mile Air",
    type="airline",
    key="airline_10",
)
