import logging

from couchbase.collection import Collection  # type: ignore
from couchbase.exceptions import (  # type: ignore
    CouchbaseException,
    DocumentNotFoundException,
)
from couchbase.result import MutationResult  # type: ignore

from cbroundtrip.airline import Airline
from cbroundtrip.exceptions import (
    DecodeError,
    DocumentMissingError,
    ReadError,
    WriteError,
)

# Get a logger with this module's name to help with debugging
logger = logging.getLogger(__name__)


def upsert_airline(collection: Collection, airline: Airline) -> MutationResult:
    """
    Writes the airline under its own key, creating or fully replacing the document.
    No cas is passed so the last writer wins.
    """
    logger.info(f"Upserting {airline.key}")
    try:
        result = collection.upsert(airline.key, airline.to_document())
    except CouchbaseException as _e:
        raise WriteError(f"Upsert of {airline.key} failed") from _e
    logger.debug(f"Upserted {airline.key} cas={result.cas}")
    return result


def fetch_airline(collection: Collection, key: str) -> Airline:
    """
    Reads the document stored under key and decodes it into an Airline.
    Raises:
        DocumentMissingError: key does not exist
        ReadError: any other failure of the get
        DecodeError: the stored value is not an airline for this key
    """
    logger.info(f"Fetching {key}")
    try:
        result = collection.get(key)
    except DocumentNotFoundException as _e:
        raise DocumentMissingError(f"Document {key} not found") from _e
    except CouchbaseException as _e:
        raise ReadError(f"Get of {key} failed") from _e

    try:
        content = result.content_as[dict]
    except (ValueError, TypeError) as _e:
        raise DecodeError(f"Document {key} is not a JSON object") from _e
    airline = Airline.from_document(content)
    if airline.key != key:
        raise DecodeError(
            f"Document {key} carries a different key field: {airline.key}"
        )
    return airline


def round_trip(collection: Collection, airline: Airline) -> Airline:
    """Upserts the airline then fetches it back, returning the fetched copy"""
    upsert_airline(collection, airline)
    return fetch_airline(collection, airline.key)


def render_airline(airline: Airline, as_json: bool = False) -> str:
    if as_json:
        return airline.to_json()
    return repr(airline)
