"""
Error types for the airline round trip.

Every failure the round trip can hit is one of these. They are all fatal to the
command line run: main.run_round_trip logs them and exits non-zero. The Couchbase
SDK exception that caused them is kept as __cause__.
"""


class RoundTripError(Exception):
    """Base class for all round trip failures"""


class ClusterConnectionError(RoundTripError):
    """The cluster could not be reached, or a bucket/collection could not be resolved"""


class AuthenticationError(ClusterConnectionError):
    """The cluster rejected the credentials or the allowed SASL mechanisms"""


class WriteError(RoundTripError):
    """The upsert was rejected or did not complete"""


class ReadError(RoundTripError):
    """The get was rejected or did not complete"""


class DocumentMissingError(ReadError):
    """The requested key does not exist in the collection"""


class DecodeError(RoundTripError):
    """A fetched document could not be turned back into an Airline"""
