"""
Connecting to couchbase and resolving the collection the airline lives in.

Use cluster_session() rather than connect_cb() directly so the cluster is
always closed, including when a later step raises.
"""

import contextlib
import logging
from collections.abc import Iterator
from datetime import timedelta

from couchbase.auth import PasswordAuthenticator  # type: ignore
from couchbase.bucket import Bucket  # type: ignore
from couchbase.cluster import Cluster  # type: ignore
from couchbase.collection import Collection  # type: ignore
from couchbase.exceptions import (  # type: ignore
    AuthenticationException,
    CouchbaseException,
)
from couchbase.options import ClusterOptions  # type: ignore

from cbroundtrip.config import ClusterConfig
from cbroundtrip.exceptions import AuthenticationError, ClusterConnectionError

# Get a logger with this module's name to help with debugging
logger = logging.getLogger(__name__)

DEFAULT_SCOPE = "_default"
DEFAULT_COLLECTION = "_default"


def connection_string(host: str) -> str:
    """Bare hosts get the non-TLS couchbase:// scheme, anything with a scheme is left alone"""
    if "://" in host:
        return host
    return f"couchbase://{host}"


def connect_cb(config: ClusterConfig) -> Cluster:
    """
    Create a connection to the specified Couchbase cluster

    There is no retry here, the SDK does its own bootstrap retries.
    A cluster that was created but never became ready is closed before raising.
    Raises:
        AuthenticationError: the credentials or SASL mechanisms were rejected
        ClusterConnectionError: anything else went wrong while connecting
    """
    connstr = connection_string(config["cb_host"])

    # NOTE: For TLS/SSL connection use 'couchbases://<your-ip-address>' as cb_host
    logger.info(
        f"Connecting to Couchbase at: {connstr} as {config['cb_user']} "
        f"with SASL mechanisms {config['cb_sasl_mechanisms']}"
    )
    cluster = None
    try:
        auth = PasswordAuthenticator(
            config["cb_user"],
            config["cb_password"],
            allowed_sasl_mechanisms=config["cb_sasl_mechanisms"],
        )
        cluster = Cluster(connstr, ClusterOptions(auth))
        # Wait until the cluster is ready for use.
        cluster.wait_until_ready(timedelta(seconds=config["cb_wait_until_ready_seconds"]))
    except AuthenticationException as _e:
        close_failed(cluster)
        raise AuthenticationError(
            f"Couchbase server at {connstr} rejected the credentials for {config['cb_user']}"
        ) from _e
    except CouchbaseException as _e:
        close_failed(cluster)
        raise ClusterConnectionError(
            f"Error connecting to Couchbase server at: {connstr}"
        ) from _e
    logger.info("Couchbase connection success")
    return cluster


def close_failed(cluster: Cluster | None) -> None:
    """
    close a cluster whose connect failed, the connect error is the one that gets raised
    """
    if cluster is None:
        return
    try:
        cluster.close()
    except CouchbaseException as _e:
        logger.warning(f"Error closing couchbase connection after failed connect: {_e}")


@contextlib.contextmanager
def cluster_session(config: ClusterConfig) -> Iterator[Cluster]:
    """Yields a connected cluster and closes it on the way out"""
    cluster = connect_cb(config)
    try:
        yield cluster
    finally:
        logger.debug("Closing couchbase connection")
        cluster.close()


def get_collection(
    cluster: Cluster,
    bucket_name: str,
    scope_name: str = DEFAULT_SCOPE,
    collection_name: str = DEFAULT_COLLECTION,
) -> Collection:
    """Returns the named collection, or the bucket's default collection"""
    try:
        bucket: Bucket = cluster.bucket(bucket_name)
        if scope_name == DEFAULT_SCOPE and collection_name == DEFAULT_COLLECTION:
            collection = bucket.default_collection()
        else:
            collection = bucket.scope(scope_name).collection(collection_name)
    except CouchbaseException as _e:
        raise ClusterConnectionError(
            f"Could not open {bucket_name}.{scope_name}.{collection_name}"
        ) from _e
    logger.debug(f"Using collection {bucket_name}.{scope_name}.{collection_name}")
    return collection
