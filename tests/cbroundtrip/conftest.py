from unittest import mock

import pytest
from couchbase.exceptions import DocumentNotFoundException  # type: ignore

from cbroundtrip.config import ClusterConfig


class FakeCollection:
    """An in memory stand-in for a couchbase Collection with upsert/get semantics"""

    def __init__(self):
        self.docs = {}

    def upsert(self, key, value):
        self.docs[key] = dict(value)
        return mock.Mock(cas=len(self.docs))

    def get(self, key):
        if key not in self.docs:
            raise DocumentNotFoundException(message=f"{key} not found")
        result = mock.Mock()
        result.content_as = {dict: dict(self.docs[key])}
        return result


@pytest.fixture()
def fake_collection():
    return FakeCollection()


@pytest.fixture()
def cluster_config() -> ClusterConfig:
    return ClusterConfig(
        cb_host="localhost",
        cb_user="Administrator",
        cb_password="password",
        cb_bucket="travel-sample",
        cb_scope="_default",
        cb_collection="_default",
        cb_sasl_mechanisms=["PLAIN"],
        cb_wait_until_ready_seconds=5.0,
    )
