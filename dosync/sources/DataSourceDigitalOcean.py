# This file is part of dosync. See LICENSE file for license information.
"""Reader for the DigitalOcean droplet metadata service.

Notes:
 * The service is a plain path addressable tree. Directory nodes return a
   whitespace separated listing of child names, sub-collections carrying a
   trailing slash. Leaf nodes return their value as the body.
 * Only the link-local endpoint is used, so the caller must make sure that
   169.254.169.254 is routable before crawling (see dosync.net.ephemeral).
 * Interfaces live under interfaces/{public,private}/<index>/. A node is an
   interface once its listing contains the mac token; the depth of the tree
   is not otherwise assumed.
"""

import logging
import time
from collections import namedtuple
from typing import FrozenSet, Iterator, NamedTuple, Optional, Tuple, Union

from dosync.net import normalize_mac
from dosync.url_helper import UrlError, combine_url, readurl

LOG = logging.getLogger(__name__)

METADATA_URL = "http://169.254.169.254/metadata/v1/"
INTERFACES_PATH = "interfaces/"
MAC_TOKEN = "mac"

MD_RETRIES = 20
MD_TIMEOUT = 1
MD_WAIT_RETRY = 1

FetchParams = namedtuple(
    "FetchParams", ["base_url", "max_attempts", "timeout", "retry_interval"]
)
DEFAULT_FETCH_PARAMS = FetchParams(
    METADATA_URL, MD_RETRIES, MD_TIMEOUT, MD_WAIT_RETRY
)


class InterfaceNode(NamedTuple):
    path: str
    attributes: FrozenSet[str]


class CollectionNode(NamedTuple):
    path: str
    children: Tuple[str, ...]


MetadataNode = Union[InterfaceNode, CollectionNode]


class InterfaceRecord(NamedTuple):
    mac: str
    kind: Optional[str]
    path: str
    attributes: FrozenSet[str]


def fetch_params_from_config(cfg: dict) -> FetchParams:
    return FetchParams(
        base_url=cfg.get("metadata_url", METADATA_URL),
        max_attempts=int(cfg.get("retries", MD_RETRIES)),
        timeout=float(cfg.get("timeout", MD_TIMEOUT)),
        retry_interval=float(cfg.get("wait_retry", MD_WAIT_RETRY)),
    )


class MetadataFetcher:
    """Bounded retry GET against the metadata service.

    Every read gets the same fixed budget: max_attempts tries spaced
    retry_interval seconds apart, each limited to timeout seconds.
    """

    def __init__(self, params: FetchParams = DEFAULT_FETCH_PARAMS):
        if params.max_attempts < 1:
            raise ValueError(
                "max_attempts must be at least 1, got %s"
                % params.max_attempts
            )
        self.params = params

    def url_for(self, path: str) -> str:
        return combine_url(self.params.base_url, path)

    def fetch(self, path: str) -> Optional[str]:
        """Return the body at path, or None once the budget is spent."""
        url = self.url_for(path)
        try:
            response = readurl(
                url,
                timeout=self.params.timeout,
                retries=self.params.max_attempts - 1,
                sec_between=self.params.retry_interval,
            )
        except UrlError as e:
            LOG.warning(
                "Unable to get result for %s after %s attempts: %s",
                url,
                self.params.max_attempts,
                e,
            )
            return None
        result = str(response)
        LOG.debug("Got a result of %s from a query of %s", result, url)
        return result

    def is_reachable(self) -> bool:
        """Probe the base url, one attempt per retry slot."""
        url = self.params.base_url
        for attempt in range(self.params.max_attempts):
            LOG.info("Attempting to connect to metadata service ...")
            try:
                readurl(url, timeout=self.params.timeout, retries=0)
                return True
            except UrlError as e:
                LOG.info("Unable to connect to metadata service! (%s)", e)
            if attempt + 1 < self.params.max_attempts:
                time.sleep(self.params.retry_interval)
        return False


def read_node(fetcher: MetadataFetcher, path: str) -> Optional[MetadataNode]:
    """Fetch the listing at path and classify it.

    A listing containing the mac token is a single interface, anything
    else is a collection of further nodes.
    """
    listing = fetcher.fetch(path)
    if listing is None:
        return None
    tokens = listing.split()
    if MAC_TOKEN in tokens:
        return InterfaceNode(path, frozenset(tokens))
    return CollectionNode(path, tuple(tokens))


def crawl_interfaces(
    fetcher: MetadataFetcher, path: str = INTERFACES_PATH
) -> Iterator[InterfaceRecord]:
    """Walk the tree below path and yield one record per interface node.

    The walk is depth first in listing order. Collection entries without a
    trailing slash are ignored.
    """
    stack = [path]
    while stack:
        node_path = stack.pop()
        node = read_node(fetcher, node_path)
        if node is None:
            LOG.warning("Unable to read metadata node %s, skipping", node_path)
            continue
        if isinstance(node, CollectionNode):
            children = [c for c in node.children if c.endswith("/")]
            stack.extend(node_path + c for c in reversed(children))
            continue
        mac = fetcher.fetch(node_path + "mac")
        if not mac:
            LOG.warning("No mac address for interface at %s", node_path)
            continue
        kind = fetcher.fetch(node_path + "type")
        yield InterfaceRecord(
            normalize_mac(mac),
            kind.strip() if kind else None,
            node_path,
            node.attributes,
        )


class DataSourceDigitalOcean:
    def __init__(self, fetcher: MetadataFetcher):
        self.fetcher = fetcher

    def is_reachable(self) -> bool:
        return self.fetcher.is_reachable()

    def get_public_ssh_keys(self) -> Optional[str]:
        keys = self.fetcher.fetch("public-keys")
        if keys is None:
            return None
        return keys.strip()

    def get_hostname(self) -> Optional[str]:
        hostname = self.fetcher.fetch("hostname")
        if hostname is None:
            return None
        return hostname.strip()

    def get_interfaces(self) -> Iterator[InterfaceRecord]:
        return crawl_interfaces(self.fetcher, INTERFACES_PATH)
