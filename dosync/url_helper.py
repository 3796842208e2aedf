# This file is part of dosync. See LICENSE file for license information.

import logging
import time
from urllib.parse import urljoin

import requests
from requests import exceptions

from dosync import __version__

LOG = logging.getLogger(__name__)

USER_AGENT = "dosync/%s" % __version__


def combine_url(base, *add_ons):
    """Join url path segments, keeping exactly one slash between them."""
    url = base
    for add_on in add_ons:
        if not add_on:
            continue
        if not url.endswith("/"):
            url += "/"
        url = urljoin(url, str(add_on).lstrip("/"))
    return url


class UrlError(IOError):
    def __init__(self, cause, code=None, url=None):
        IOError.__init__(self, str(cause))
        self.cause = cause
        self.code = code
        self.url = url


class UrlResponse:
    def __init__(self, response: requests.Response):
        self._response = response

    @property
    def contents(self) -> bytes:
        if self._response.content is None:
            return b""
        return self._response.content

    @property
    def code(self) -> int:
        return self._response.status_code

    def ok(self) -> bool:
        return 200 <= self.code < 300

    def __str__(self):
        return self.contents.decode("utf-8", errors="replace")


def readurl(
    url,
    *,
    timeout=None,
    retries=0,
    sec_between=1,
) -> UrlResponse:
    """Wrapper around requests.get with a fixed number of retries.

    :param url: Mandatory url to request.
    :param timeout: Timeout in seconds for each individual attempt.
    :param retries: Number of additional attempts after the first failure.
    :param sec_between: Seconds to sleep between failed attempts.

    :return: A UrlResponse for the first 2xx response.
    :raises UrlError: when every attempt failed.
    """
    req_headers = {"User-Agent": USER_AGENT}
    excp = None
    attempts = int(retries) + 1
    for i in range(attempts):
        try:
            r = requests.get(url, timeout=timeout, headers=req_headers)
            r.raise_for_status()
            return UrlResponse(r)
        except exceptions.RequestException as e:
            if isinstance(e, exceptions.HTTPError) and e.response is not None:
                excp = UrlError(e, code=e.response.status_code, url=url)
            else:
                excp = UrlError(e, url=url)
            LOG.info(
                "Unable to get result for %s (attempt %s/%s): %s",
                url,
                i + 1,
                attempts,
                e,
            )
        if i + 1 < attempts and sec_between > 0:
            time.sleep(sec_between)
    raise excp
