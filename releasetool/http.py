__author__ = 'marko.kirves'

import json
import logging

import requests
from requests.auth import HTTPBasicAuth

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 60


class RequestFailed(Exception):

    def __init__(self, method, url, status_code=None, text=None):
        message = '%s %s failed' % (method, url)
        if status_code is not None:
            message += ' with status %s' % status_code
        if text:
            message += ': %s' % text
        super(RequestFailed, self).__init__(message)
        self.status_code = status_code
        self.text = text


class JsonHTTPClient(object):
    """
    Sends and receives JSON documents to a server using basic authentication.
    Paths are relative to the base url given to the constructor.
    """

    def __init__(self, url, user=None, password=None, proxy=None, timeout=DEFAULT_TIMEOUT, session=None):
        """
        :type url: str
        :type proxy: str
        :type session: requests.Session
        """
        self.url = url.rstrip('/')
        self.proxy = proxy
        self.timeout = timeout

        self.session = session if session is not None else requests.Session()
        if user is not None:
            self.session.auth = HTTPBasicAuth(user, password)
        if proxy:
            self.session.proxies = {'http': proxy, 'https': proxy}

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_value, traceback):
        self.close()

    def close(self):
        self.session.close()

    def get_json(self, path, params=None):
        return self._execute('GET', path, params=params)

    def put_json(self, path, data):
        return self._execute('PUT', path, data=json.dumps(data),
                             headers={'Content-Type': 'application/json'})

    def post_json(self, path, data):
        return self._execute('POST', path, data=json.dumps(data),
                             headers={'Content-Type': 'application/json'})

    def patch_json(self, path, data):
        return self._execute('PATCH', path, data=json.dumps(data),
                             headers={'Content-Type': 'application/json'})

    def delete(self, path):
        return self._execute('DELETE', path)

    def post_data(self, path, data, params=None, content_type='text/plain; charset=utf-8'):
        """Posts a raw body, the response is parsed as JSON if there is one."""
        if isinstance(data, str):
            data = data.encode('utf-8')
        return self._execute('POST', path, data=data, params=params,
                             headers={'Content-Type': content_type})

    def _execute(self, method, path, headers=None, **kwargs):
        url = self.url + path
        request_headers = {'Accept': 'application/json'}
        if headers:
            request_headers.update(headers)

        logger.debug('%s %s', method, url)
        try:
            response = self.session.request(method, url, headers=request_headers,
                                            timeout=self.timeout, **kwargs)
        except requests.RequestException as e:
            raise RequestFailed(method, url, text=str(e))

        if not 200 <= response.status_code < 300:
            raise RequestFailed(method, url, response.status_code, response.text)

        if not response.content:
            return None
        try:
            return response.json()
        except ValueError:
            raise RequestFailed(method, url, response.status_code, 'response is not valid JSON')
