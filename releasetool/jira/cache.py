__author__ = 'marko.kirves'

import logging
import threading

logger = logging.getLogger(__name__)

FIELD_METADATA = 'field_metadata'


class MetadataCache(object):
    """
    Caches JIRA metadata per connection.

    Every key is loaded at most once at a time: concurrent callers for the same
    key wait for the first loader instead of starting their own. A loader that
    raises leaves the key empty so the next call tries again.
    """

    def __init__(self):
        self._entries = {}
        self._locks = {}
        self._lock = threading.Lock()

    def _key_lock(self, key):
        with self._lock:
            return self._locks.setdefault(key, threading.Lock())

    def get(self, connection_id, entry, loader):
        key = (connection_id, entry)
        try:
            return self._entries[key]
        except KeyError:
            pass

        with self._key_lock(key):
            if key not in self._entries:
                logger.debug('Loading %s for %s', entry, connection_id)
                value = loader()
                if value is None:
                    return None
                self._entries[key] = value
            return self._entries[key]

    def invalidate(self, connection_id=None):
        with self._lock:
            if connection_id is None:
                self._entries.clear()
            else:
                for key in [k for k in self._entries if k[0] == connection_id]:
                    del self._entries[key]

    def field_metadata(self, jira):
        return self.get(jira.connection_id, FIELD_METADATA, lambda: tuple(jira.load_fields()))
