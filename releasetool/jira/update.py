__author__ = 'marko.kirves'

import copy

VERSION_FIELD = 'versions'
COMMENT_FIELD = 'comment'


class IssueUpdateBuilder(object):
    """
    Builds the body of a PUT /rest/api/2/issue/KEY request.

    Operations are collected per field in call order:

        {"update": {"labels": [{"add": "a"}, {"remove": "b"}]}}

    Values are packaged by element type: "version" becomes a {"name": value}
    reference, every other type is sent as a plain string, numbers included.
    """

    def __init__(self):
        self._updates = {}

    def _field_updates(self, field_name):
        return self._updates.setdefault(field_name, [])

    def _append(self, field_name, operation, value):
        self._field_updates(field_name).append({operation: value})
        return self

    def set_scalar(self, field_name, field_type, value):
        return self._append(field_name, 'set', package_value(field_type, value))

    def set_array(self, field_name, field_type, *values):
        return self._append(field_name, 'set', [package_value(field_type, v) for v in values])

    def add_value(self, field_name, field_type, value):
        return self._append(field_name, 'add', package_value(field_type, value))

    def remove_value(self, field_name, field_type, value):
        return self._append(field_name, 'remove', package_value(field_type, value))

    def add_comment(self, body):
        return self._append(COMMENT_FIELD, 'add', {'body': body})

    def add_affected_version(self, version_name):
        return self._append(VERSION_FIELD, 'add', name_reference(version_name))

    def remove_affected_version(self, version_name):
        return self._append(VERSION_FIELD, 'remove', name_reference(version_name))

    def is_empty(self):
        return not self._updates

    def serialize(self):
        """
        Returns the request data. The builder keeps its state.

        :rtype: dict
        """
        return {'update': copy.deepcopy(self._updates)}


def name_reference(name):
    return {'name': name}


def package_value(field_type, value):
    if field_type == 'version':
        return name_reference(value)
    return value
