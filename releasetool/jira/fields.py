"""
Metadata of JIRA issue fields, as returned by /rest/api/2/field.

Only fields whose (element) type is one of SUPPORTED_TYPES can be changed by
the generic field modifications. Fields of other types are still listed but
never offered for selection.
"""

__author__ = 'marko.kirves'

SUPPORTED_TYPES = frozenset(['any', 'number', 'string', 'version'])


class ValidationError(ValueError):

    def __init__(self, message, field_name=None):
        super(ValidationError, self).__init__(message)
        self.field_name = field_name


class FieldMetadata(object):

    def __init__(self, internal_name, human_readable_name, element_type=None, is_array=False, is_modifiable=True):
        self.internal_name = internal_name
        self.human_readable_name = human_readable_name
        self.element_type = element_type
        self.is_array = is_array
        self.is_modifiable = is_modifiable

    @classmethod
    def from_json(cls, field):
        """
        :type field: dict
        :rtype: FieldMetadata
        """
        schema = field.get('schema')
        if not schema:
            return cls(field['id'], field['name'], is_modifiable=False)

        if schema.get('type', '').lower() == 'array':
            return cls(field['id'], field['name'], schema.get('items'), is_array=True)
        return cls(field['id'], field['name'], schema.get('type'))

    def __repr__(self):
        return 'FieldMetadata(%r, %r, %r, is_array=%r, is_modifiable=%r)' % (
            self.internal_name, self.human_readable_name, self.element_type,
            self.is_array, self.is_modifiable)

    @property
    def is_supported(self):
        return self.is_modifiable and self.element_type in SUPPORTED_TYPES

    @property
    def supports_set(self):
        return self.is_supported and not self.is_array

    @property
    def supports_add(self):
        return self.is_supported and self.is_array

    @property
    def supports_remove(self):
        return self.is_supported and self.is_array

    @property
    def supports_replace(self):
        return self.is_supported and self.is_array

    def require_modifiable(self):
        if not self.is_modifiable:
            raise ValidationError('Field with the name "%s" is not modifiable!' % self.human_readable_name,
                                  self.human_readable_name)

    def require_scalar(self):
        self.require_modifiable()
        if self.is_array:
            raise ValidationError('Field with the name "%s" is an array field, use the array modifications!'
                                  % self.human_readable_name, self.human_readable_name)

    def require_array(self):
        self.require_modifiable()
        if not self.is_array:
            raise ValidationError('Field with the name "%s" is not an array field, use the set modifications!'
                                  % self.human_readable_name, self.human_readable_name)


def find_field(fields, name):
    """
    Find a field by its human readable name, ignoring case.

    :type fields: list of FieldMetadata
    :type name: str
    :rtype: FieldMetadata
    """
    for field in fields:
        if field.human_readable_name.lower() == name.lower():
            return field
    raise ValidationError('Field with the name "%s" does not exist!' % name, name)


def selectable_fields(fields, array=None):
    """
    Fields which can be offered for the generic modifications.

    :param array: only array fields if True, only scalar fields if False, both if None
    :rtype: list of FieldMetadata
    """
    return [f for f in fields
            if f.is_supported and (array is None or f.is_array == array)]
