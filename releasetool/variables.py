__author__ = 'marko.kirves'

import os
import re

VARIABLE = re.compile(r'\$\{([^}]+)\}')


class VariableResolver(object):
    """
    Replaces ${NAME} references with build variables.

    References to unknown variables are kept as they are.
    """

    def __init__(self, variables=None):
        self.variables = dict(variables or {})

    def __contains__(self, name):
        return name in self.variables

    def __getitem__(self, name):
        return self.variables[name]

    def __setitem__(self, name, value):
        self.variables[name] = value

    def lookup(self, name):
        return self.variables.get(name)

    def replace(self, text):
        """
        :type text: str
        :rtype: str
        """
        if text is None:
            return None

        def _substitute(match):
            value = self.variables.get(match.group(1))
            if value is None:
                return match.group(0)
            return str(value)

        return VARIABLE.sub(_substitute, text)

    def replace_all(self, data):
        """Replaces variables in all strings of a nested dict / list structure."""
        if isinstance(data, str):
            return self.replace(data)
        if isinstance(data, dict):
            return dict((k, self.replace_all(v)) for k, v in data.items())
        if isinstance(data, list):
            return [self.replace_all(v) for v in data]
        return data


def from_environment(environ=None, parameters=None):
    """
    Build parameters take priority over environment variables.

    :type environ: dict
    :type parameters: dict
    :rtype: VariableResolver
    """
    variables = dict(os.environ if environ is None else environ)
    for name, value in (parameters or {}).items():
        if value is not None:
            variables[name] = str(value)
    return VariableResolver(variables)
