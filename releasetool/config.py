__author__ = 'marko.kirves'

import configparser
import logging
import os

import semantic_version
import yaml

from releasetool import __version__

logger = logging.getLogger(__name__)

STATE_FILE = '.releasetool'
STATE_SECTION = 'releasetool'

RELEASETOOL_VERSION = semantic_version.Version(__version__)

_config = None
environment_config = {}


class UnsupportedVersion(Exception):
    pass


class ConfigurationError(Exception):
    pass


def load():
    global _config
    if _config is None:
        _config = _read_config_file()
    return _config


def save(config_file):
    """Remember the config file path for the following tasks"""
    if config_file is None:
        raise ValueError('Config file path missing')

    config = load()
    if not config.has_section(STATE_SECTION):
        config.add_section(STATE_SECTION)
    config.set(STATE_SECTION, 'config', config_file)

    with open(STATE_FILE, 'w') as outfile:
        config.write(outfile)

    return config


def _read_config_file():

    config = configparser.ConfigParser()

    if os.path.exists(STATE_FILE):
        config.read(STATE_FILE)

    return config


def find_config_file():
    search = [
        'config/release.yml',
        'config/releasetool.yml',
    ]
    for file in search:
        if os.path.exists(file):
            return file
    return None


def get_config_file():
    config = load()
    if config.has_option(STATE_SECTION, 'config'):
        return config.get(STATE_SECTION, 'config')
    return find_config_file()


def read_config_file(config_file):
    if config_file is None:
        raise ConfigurationError('Config file path not defined')

    if not os.path.exists(config_file):
        raise ConfigurationError('Config file missing: ' + config_file)

    with open(config_file) as f:
        cfg = yaml.safe_load(f) or {}

    # config files without a version are written for the current release
    if 'version' in cfg:
        version = semantic_version.Version.coerce(str(cfg['version']))
    else:
        version = RELEASETOOL_VERSION

    if version > RELEASETOOL_VERSION:
        raise UnsupportedVersion('Configuration file is unsupported by the installed releasetool version ({} > {})'
                                 .format(version, RELEASETOOL_VERSION))

    return cfg


def get_environment_config(environment, config_file=None):
    """
    Settings of the environment: the defaults section overridden by the
    environment section.

    :rtype: dict
    """
    if config_file is None:
        config_file = get_config_file()

    cfg = read_config_file(config_file)

    environments = cfg.get('environments') or {}
    if environment not in environments:
        raise ConfigurationError('Configuration not found for environment "' + environment + '" in ' + config_file)

    merged = dict(cfg.get('defaults') or {})
    merged.update(environments[environment] or {})
    return merged


def environment(name, config_file=None):
    """Initialize configuration for the given environment from the config file"""

    global environment_config
    environment_config = get_environment_config(name, config_file)
    environment_config['environment'] = name
    logger.debug('Loaded configuration for environment %s', name)
    return environment_config


def get_config():
    return environment_config


def connection_settings(config, name, variables=None):
    """
    Settings of a connection section (jira, confluence, influxdb, ...).
    Variables are replaced so credentials can be passed in by Jenkins.

    :type config: dict
    :type variables: releasetool.variables.VariableResolver
    :rtype: dict
    """
    section = config.get(name)
    if not section:
        raise ConfigurationError('Configuration section "%s" missing' % name)

    if variables is not None:
        section = variables.replace_all(section)

    if not section.get('url'):
        raise ConfigurationError('Configuration section "%s" has no url' % name)

    return section
