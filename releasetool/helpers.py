__author__ = 'marko.kirves'

import logging

import glob2

import releasetool.config
import releasetool.jenkins
import releasetool.twitter
from releasetool.confluence import ConfluenceAccessTool
from releasetool.github import GITHUB_UPLOADS_URL, GitHubAccessTool
from releasetool.jira.access import JiraAccessTool
from releasetool.jira.cache import MetadataCache

LOG_FORMAT = '%(asctime)s - %(levelname)s - %(name)s - %(message)s'

logger = logging.getLogger(__name__)

TWITTER_OPTIONS = ('consumer_key', 'consumer_secret', 'access_token', 'access_token_secret')

# shared by all JIRA connections of the process, entries are keyed by connection
metadata_cache = MetadataCache()


def load_environment(environment, config_file=None):
    """
    Loads the configuration of the environment and the variables of the
    running build, and sets up logging.

    :rtype: (dict, releasetool.variables.VariableResolver)
    """
    config = releasetool.config.environment(environment, config_file)
    logging.basicConfig(level=str(config.get('log_level', 'INFO')).upper(), format=LOG_FORMAT)
    variables = releasetool.jenkins.build_variables()
    return config, variables


def find_files(patterns, variables):
    """
    Paths of all files matching the glob patterns, in pattern order.

    :type patterns: list of str
    :rtype: list of str
    """
    paths = []
    for pattern in patterns:
        files = sorted(glob2.glob(variables.replace(pattern)))
        if not files:
            logger.warning('No files matching %s', pattern)
        paths.extend(files)
    return paths


def require_options(section, name, options):
    for option in options:
        if not section.get(option):
            raise releasetool.config.ConfigurationError('%s option "%s" not defined' % (name, option))


def open_jira(config, variables):
    """
    :rtype: releasetool.jira.access.JiraAccessTool
    """
    settings = releasetool.config.connection_settings(config, 'jira', variables)
    if not settings.get('project'):
        raise releasetool.config.ConfigurationError('JIRA project key not defined')

    return JiraAccessTool(settings['url'], settings.get('username'), settings.get('password'),
                          settings['project'], connection_id=settings.get('id'),
                          proxy=settings.get('proxy'), cache=metadata_cache)


def open_confluence(config, variables):
    """
    :rtype: releasetool.confluence.ConfluenceAccessTool
    """
    settings = releasetool.config.connection_settings(config, 'confluence', variables)
    return ConfluenceAccessTool(settings['url'], settings.get('username'), settings.get('password'),
                                proxy=settings.get('proxy'))


def open_github(config, variables, repository):
    """
    :rtype: releasetool.github.GitHubAccessTool
    """
    settings = releasetool.config.connection_settings(config, 'github', variables)
    return GitHubAccessTool(repository, settings.get('username'), settings.get('token'),
                            url=settings['url'], upload_url=settings.get('upload_url', GITHUB_UPLOADS_URL),
                            proxy=settings.get('proxy'))


def open_twitter(config, variables):
    """
    :rtype: tweepy.Client
    """
    settings = variables.replace_all(config.get('twitter') or {})
    require_options(settings, 'Twitter', TWITTER_OPTIONS)
    return releasetool.twitter.connect(*[settings[option] for option in TWITTER_OPTIONS])
