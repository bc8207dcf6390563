__author__ = 'marko.kirves'

import logging
from datetime import date

logger = logging.getLogger(__name__)

RELEASED = 'released'
UNRELEASED = 'unreleased'
KEEP = 'keep'


class ReleaseBlocked(Exception):
    pass


class ModifyAddVersionTemplate(object):
    """
    Creates or updates a project version.

    release_state is "released", "unreleased" or "keep". With fail_on_jql a
    version is only released if no ticket of the version matches fail_query.
    """

    def __init__(self, version_name, replace_description=False, description_text=None, release_state=KEEP,
                 fail_on_jql=False, fail_query=None):
        if release_state not in (RELEASED, UNRELEASED, KEEP):
            raise ValueError('Unknown release state "%s"' % release_state)
        self.version_name = version_name
        self.replace_description = replace_description
        self.description_text = description_text
        self.release_state = release_state
        self.fail_on_jql = fail_on_jql
        self.fail_query = fail_query

    def apply_modifications(self, jira, variables):
        version_name = variables.replace(self.version_name)
        description_text = variables.replace(self.description_text)
        fail_query = variables.replace(self.fail_query)

        if self.release_state == RELEASED and self.fail_on_jql:
            jql = 'affectedVersion="%s" AND (%s)' % (version_name, fail_query)
            open_tickets = len(jira.get_tickets_by_jql(jql))
            if open_tickets > 0:
                raise ReleaseBlocked('Unable to release version %s, because there are still %d tickets '
                                     'matching the query \'%s\'' % (version_name, open_tickets, jql))

        def _build(version):
            if self.replace_description:
                version['description'] = description_text or ''
            if self.release_state == UNRELEASED:
                version['released'] = False
            elif self.release_state == RELEASED:
                version['released'] = True
                version['releaseDate'] = date.today().isoformat()

        logger.info('Updating / Creating version %s', version_name)
        return jira.create_update_version(version_name, _build)


def template_from_config(config):
    return ModifyAddVersionTemplate(
        version_name=config['name'],
        replace_description='description' in config,
        description_text=config.get('description'),
        release_state=config.get('release_state', KEEP),
        fail_on_jql=bool(config.get('fail_query')),
        fail_query=config.get('fail_query'),
    )
