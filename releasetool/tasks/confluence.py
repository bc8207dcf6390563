__author__ = 'marko.kirves'

from fabric import task

from releasetool.confluence import publish_release_notes
from releasetool.helpers import load_environment, open_confluence, open_jira, require_options


@task
def release_notes(c, environment):
    """Publish the tickets of a release on a new confluence page"""
    config, variables = load_environment(environment)
    notes = variables.replace_all(config.get('release_notes') or {})
    require_options(notes, 'Release notes', ('jql', 'space', 'title'))

    confluence = open_confluence(config, variables)
    try:
        with open_jira(config, variables) as jira:
            publish_release_notes(jira, confluence, notes['jql'], notes['space'], notes['title'],
                                  notes.get('parent_title'))
    finally:
        confluence.close()
