__author__ = 'marko.kirves'

from fabric import task

from releasetool.github import publish_release
from releasetool.helpers import find_files, load_environment, open_github, open_jira, require_options


@task
def release(c, environment):
    """Publish a GitHub release listing the tickets of the release"""
    config, variables = load_environment(environment)
    options = variables.replace_all(config.get('github_release') or {})
    require_options(options, 'GitHub release', ('repository', 'tag', 'name', 'jql'))

    assets = find_files(options.get('assets', []), variables)

    github = open_github(config, variables, options['repository'])
    try:
        with open_jira(config, variables) as jira:
            publish_release(jira, github, options['jql'], options['tag'], options['name'],
                            prerelease=bool(options.get('prerelease', False)), assets=assets)
    finally:
        github.close()
