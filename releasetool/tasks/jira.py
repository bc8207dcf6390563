__author__ = 'marko.kirves'

import logging

from fabric import task

from releasetool.helpers import load_environment, open_jira
from releasetool.jira import ticketing, versioning

logger = logging.getLogger(__name__)


@task
def modify_tickets(c, environment):
    """Apply the configured modifications to the selected tickets"""
    config, variables = load_environment(environment)
    templates = [ticketing.modify_template_from_config(t) for t in config.get('modify_tickets', [])]

    with open_jira(config, variables) as jira:
        for template in templates:
            template.apply_modifications(jira, variables)


@task
def add_tickets(c, environment):
    """Create the configured tickets"""
    config, variables = load_environment(environment)
    templates = [ticketing.add_template_from_config(t) for t in config.get('add_tickets', [])]

    with open_jira(config, variables) as jira:
        for template in templates:
            template.publish_ticket(jira, variables)


@task
def edit_versions(c, environment):
    """Create or update the configured project versions"""
    config, variables = load_environment(environment)
    templates = [versioning.template_from_config(v) for v in config.get('versions', [])]

    with open_jira(config, variables) as jira:
        for template in templates:
            template.apply_modifications(jira, variables)
