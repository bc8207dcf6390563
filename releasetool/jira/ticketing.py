"""
Creation and modification of JIRA tickets.

A ModifyTicketsTemplate selects tickets (by JQL or from the commits of a
GitHub pull request) and applies a list of TicketModification to each of
them. An AddTicketTemplate creates a new ticket.

All texts may reference build variables as ${NAME}.
"""

__author__ = 'marko.kirves'

import logging
import re

from releasetool.github import GITHUB_API_URL
from releasetool.http import JsonHTTPClient
from releasetool.jira.fields import ValidationError, find_field

logger = logging.getLogger(__name__)

GITHUB_PAGE_SIZE = 100

REGEX_KEY_GROUP_NAME = 'key'

SOURCE_JQL = 'JQL'
SOURCE_PULL_REQUEST = 'GHPullRequest'

ARRAY_ADD = 'add'
ARRAY_REMOVE = 'remove'
ARRAY_REPLACE = 'replace'


class TicketModification(object):

    def apply(self, ticket_key, jira, variables):
        """
        :type ticket_key: str
        :type jira: releasetool.jira.access.JiraAccessTool
        :type variables: releasetool.variables.VariableResolver
        """
        raise NotImplementedError


class SetFieldModification(TicketModification):

    def __init__(self, field_name, value):
        self.field_name = field_name
        self.value = value

    def apply(self, ticket_key, jira, variables):
        field = find_field(jira.get_fields(), variables.replace(self.field_name))
        field.require_scalar()
        value = variables.replace(self.value)

        logger.info('Setting %s of %s to "%s"', field.human_readable_name, ticket_key, value)
        jira.update_ticket(ticket_key, lambda b: b.set_scalar(field.internal_name, field.element_type, value))


class ModifyArrayFieldModification(TicketModification):

    def __init__(self, field_name, value, modification_type=None):
        self.field_name = field_name
        self.value = value
        self.modification_type = modification_type or ARRAY_ADD
        if self.modification_type not in (ARRAY_ADD, ARRAY_REMOVE, ARRAY_REPLACE):
            raise ValueError('Unknown array modification "%s"' % self.modification_type)

    def apply(self, ticket_key, jira, variables):
        field = find_field(jira.get_fields(), variables.replace(self.field_name))
        field.require_array()
        value = variables.replace(self.value)

        def _build(builder):
            if self.modification_type == ARRAY_ADD:
                builder.add_value(field.internal_name, field.element_type, value)
            elif self.modification_type == ARRAY_REMOVE:
                builder.remove_value(field.internal_name, field.element_type, value)
            else:
                builder.set_array(field.internal_name, field.element_type, value)

        logger.info('%s "%s" on %s of %s', self.modification_type.capitalize(), value,
                    field.human_readable_name, ticket_key)
        jira.update_ticket(ticket_key, _build)


class AddCommentModification(TicketModification):

    def __init__(self, body):
        self.body = body

    def apply(self, ticket_key, jira, variables):
        if not self.body:
            return
        body = variables.replace(self.body)
        logger.info('Commenting on %s', ticket_key)
        jira.update_ticket(ticket_key, lambda b: b.add_comment(body))


class AddAffectedVersionModification(TicketModification):

    def __init__(self, version):
        self.version = version

    def apply(self, ticket_key, jira, variables):
        version = variables.replace(self.version)
        logger.info('Adding affected version %s to %s', version, ticket_key)
        jira.update_ticket(ticket_key, lambda b: b.add_affected_version(version))


class RemoveAffectedVersionModification(TicketModification):

    def __init__(self, version):
        self.version = version

    def apply(self, ticket_key, jira, variables):
        version = variables.replace(self.version)
        logger.info('Removing affected version %s from %s', version, ticket_key)
        jira.update_ticket(ticket_key, lambda b: b.remove_affected_version(version))


class PerformTransitionModification(TicketModification):
    """Changes the status of a ticket, this can't be done with an update request."""

    def __init__(self, transition_name, comment=None):
        self.transition_name = transition_name
        self.comment = comment

    def apply(self, ticket_key, jira, variables):
        transition_name = variables.replace(self.transition_name)
        comment = variables.replace(self.comment or '')

        transition_id = None
        for transition in jira.get_available_transitions(ticket_key):
            if transition['name'].lower() == transition_name.lower():
                transition_id = transition['id']

        if transition_id is None:
            raise ValidationError('The transition with the name "%s" is either non existent or not accessible '
                                  'for the ticket %s' % (transition_name, ticket_key), transition_name)

        logger.info('Performing transition "%s" on %s', transition_name, ticket_key)
        jira.perform_transition(ticket_key, transition_id, comment or None)


class AddTicketField(object):
    """A field value of a new ticket. Array fields get replaced with the single value."""

    def __init__(self, field_name, value):
        self.field_name = field_name
        self.value = value

    def apply(self, builder, jira, variables):
        field = find_field(jira.get_fields(), variables.replace(self.field_name))
        field.require_modifiable()
        value = variables.replace(self.value)

        if field.is_array:
            builder.set_array(field.internal_name, field.element_type, value)
        else:
            builder.set_scalar(field.internal_name, field.element_type, value)


def pull_request_commit_messages(repository, pull_request_id, client=None):
    """
    Commit messages of a GitHub pull request.

    :param repository: the repository name, e.g. owner/name
    :type client: releasetool.http.JsonHTTPClient
    :rtype: list of str
    """
    if client is None:
        client = JsonHTTPClient(GITHUB_API_URL)

    path = '/repos/%s/pulls/%d/commits' % (repository, pull_request_id)
    messages = []
    page = 1
    while True:
        commits = client.get_json(path, params={'per_page': GITHUB_PAGE_SIZE, 'page': page}) or []
        for detail in commits:
            message = detail.get('commit', {}).get('message')
            if message is not None:
                messages.append(message)
        if len(commits) < GITHUB_PAGE_SIZE:
            break
        page += 1
    return messages


def extract_ticket_keys(regex, messages):
    """
    Ticket keys found by the named group "key" of the regex, upper-cased.

    :rtype: list of str
    """
    pattern = re.compile(regex)
    if REGEX_KEY_GROUP_NAME not in pattern.groupindex:
        raise ValueError('The commit regex "%s" has no group named "%s"' % (regex, REGEX_KEY_GROUP_NAME))

    keys = []
    for message in messages:
        for match in pattern.finditer(message):
            key = match.group(REGEX_KEY_GROUP_NAME)
            if key is not None and key.upper() not in keys:
                keys.append(key.upper())
    return keys


def build_jql_by_ticket_keys(ticket_keys):
    return ' OR '.join('issueKey = "%s"' % key for key in ticket_keys)


class ModifyTicketsTemplate(object):

    def __init__(self, ticket_source=SOURCE_JQL, jql_filter=None, commit_regex=None, modifications=None,
                 commit_messages=pull_request_commit_messages):
        """
        :param commit_messages: callable (repository, pull request id) returning commit messages
        """
        self.ticket_source = ticket_source
        self.jql_filter = jql_filter
        self.commit_regex = commit_regex
        self.modifications = modifications or []
        self.commit_messages = commit_messages

    def select_tickets(self, jira, variables):
        """
        :rtype: list of releasetool.jira.access.Issue
        """
        if self.ticket_source.lower() == SOURCE_JQL.lower():
            jql = variables.replace(self.jql_filter)
            tickets = jira.get_tickets_by_jql(jql)
            logger.info('Updating %d tickets matching filter "%s"', len(tickets), jql)
            return tickets

        if self.ticket_source.lower() == SOURCE_PULL_REQUEST.lower():
            repository = variables.lookup('ghprbGhRepository')
            pull_request_id = variables.lookup('ghprbPullId')
            if repository is None or pull_request_id is None:
                logger.warning('${ghprbGhRepository} or ${ghprbPullId} has not been set, maybe this build '
                               'was not triggered by a pull request? Skipping ticket modifications...')
                return []

            messages = self.commit_messages(repository, int(pull_request_id))
            keys = extract_ticket_keys(variables.replace(self.commit_regex), messages)
            if not keys:
                logger.info('No ticket keys found in the commits of pull request #%s', pull_request_id)
                return []
            tickets = jira.get_tickets_by_jql(build_jql_by_ticket_keys(keys))
            logger.info('Updating %d tickets referenced by pull request #%s', len(tickets), pull_request_id)
            return tickets

        raise ValueError('Unknown ticket source "%s"' % self.ticket_source)

    def apply_modifications(self, jira, variables):
        tickets = []
        for ticket in self.select_tickets(jira, variables):
            if ticket.key not in [t.key for t in tickets]:
                tickets.append(ticket)

        for ticket in tickets:
            for modification in self.modifications:
                modification.apply(ticket.key, jira, variables)
        return tickets


class AddTicketTemplate(object):

    def __init__(self, title, issue_type, priority=None, description=None, perform_duplicate_check=False,
                 parent_jql=None, variable_name=None, field_values=None):
        self.title = title
        self.issue_type = issue_type
        self.priority = priority
        self.description = description
        self.perform_duplicate_check = perform_duplicate_check
        self.parent_jql = parent_jql
        self.variable_name = variable_name
        self.field_values = field_values or []

    def _find_parent_key(self, jira, variables):
        parent_jql = variables.replace(self.parent_jql or '')
        result = jira.get_tickets_by_jql(parent_jql)
        if len(result) != 1:
            raise ValidationError('Invalid number of tickets (%d) matching parent JQL \'%s\''
                                  % (len(result), parent_jql))
        return result[0].key

    def _is_duplicate(self, jira, title, parent_key):
        jql = 'summary ~ "%s"' % title
        # only tickets with the same parent count for sub-tasks
        if parent_key is not None:
            jql += ' AND parent = %s' % parent_key
        return any(t.summary and t.summary.lower() == title.lower() for t in jira.get_tickets_by_jql(jql))

    def publish_ticket(self, jira, variables):
        """
        Creates the ticket unless the duplicate check finds it.

        :return: the key of the new ticket or None if it was skipped
        """
        title = variables.replace(self.title)
        type_name = variables.replace(self.issue_type)
        priority_name = variables.replace(self.priority)
        description = variables.replace(self.description)

        issue_type = jira.get_issue_type_by_name(type_name)
        if issue_type is None:
            raise ValidationError('Issue type "%s" does not exist!' % type_name, type_name)

        priority = None
        if priority_name:
            priority = jira.get_issue_priority_by_name(priority_name)

        parent_key = None
        if issue_type.get('subtask'):
            parent_key = self._find_parent_key(jira, variables)

        if self.perform_duplicate_check and self._is_duplicate(jira, title, parent_key):
            logger.info('Skipping ticket "%s", as it is already present.', title)
            return None

        def _build(fields):
            fields['summary'] = title
            if description:
                fields['description'] = description
            if priority is not None:
                fields['priority'] = {'id': priority['id']}
            if parent_key is not None:
                fields['parent'] = {'key': parent_key}

        logger.info('Creating ticket "%s".', title)
        ticket_key = jira.add_ticket(_build, issue_type)

        if self.field_values:
            def _build_update(builder):
                for field_value in self.field_values:
                    field_value.apply(builder, jira, variables)
            jira.update_ticket(ticket_key, _build_update)

        variable_name = variables.replace(self.variable_name or '')
        if variable_name:
            logger.info('Setting variable %s to %s', variable_name, ticket_key)
            variables[variable_name] = ticket_key

        return ticket_key


MODIFICATIONS = {
    'set_field': lambda c: SetFieldModification(c['field'], c['value']),
    'modify_array_field': lambda c: ModifyArrayFieldModification(c['field'], c['value'], c.get('operation')),
    'add_comment': lambda c: AddCommentModification(c.get('body')),
    'add_affected_version': lambda c: AddAffectedVersionModification(c['version']),
    'remove_affected_version': lambda c: RemoveAffectedVersionModification(c['version']),
    'perform_transition': lambda c: PerformTransitionModification(c['transition'], c.get('comment')),
}


def modification_from_config(config):
    """
    :type config: dict
    :rtype: TicketModification
    """
    kind = config.get('type')
    if kind not in MODIFICATIONS:
        raise ValueError('Unknown ticket modification "%s"' % kind)
    try:
        return MODIFICATIONS[kind](config)
    except KeyError as e:
        raise ValueError('Ticket modification "%s" is missing option %s' % (kind, e))


def modify_template_from_config(config):
    return ModifyTicketsTemplate(
        ticket_source=config.get('source', SOURCE_JQL),
        jql_filter=config.get('jql'),
        commit_regex=config.get('commit_regex'),
        modifications=[modification_from_config(m) for m in config.get('modifications', [])],
    )


def add_template_from_config(config):
    return AddTicketTemplate(
        title=config['title'],
        issue_type=config['type'],
        priority=config.get('priority'),
        description=config.get('description'),
        perform_duplicate_check=config.get('duplicate_check', False),
        parent_jql=config.get('parent_jql'),
        variable_name=config.get('variable'),
        field_values=[AddTicketField(f['field'], f['value']) for f in config.get('fields', [])],
    )
