__author__ = 'marko.kirves'

import html
import logging
from collections import namedtuple

from jira import JIRA

from releasetool.jira.cache import MetadataCache
from releasetool.jira.fields import FieldMetadata
from releasetool.jira.update import IssueUpdateBuilder

logger = logging.getLogger(__name__)

SEARCH_PAGE_SIZE = 100
SEARCH_FIELDS = 'summary,issuetype'

Issue = namedtuple('Issue', ['key', 'summary', 'issue_type'])


def _issue_from_resource(resource):
    fields = resource.fields
    issue_type = getattr(fields, 'issuetype', None)
    return Issue(resource.key, getattr(fields, 'summary', None),
                 issue_type.name if issue_type is not None else None)


def _find_by_name(resources, name):
    found = None
    for resource in resources:
        if resource.name.lower() == name.lower():
            found = resource
    return found


def connect(url, user, password, proxy=None):
    """
    :rtype: jira.JIRA
    """
    proxies = {'http': proxy, 'https': proxy} if proxy else None
    basic_auth = (user, password) if user is not None else None
    return JIRA(server=url, basic_auth=basic_auth, proxies=proxies)


class JiraAccessTool(object):
    """
    Access to one project of a JIRA server.

    Builders are passed in as callables: the tool creates the builder (an
    IssueUpdateBuilder or the dict of a new ticket or version), lets the
    callable fill it in and sends the result.
    """

    def __init__(self, url, user, password, project_key, connection_id=None, proxy=None, cache=None, client=None):
        """
        :param connection_id: identity of the connection, metadata is cached per id
        :type cache: releasetool.jira.cache.MetadataCache
        :type client: jira.JIRA
        """
        self.url = url.rstrip('/')
        self.project_key = project_key
        self.connection_id = connection_id or '%s@%s/%s' % (user, self.url, project_key)
        self.cache = cache if cache is not None else MetadataCache()
        self.client = client if client is not None else connect(self.url, user, password, proxy)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_value, traceback):
        self.close()

    def close(self):
        self.client.close()

    def get_available_issue_types(self):
        return [t.name for t in self.client.issue_types()]

    def get_available_issue_priorities(self):
        return [p.name for p in self.client.priorities()]

    def get_available_issue_statuses(self):
        return [s.name for s in self.client.statuses()]

    def get_available_versions(self):
        return [v.name for v in self.get_project_versions()]

    def load_fields(self):
        """Fetches the field metadata, bypassing the cache."""
        return [FieldMetadata.from_json(f) for f in self.client.fields()]

    def get_fields(self):
        """
        :rtype: tuple of releasetool.jira.fields.FieldMetadata
        """
        return self.cache.field_metadata(self)

    def get_project_versions(self):
        return self.client.project_versions(self.project_key)

    def get_issue_type_by_name(self, type_name):
        """
        :return: the issue type JSON (id, name, subtask, ...) or None
        :rtype: dict
        """
        issue_type = _find_by_name(self.client.issue_types(), type_name)
        return issue_type.raw if issue_type is not None else None

    def get_issue_priority_by_name(self, priority_name):
        priority = _find_by_name(self.client.priorities(), priority_name)
        return priority.raw if priority is not None else None

    def get_version_by_name(self, version_name):
        """
        :rtype: jira.resources.Version
        """
        return _find_by_name(self.get_project_versions(), version_name)

    def create_update_version(self, version_name, build):
        """
        Updates the version with the given name, creating it first if it does not exist.

        build receives the version input dict, pre-filled with the current
        released and archived state.
        """
        version = self.get_version_by_name(version_name)
        # released versions cannot be created directly, create first and update afterwards
        if version is None:
            logger.info('Creating version %s in project %s', version_name, self.project_key)
            version = self.client.create_version(version_name, self.project_key)

        version_input = {
            'name': version_name,
            'archived': getattr(version, 'archived', False),
            'released': getattr(version, 'released', False),
        }
        build(version_input)
        version.update(**version_input)
        return version

    def get_tickets_by_jql(self, jql_query):
        """
        Finds all tickets of the project matching the query.

        :rtype: list of Issue
        """
        jql = '(%s) AND project = "%s"' % (jql_query, self.project_key)
        issues = []
        start_at = 0
        while True:
            page = self.client.search_issues(jql, startAt=start_at, maxResults=SEARCH_PAGE_SIZE,
                                             fields=SEARCH_FIELDS)
            issues.extend(_issue_from_resource(i) for i in page)
            start_at += len(page)
            if not page or start_at >= page.total:
                break
        return issues

    def get_tickets_by_version(self, version_name):
        return self.get_tickets_by_jql('affectedVersion = "%s"' % version_name)

    def get_ticket_by_key(self, ticket_key):
        return _issue_from_resource(self.client.issue(ticket_key, fields=SEARCH_FIELDS))

    def add_ticket(self, build, issue_type):
        """
        Creates a new ticket, build receives the dict of fields to fill in.

        :type issue_type: dict
        :return: the key of the new ticket
        """
        fields = {
            'project': {'key': self.project_key},
            'issuetype': {'id': issue_type['id']},
        }
        build(fields)
        return self.client.create_issue(fields=fields).key

    def update_ticket(self, ticket_key, build):
        """
        :param build: callable receiving a fresh IssueUpdateBuilder
        """
        builder = IssueUpdateBuilder()
        build(builder)
        if builder.is_empty():
            return
        issue = self.client.issue(ticket_key, fields='summary')
        issue.update(update=builder.serialize()['update'])

    def get_available_transitions(self, ticket_key):
        """
        :return: dicts with the id and name of each transition
        """
        return self.client.transitions(ticket_key)

    def perform_transition(self, ticket_key, transition_id, comment=None):
        self.client.transition_issue(ticket_key, str(transition_id), comment=comment or None)

    def build_release_notes_html(self, issues):
        """
        An HTML list of the given tickets, grouped by issue type.

        :type issues: list of Issue
        :rtype: str
        """
        issue_types = sorted(set(i.issue_type for i in issues), key=lambda t: (t or '').lower())

        result = ''
        for issue_type in issue_types:
            result += '<h2>%s</h2>' % html.escape(issue_type or '')
            result += '<ul>'
            for issue in issues:
                if issue.issue_type == issue_type:
                    result += "<li>[<a href='%s/browse/%s'>%s</a>] - %s</li>" % (
                        self.url, issue.key, issue.key, html.escape(issue.summary or ''))
            result += '</ul>'
        return result
