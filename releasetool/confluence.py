__author__ = 'marko.kirves'

import logging

from atlassian import Confluence

logger = logging.getLogger(__name__)

CONTENT_PATH = 'rest/api/content'


def connect(url, user, password, proxy=None):
    """
    :rtype: atlassian.Confluence
    """
    proxies = {'http': proxy, 'https': proxy} if proxy else None
    return Confluence(url=url, username=user, password=password, proxies=proxies)


class ConfluenceAccessTool(object):

    def __init__(self, url, user, password, proxy=None, client=None):
        """
        :type client: atlassian.Confluence
        """
        self.client = client if client is not None else connect(url, user, password, proxy)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_value, traceback):
        self.close()

    def close(self):
        self.client.close()

    def get_page_ids_by_title(self, title, space):
        """
        :return: ids of all pages with the title in the space
        :rtype: list of int
        """
        data = self.client.get(CONTENT_PATH, params={'spaceKey': space, 'title': title, 'type': 'page'}) or {}
        return [int(page['id']) for page in data.get('results', [])]

    def create_page(self, title, html_content, space, parent_page_id=None):
        """
        Creates a page in the space, below the parent page or at the root of
        the space if there is no parent.
        """
        return self.client.create_page(space, title, html_content, parent_id=parent_page_id,
                                       representation='storage')


def publish_release_notes(jira, confluence, jql_filter, space, page_title, parent_page_title=None):
    """
    Lists the tickets matching the filter on a new confluence page.

    :type jira: releasetool.jira.access.JiraAccessTool
    :type confluence: ConfluenceAccessTool
    """
    tickets = jira.get_tickets_by_jql(jql_filter)
    logger.info("Publishing %d tickets on page '%s' in space '%s' on confluence.",
                len(tickets), page_title, space)
    page_html = jira.build_release_notes_html(tickets)

    parent_page_id = None
    if parent_page_title:
        results = confluence.get_page_ids_by_title(parent_page_title, space)
        if not results:
            raise ValueError("No page with title '%s' found!" % parent_page_title)
        if len(results) > 1:
            raise ValueError("Multiple pages with title '%s' found!" % parent_page_title)
        parent_page_id = results[0]

    return confluence.create_page(page_title, page_html, space, parent_page_id)
