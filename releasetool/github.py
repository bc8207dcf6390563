__author__ = 'marko.kirves'

import logging
import mimetypes
import os

from releasetool.http import JsonHTTPClient, RequestFailed

logger = logging.getLogger(__name__)

GITHUB_API_URL = 'https://api.github.com'
GITHUB_UPLOADS_URL = 'https://uploads.github.com'

# used when the type of an asset cannot be guessed from its name
DEFAULT_MIME_TYPE = 'text/plain'

ASSETS_PAGE_SIZE = 100


class GitHubAccessTool(object):
    """
    Releases of one GitHub repository.

    Assets go to a separate upload host, GitHub Enterprise servers use
    <host>/api/uploads for it.
    """

    def __init__(self, repository, user=None, token=None, url=GITHUB_API_URL, upload_url=GITHUB_UPLOADS_URL,
                 proxy=None, client=None, upload_client=None):
        """
        :param repository: owner/name of the repository
        :type client: releasetool.http.JsonHTTPClient
        :type upload_client: releasetool.http.JsonHTTPClient
        """
        self.repository = repository
        self.client = client if client is not None else JsonHTTPClient(url, user, token, proxy)
        self.upload_client = upload_client if upload_client is not None else \
            JsonHTTPClient(upload_url, user, token, proxy)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_value, traceback):
        self.close()

    def close(self):
        self.client.close()
        self.upload_client.close()

    def _path(self, suffix):
        return '/repos/%s%s' % (self.repository, suffix)

    def get_release_by_tag(self, tag):
        """
        :return: the release JSON or None if the tag has no release
        """
        try:
            return self.client.get_json(self._path('/releases/tags/%s' % tag))
        except RequestFailed as e:
            if e.status_code == 404:
                return None
            raise

    def create_or_update_release(self, tag, name, body, prerelease=False):
        data = {
            'tag_name': tag,
            'name': name,
            'body': body,
            'prerelease': prerelease,
        }

        release = self.get_release_by_tag(tag)
        if release is None:
            logger.info('Creating release %s for tag %s in %s', name, tag, self.repository)
            return self.client.post_json(self._path('/releases'), data)

        logger.info('Updating release %s for tag %s in %s', name, tag, self.repository)
        return self.client.patch_json(self._path('/releases/%d' % release['id']), data)

    def get_assets(self, release_id):
        return self.client.get_json(self._path('/releases/%d/assets' % release_id),
                                    params={'per_page': ASSETS_PAGE_SIZE}) or []

    def delete_asset(self, asset_id):
        self.client.delete(self._path('/releases/assets/%d' % asset_id))

    def upload_asset(self, release, path):
        """
        Uploads the file as an asset of the release, replacing an asset with the same name.

        :type release: dict
        :type path: str
        """
        name = os.path.basename(path)
        for asset in self.get_assets(release['id']):
            if asset['name'] == name:
                logger.info('Deleting existing asset %s (ID: %d)', name, asset['id'])
                self.delete_asset(asset['id'])

        mime_type = mimetypes.guess_type(name)[0] or DEFAULT_MIME_TYPE
        with open(path, 'rb') as f:
            content = f.read()

        logger.info('Uploading asset to release: %s', name)
        return self.upload_client.post_data(self._path('/releases/%d/assets' % release['id']), content,
                                            params={'name': name}, content_type=mime_type)


def publish_release(jira, github, jql_filter, tag, name, prerelease=False, assets=None):
    """
    Publishes a GitHub release listing the JIRA tickets matching the filter.

    :type jira: releasetool.jira.access.JiraAccessTool
    :type github: GitHubAccessTool
    :param assets: paths of the files to upload
    :rtype: dict
    """
    tickets = jira.get_tickets_by_jql(jql_filter)
    logger.info('Found %d tickets assigned to GitHub release %s.', len(tickets), name)

    body = ''
    if tickets:
        body = jira.build_release_notes_html(tickets)

    release = github.create_or_update_release(tag, name, body, prerelease)
    for path in assets or []:
        github.upload_asset(release, path)
    return release
