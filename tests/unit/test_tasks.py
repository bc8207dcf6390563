import os
import shutil
import tempfile
import unittest
from datetime import date

from mock import MagicMock, Mock, patch

from releasetool.config import ConfigurationError
from releasetool.helpers import find_files
from releasetool.jira.access import Issue
from releasetool.jira.update import IssueUpdateBuilder
from releasetool.jira.versioning import ReleaseBlocked
from releasetool.tasks import confluence, github, influxdb, jira, twitter
from releasetool.variables import VariableResolver


def _jira_context(open_jira):
	"""The JiraAccessTool a patched open_jira hands to the with block."""
	jira_tool = Mock()
	context = MagicMock()
	context.__enter__.return_value = jira_tool
	open_jira.return_value = context
	return jira_tool, context


class TestCollectContent(unittest.TestCase):

	def setUp(self):
		self.tmpdir = tempfile.mkdtemp()
		os.makedirs(os.path.join(self.tmpdir, 'metrics', 'nested'))
		for name, content in (('metrics/a.txt', 'build,job=${JOB} duration=1i'),
							  ('metrics/nested/b.txt', 'tests passed=10i'),
							  ('metrics/c.log', 'ignored')):
			with open(os.path.join(self.tmpdir, name), 'w') as f:
				f.write(content)

	def tearDown(self):
		shutil.rmtree(self.tmpdir)

	def test_recursive_pattern(self):
		variables = VariableResolver({'ROOT': self.tmpdir, 'JOB': 'release'})

		contents = influxdb.collect_content(['${ROOT}/metrics/**/*.txt'], variables)

		self.assertEqual(sorted(contents), ['build,job=release duration=1i', 'tests passed=10i'])

	def test_no_matches(self):
		self.assertEqual(influxdb.collect_content([self.tmpdir + '/*.csv'], VariableResolver()), [])

	def test_files_in_pattern_order(self):
		paths = find_files([self.tmpdir + '/metrics/*.log', self.tmpdir + '/metrics/*.txt'], VariableResolver())

		self.assertEqual([os.path.basename(p) for p in paths], ['c.log', 'a.txt'])


class TestPublishTask(unittest.TestCase):

	@patch('releasetool.tasks.influxdb.InfluxDBPublisher')
	@patch('releasetool.tasks.influxdb.load_environment')
	def test_publish_content(self, load_environment, publisher_class):
		config = {'influxdb': {'url': 'https://influx', 'database': 'builds'}}
		load_environment.return_value = (config, VariableResolver({'BUILD_NUMBER': '7'}))

		influxdb.publish.body(Mock(), 'production', content='build number=${BUILD_NUMBER}i')

		publisher_class.assert_called_once_with('https://influx', 'builds', None, None, retention_policy='default')
		records = publisher_class.return_value.publish.call_args[0][0]
		self.assertEqual(len(records), 1)
		self.assertEqual(records[0].fields, {'number': 7})
		publisher_class.return_value.close.assert_called_once_with()


@patch('releasetool.tasks.jira.open_jira')
@patch('releasetool.tasks.jira.load_environment')
class TestJiraTasks(unittest.TestCase):

	def test_modify_tickets(self, load_environment, open_jira):
		config = {'modify_tickets': [{
			'jql': 'fixVersion = ${VERSION}',
			'modifications': [{'type': 'add_comment', 'body': 'Built in #${BUILD_NUMBER}'}],
		}]}
		load_environment.return_value = (config, VariableResolver({'VERSION': '1.2', 'BUILD_NUMBER': '7'}))
		jira_tool, context = _jira_context(open_jira)
		jira_tool.get_tickets_by_jql.return_value = [Issue('REL-1', 'Crash', 'Bug')]

		jira.modify_tickets.body(Mock(), 'production')

		jira_tool.get_tickets_by_jql.assert_called_once_with('fixVersion = 1.2')
		key, build = jira_tool.update_ticket.call_args[0]
		builder = IssueUpdateBuilder()
		build(builder)
		self.assertEqual(key, 'REL-1')
		self.assertEqual(builder.serialize(), {'update': {'comment': [{'add': {'body': 'Built in #7'}}]}})
		self.assertTrue(context.__exit__.called)

	def test_modify_tickets_rejects_unknown_modification(self, load_environment, open_jira):
		config = {'modify_tickets': [{'jql': 'x', 'modifications': [{'type': 'delete_ticket'}]}]}
		load_environment.return_value = (config, VariableResolver())

		self.assertRaises(ValueError, jira.modify_tickets.body, Mock(), 'production')
		self.assertFalse(open_jira.called)

	def test_add_tickets(self, load_environment, open_jira):
		variables = VariableResolver({'VERSION': '1.2'})
		config = {'add_tickets': [{
			'title': 'Release ${VERSION}',
			'type': 'Task',
			'priority': 'High',
			'variable': 'RELEASE_TICKET',
		}]}
		load_environment.return_value = (config, variables)
		jira_tool, context = _jira_context(open_jira)
		jira_tool.get_issue_type_by_name.return_value = {'id': '3', 'name': 'Task', 'subtask': False}
		jira_tool.get_issue_priority_by_name.return_value = {'id': '2', 'name': 'High'}
		jira_tool.add_ticket.return_value = 'REL-9'

		jira.add_tickets.body(Mock(), 'production')

		build, issue_type = jira_tool.add_ticket.call_args[0]
		fields = {}
		build(fields)
		self.assertEqual(fields, {'summary': 'Release 1.2', 'priority': {'id': '2'}})
		self.assertEqual(issue_type['id'], '3')
		self.assertEqual(variables['RELEASE_TICKET'], 'REL-9')

	def test_edit_versions(self, load_environment, open_jira):
		config = {'versions': [{'name': '${VERSION}', 'description': 'Build ${BUILD_NUMBER}',
								'release_state': 'released'}]}
		load_environment.return_value = (config, VariableResolver({'VERSION': '1.2', 'BUILD_NUMBER': '7'}))
		jira_tool, context = _jira_context(open_jira)

		jira.edit_versions.body(Mock(), 'production')

		name, build = jira_tool.create_update_version.call_args[0]
		version = {'name': name}
		build(version)
		self.assertEqual(version, {
			'name': '1.2',
			'description': 'Build 7',
			'released': True,
			'releaseDate': date.today().isoformat(),
		})

	def test_edit_versions_blocked_by_open_tickets(self, load_environment, open_jira):
		config = {'versions': [{'name': '1.2', 'release_state': 'released', 'fail_query': 'status != Closed'}]}
		load_environment.return_value = (config, VariableResolver())
		jira_tool, context = _jira_context(open_jira)
		jira_tool.get_tickets_by_jql.return_value = [Issue('REL-1', 'Crash', 'Bug')]

		self.assertRaises(ReleaseBlocked, jira.edit_versions.body, Mock(), 'production')
		self.assertFalse(jira_tool.create_update_version.called)


@patch('releasetool.tasks.confluence.open_jira')
@patch('releasetool.tasks.confluence.open_confluence')
@patch('releasetool.tasks.confluence.load_environment')
class TestConfluenceTasks(unittest.TestCase):

	def test_release_notes(self, load_environment, open_confluence, open_jira):
		config = {'release_notes': {'jql': 'affectedVersion = "${VERSION}"', 'space': 'REL',
									'title': 'Release notes ${VERSION}', 'parent_title': 'Release notes'}}
		load_environment.return_value = (config, VariableResolver({'VERSION': '1.2'}))
		jira_tool, context = _jira_context(open_jira)
		jira_tool.get_tickets_by_jql.return_value = [Issue('REL-1', 'Crash', 'Bug')]
		jira_tool.build_release_notes_html.return_value = '<h2>Bug</h2>'
		wiki = open_confluence.return_value
		wiki.get_page_ids_by_title.return_value = [12]

		confluence.release_notes.body(Mock(), 'production')

		jira_tool.get_tickets_by_jql.assert_called_once_with('affectedVersion = "1.2"')
		wiki.get_page_ids_by_title.assert_called_once_with('Release notes', 'REL')
		wiki.create_page.assert_called_once_with('Release notes 1.2', '<h2>Bug</h2>', 'REL', 12)
		wiki.close.assert_called_once_with()

	def test_missing_option(self, load_environment, open_confluence, open_jira):
		load_environment.return_value = ({'release_notes': {'jql': 'x', 'space': 'REL'}}, VariableResolver())

		with self.assertRaises(ConfigurationError) as cm:
			confluence.release_notes.body(Mock(), 'production')
		self.assertIn('"title"', str(cm.exception))
		self.assertFalse(open_confluence.called)

	def test_page_closed_on_failure(self, load_environment, open_confluence, open_jira):
		config = {'release_notes': {'jql': 'x', 'space': 'REL', 'title': 'Notes', 'parent_title': 'Missing'}}
		load_environment.return_value = (config, VariableResolver())
		jira_tool, context = _jira_context(open_jira)
		jira_tool.get_tickets_by_jql.return_value = []
		open_confluence.return_value.get_page_ids_by_title.return_value = []

		self.assertRaises(ValueError, confluence.release_notes.body, Mock(), 'production')
		open_confluence.return_value.close.assert_called_once_with()


@patch('releasetool.tasks.github.open_jira')
@patch('releasetool.tasks.github.open_github')
@patch('releasetool.tasks.github.load_environment')
class TestGitHubTasks(unittest.TestCase):

	def setUp(self):
		self.tmpdir = tempfile.mkdtemp()
		with open(os.path.join(self.tmpdir, 'app-1.2.tar.gz'), 'wb') as f:
			f.write(b'archive')

	def tearDown(self):
		shutil.rmtree(self.tmpdir)

	def test_release(self, load_environment, open_github, open_jira):
		config = {'github_release': {
			'repository': 'dare/app',
			'tag': 'v${VERSION}',
			'name': 'Release ${VERSION}',
			'jql': 'affectedVersion = "${VERSION}"',
			'assets': ['${DIST}/*.tar.gz'],
		}}
		load_environment.return_value = (config, VariableResolver({'VERSION': '1.2', 'DIST': self.tmpdir}))
		jira_tool, context = _jira_context(open_jira)
		jira_tool.get_tickets_by_jql.return_value = [Issue('REL-1', 'Crash', 'Bug')]
		jira_tool.build_release_notes_html.return_value = '<h2>Bug</h2>'
		repository = open_github.return_value
		repository.create_or_update_release.return_value = {'id': 5}

		github.release.body(Mock(), 'production')

		self.assertEqual(open_github.call_args[0][2], 'dare/app')
		repository.create_or_update_release.assert_called_once_with('v1.2', 'Release 1.2', '<h2>Bug</h2>', False)
		repository.upload_asset.assert_called_once_with({'id': 5}, os.path.join(self.tmpdir, 'app-1.2.tar.gz'))
		repository.close.assert_called_once_with()

	def test_missing_option(self, load_environment, open_github, open_jira):
		load_environment.return_value = ({'github_release': {'repository': 'dare/app'}}, VariableResolver())

		self.assertRaises(ConfigurationError, github.release.body, Mock(), 'production')
		self.assertFalse(open_github.called)


@patch('releasetool.tasks.twitter.publish_tweet')
@patch('releasetool.tasks.twitter.open_twitter')
@patch('releasetool.tasks.twitter.load_environment')
class TestTwitterTasks(unittest.TestCase):

	def test_text_from_config(self, load_environment, open_twitter, publish_tweet):
		config = {'twitter': {'text': 'Release ${VERSION} is out!'}}
		load_environment.return_value = (config, VariableResolver({'VERSION': '1.2'}))

		twitter.announce.body(Mock(), 'production')

		publish_tweet.assert_called_once_with(open_twitter.return_value, 'Release 1.2 is out!')

	def test_text_argument(self, load_environment, open_twitter, publish_tweet):
		config = {'twitter': {'text': 'Release ${VERSION} is out!'}}
		load_environment.return_value = (config, VariableResolver({'VERSION': '1.2'}))

		twitter.announce.body(Mock(), 'production', text='Hotfix ${VERSION}')

		publish_tweet.assert_called_once_with(open_twitter.return_value, 'Hotfix 1.2')

	def test_missing_text(self, load_environment, open_twitter, publish_tweet):
		load_environment.return_value = ({}, VariableResolver())

		self.assertRaises(Exception, twitter.announce.body, Mock(), 'production')
		self.assertFalse(publish_tweet.called)
