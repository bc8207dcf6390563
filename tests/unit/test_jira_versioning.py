import unittest
from datetime import date

from mock import Mock

from releasetool.jira.access import Issue
from releasetool.jira.versioning import ModifyAddVersionTemplate, ReleaseBlocked, template_from_config
from releasetool.variables import VariableResolver


def _apply(template, tickets=None):
	"""Runs the template and returns the version dict its build function produced."""
	jira = Mock()
	jira.get_tickets_by_jql.return_value = tickets or []
	version = {'name': 'x', 'released': False}
	jira.create_update_version.side_effect = lambda name, build: build(version)
	template.apply_modifications(jira, VariableResolver({'VERSION': '1.2'}))
	return jira, version


class TestModifyAddVersionTemplate(unittest.TestCase):

	def test_keep_state(self):
		jira, version = _apply(ModifyAddVersionTemplate('${VERSION}'))

		self.assertEqual(jira.create_update_version.call_args[0][0], '1.2')
		self.assertEqual(version, {'name': 'x', 'released': False})

	def test_release(self):
		_, version = _apply(ModifyAddVersionTemplate('1.2', release_state='released'))

		self.assertTrue(version['released'])
		self.assertEqual(version['releaseDate'], date.today().isoformat())

	def test_unrelease(self):
		template = ModifyAddVersionTemplate('1.2', release_state='unreleased')
		jira = Mock()
		version = {'released': True}
		jira.create_update_version.side_effect = lambda name, build: build(version)

		template.apply_modifications(jira, VariableResolver())

		self.assertFalse(version['released'])
		self.assertNotIn('releaseDate', version)

	def test_replace_description(self):
		_, version = _apply(ModifyAddVersionTemplate('1.2', replace_description=True,
													 description_text='Release ${VERSION}'))

		self.assertEqual(version['description'], 'Release 1.2')

	def test_clear_description(self):
		_, version = _apply(ModifyAddVersionTemplate('1.2', replace_description=True))

		self.assertEqual(version['description'], '')

	def test_release_blocked_by_open_tickets(self):
		template = ModifyAddVersionTemplate('${VERSION}', release_state='released', fail_on_jql=True,
											fail_query='status != Closed')

		with self.assertRaises(ReleaseBlocked):
			_apply(template, [Issue('REL-1', 'Open bug', 'Bug')])

	def test_blocked_release_leaves_version_untouched(self):
		jira = Mock()
		jira.get_tickets_by_jql.return_value = [Issue('REL-1', 'Open bug', 'Bug')]
		template = ModifyAddVersionTemplate('1.2', release_state='released', fail_on_jql=True,
											fail_query='status != Closed')

		self.assertRaises(ReleaseBlocked, template.apply_modifications, jira, VariableResolver())
		jira.get_tickets_by_jql.assert_called_once_with('affectedVersion="1.2" AND (status != Closed)')
		self.assertFalse(jira.create_update_version.called)

	def test_release_without_matching_tickets(self):
		template = ModifyAddVersionTemplate('1.2', release_state='released', fail_on_jql=True,
											fail_query='status != Closed')

		_, version = _apply(template, [])

		self.assertTrue(version['released'])

	def test_fail_query_ignored_unless_released(self):
		template = ModifyAddVersionTemplate('1.2', fail_on_jql=True, fail_query='status != Closed')

		jira, _ = _apply(template, [Issue('REL-1', 'Open bug', 'Bug')])

		self.assertFalse(jira.get_tickets_by_jql.called)

	def test_unknown_release_state(self):
		self.assertRaises(ValueError, ModifyAddVersionTemplate, '1.2', release_state='archived')


class TestTemplateFromConfig(unittest.TestCase):

	def test_minimal(self):
		template = template_from_config({'name': '${VERSION}'})

		self.assertEqual(template.release_state, 'keep')
		self.assertFalse(template.replace_description)
		self.assertFalse(template.fail_on_jql)

	def test_full(self):
		template = template_from_config({'name': '1.2', 'description': 'Release', 'release_state': 'released',
										 'fail_query': 'status = Open'})

		self.assertTrue(template.replace_description)
		self.assertEqual(template.description_text, 'Release')
		self.assertTrue(template.fail_on_jql)
		self.assertEqual(template.fail_query, 'status = Open')
