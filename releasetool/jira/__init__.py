from releasetool.jira.access import Issue, JiraAccessTool
from releasetool.jira.cache import MetadataCache
from releasetool.jira.fields import SUPPORTED_TYPES, FieldMetadata, ValidationError, find_field, selectable_fields
from releasetool.jira.update import IssueUpdateBuilder
