VERSION = '0.1.0'

AP_PUBLIC = 'https://www.w3.org/ns/activitystreams#Public'
AP_CONTEXT = ['https://www.w3.org/ns/activitystreams', 'https://w3id.org/security/v1']
AP_CONTENT_TYPE = 'application/activity+json'

MEDIA_TYPE_HTML = 'text/html'
MEDIA_TYPE_MARKDOWN = 'text/markdown'

# object 'type' values, grouped by the kind of local row they become
POST_TYPES = ('Page', 'Article', 'Video', 'Question', 'Event')
COMMENT_TYPES = ('Note', 'ChatMessage')
PERSON_TYPES = ('Person', 'Service', 'Application')
COMMUNITY_TYPES = ('Group',)
TOMBSTONE_TYPE = 'Tombstone'

SLUR_REPLACEMENT = '*removed*'

# (enabled, label) pairs passed to log_incoming_ap
APLOG_IN = True

APLOG_CREATE = (True, 'Create')
APLOG_DELETE = (True, 'Delete')

APLOG_SUCCESS = (True, 'success')
APLOG_FAILURE = (True, 'failure')
APLOG_IGNORED = (True, 'ignored')
