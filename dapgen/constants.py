"""Constants for the dapgen package.

These encode the conventions of the Debug Adapter Protocol JSON schema and the
shape of the generated Python module.
"""

# All references in the schema point into the top-level definitions table.
DEFINITIONS_REF_PREFIX = '#/definitions/'

# The generated module reserves 'Message' for the marker capability shared by
# all protocol messages, so the schema type of that name is renamed.
MESSAGE_CAPABILITY_NAME = 'Message'
RENAMED_TYPE_NAMES = {
    'Message': 'ErrorMessage',
}

# Top-level types that get registered with the Message capability.
MESSAGE_TYPE_SUFFIXES = ('Event', 'Request', 'Response')
MESSAGE_SENTINEL_TYPE = 'ProtocolMessage'

# The schema is written for TypeScript where a subtype may narrow an inherited
# field. Each entry maps a property name to a predicate over the owning type
# name that is True when the property must NOT be emitted on that type.
SUPPRESSED_FIELDS = {
    'type': lambda type_name: type_name in ('Request', 'Response', 'Event'),
    'command': lambda type_name: type_name not in ('Request', 'Response'),
    'event': lambda type_name: type_name != 'Event',
    'arguments': lambda type_name: type_name == 'Request',
}

# Owners whose 'body' is declared by every concrete subtype instead.
BODYLESS_TYPES = ('Response', 'Event')

BODY_PROPERTY = 'body'
BODY_TYPE_SUFFIX = 'Body'

LICENSE_HEADER = """\
Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at

    https://www.apache.org/licenses/LICENSE-2.0

Unless required by applicable law or agreed to in writing, software
distributed under the License is distributed on an "AS IS" BASIS,
WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
See the License for the specific language governing permissions and
limitations under the License."""
