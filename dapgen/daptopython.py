"""Converts the Debug Adapter Protocol JSON schema to Python data classes"""

# pylint: disable=line-too-long

import json
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Set, Tuple

from dapgen.common import SchemaError, comment_block, process_template, python_docstring, python_field_name
from dapgen.constants import (BODY_PROPERTY, BODY_TYPE_SUFFIX, BODYLESS_TYPES, DEFINITIONS_REF_PREFIX, LICENSE_HEADER,
                              MESSAGE_CAPABILITY_NAME, MESSAGE_SENTINEL_TYPE, MESSAGE_TYPE_SUFFIXES, RENAMED_TYPE_NAMES,
                              SUPPRESSED_FIELDS)
from dapgen.formatter import format_python_source
from dapgen.orderedjson import JsonText, elements_in_order, members_in_order

logger = logging.getLogger(__name__)

PRIMITIVE_TYPES = {
    'string': 'str',
    'integer': 'int',
    'boolean': 'bool',
}
ANY_TYPE = 'typing.Any'


@dataclass
class EmittedField:
    """A field of a generated data class, in the order it appears in the schema."""
    name: str
    json_name: str
    python_type: str
    required: bool
    doc: str = ''


@dataclass
class EmittedType:
    """A generated type: a data class, or an alias of a builtin type when alias_of is set."""
    name: str
    base: str = ''
    fields: List[EmittedField] = field(default_factory=list)
    doc: str = ''
    alias_of: str = ''

    @property
    def is_alias(self) -> bool:
        """True for primitive aliases."""
        return bool(self.alias_of)


def replace_python_typename(type_name: str) -> str:
    """Replaces schema type names that conflict with names the generated module defines itself."""
    return RENAMED_TYPE_NAMES.get(type_name, type_name)


def parse_ref(ref_value: Any) -> str:
    """
    Parses the value of a "$ref" key.
    For example "#/definitions/ProtocolMessage" => "ProtocolMessage".
    """
    if not isinstance(ref_value, str) or not ref_value.startswith(DEFINITIONS_REF_PREFIX) or len(ref_value) == len(DEFINITIONS_REF_PREFIX):
        raise SchemaError(f"want ref to start with '{DEFINITIONS_REF_PREFIX}'", context=json.dumps(ref_value))
    return replace_python_typename(ref_value[len(DEFINITIONS_REF_PREFIX):])


def parse_property_type(prop_value: Any) -> str:
    """
    Takes the decoded description of a property and returns the Python type
    expression of that property. For example, given

        {"type": "array", "items": {"$ref": "#/definitions/Breakpoint"}}

    it returns "typing.List[Breakpoint]".
    """
    if not isinstance(prop_value, dict):
        raise SchemaError('want property description to be an object', context=json.dumps(prop_value))
    if '$ref' in prop_value:
        return parse_ref(prop_value['$ref'])

    if 'type' not in prop_value:
        raise SchemaError('property with no type or ref', context=json.dumps(prop_value))
    prop_type = prop_value['type']

    # a list of types is a union; no attempt is made to narrow it
    if isinstance(prop_type, list):
        return ANY_TYPE
    if not isinstance(prop_type, str):
        raise SchemaError('unknown property type', context=json.dumps(prop_value))

    if prop_type in PRIMITIVE_TYPES:
        return PRIMITIVE_TYPES[prop_type]
    if prop_type == 'array':
        if 'items' not in prop_value:
            raise SchemaError('missing items type for property of array type', context=json.dumps(prop_value))
        return f"typing.List[{parse_property_type(prop_value['items'])}]"
    if prop_type == 'object':
        # free-form objects are string keyed maps of their additionalProperties
        if 'additionalProperties' not in prop_value:
            raise SchemaError('missing additionalProperties field when type=object', context=json.dumps(prop_value))
        return f"typing.Dict[str, {parse_property_type(prop_value['additionalProperties'])}]"
    raise SchemaError(f'unknown property type value {prop_type!r}', context=json.dumps(prop_value))


def decode_fragment(fragment: str) -> Any:
    """Decodes a raw JSON fragment taken from the schema."""
    try:
        return json.loads(fragment)
    except json.JSONDecodeError as e:
        raise SchemaError(f'invalid JSON in schema: {e.msg}', context=fragment[:200], cause=e) from e


def maybe_parse_inheritance(desc_map: Dict[str, str]) -> Tuple[str, Dict[str, str]]:
    """
    Resolves types that inherit from other types.

    A type description may have an "allOf" key holding exactly two elements,
    a reference to the base type and the description of the inheriting type:

        "allOf": [ { "$ref": "#/definitions/ProtocolMessage" },
                   { ... type description ... } ]

    Args:
        desc_map (Dict[str, str]): The members of the type description, as raw JSON fragments.

    Returns:
        Tuple[str, Dict[str, str]]: The base type name ('' if there is none) and
            the members of the inheriting type's own description.
    """
    if 'allOf' not in desc_map:
        return '', desc_map

    all_of = elements_in_order(desc_map['allOf'])
    if len(all_of) != 2:
        raise SchemaError(f'want 2 elements in allOf list, got {len(all_of)}', context=desc_map['allOf'][:200])

    base_type_ref = decode_fragment(all_of[0])
    if not isinstance(base_type_ref, dict):
        raise SchemaError('want first allOf element to be a reference', context=all_of[0])
    base_type = parse_ref(base_type_ref.get('$ref'))
    return base_type, dict(members_in_order(all_of[1]))


def is_suppressed_field(prop_name: str, type_name: str) -> bool:
    """
    Tells whether a property is left out of the given type.

    The schema targets TypeScript, where a subtype may redeclare an inherited
    field with a narrower type. A Python data class can only declare each field
    once along the hierarchy, so the generic declaration is dropped wherever a
    more specific one exists.
    """
    predicate = SUPPRESSED_FIELDS.get(prop_name)
    return predicate is not None and predicate(type_name)


def is_message_type(type_name: str) -> bool:
    """Tells whether a top-level type is registered with the Message capability."""
    return type_name.endswith(MESSAGE_TYPE_SUFFIXES) or type_name == MESSAGE_SENTINEL_TYPE


class DapToPython:
    """Converts the Debug Adapter Protocol JSON schema to a Python module of data classes"""

    def __init__(self, license_header: str = LICENSE_HEADER) -> None:
        self.license_header = license_header
        self.generated_types: Dict[str, EmittedType] = {}

    def build_toplevel_type(self, type_name: str, desc_json: str) -> List[EmittedType]:
        """
        Builds the model of a single type and of the body type it may spawn.

        Args:
            type_name (str): Python name of the type (already renamed).
            desc_json (str): Raw JSON text of the type description.

        Returns:
            List[EmittedType]: The type itself followed by any synthesized body types.
        """
        # The description is split into raw members instead of being decoded
        # all the way, to keep the source order of the properties.
        desc_map = dict(members_in_order(desc_json))
        base_type, desc_map = maybe_parse_inheritance(desc_map)

        if 'type' not in desc_map:
            raise SchemaError("want description to have 'type'", context=desc_json[:200])
        desc_type = decode_fragment(desc_map['type'])
        description = decode_fragment(desc_map['description']) if 'description' in desc_map else ''
        if not isinstance(description, str):
            description = ''

        if desc_type == 'string':
            logger.debug('Emitting alias %s', type_name)
            return [EmittedType(name=type_name, doc=description, alias_of=PRIMITIVE_TYPES['string'])]
        if desc_type != 'object':
            raise SchemaError(f'want description type to be object or string, got {json.dumps(desc_type)}', context=type_name)

        logger.debug('Emitting class %s%s', type_name, f' based on {base_type}' if base_type else '')
        emitted = EmittedType(name=type_name, base=base_type, doc=description)
        if 'properties' not in desc_map:
            return [emitted]

        properties = members_in_order(desc_map['properties'])
        required = decode_fragment(desc_map['required']) if 'required' in desc_map else []
        if not isinstance(required, list) or not all(isinstance(name, str) for name in required):
            raise SchemaError('want required to be a list of property names', context=desc_map['required'])

        # A body described inline becomes a type of its own. It is emitted
        # right after the type that owns it.
        body_types: List[EmittedType] = []
        inherited_names = self.inherited_field_names(base_type)
        own_names: Dict[str, str] = {}

        for prop_name, prop_json in properties:
            if is_suppressed_field(prop_name, type_name):
                continue
            prop_desc = decode_fragment(prop_json)

            if prop_name == BODY_PROPERTY:
                if type_name in BODYLESS_TYPES:
                    continue
                if not isinstance(prop_desc, dict):
                    raise SchemaError('want body description to be an object', context=prop_json)
                if '$ref' in prop_desc:
                    python_type = parse_ref(prop_desc['$ref'])
                else:
                    python_type = type_name + BODY_TYPE_SUFFIX
                    logger.debug('Synthesizing %s for the inline body of %s', python_type, type_name)
                    body_types = self.build_toplevel_type(python_type, prop_json)
            else:
                python_type = parse_property_type(prop_desc)

            name = python_field_name(prop_name)
            if name in own_names:
                raise SchemaError(f'properties {own_names[name]!r} and {prop_name!r} of {type_name} both map to attribute {name!r}')
            # only the same JSON property may be redeclared along the base chain
            if inherited_names.get(name, prop_name) != prop_name:
                raise SchemaError(f'property {prop_name!r} of {type_name} maps to attribute {name!r} inherited from property {inherited_names[name]!r}')
            own_names[name] = prop_name

            doc = prop_desc.get('description', '') if isinstance(prop_desc, dict) else ''
            emitted.fields.append(EmittedField(
                name=name,
                json_name=prop_name,
                python_type=python_type,
                required=prop_name in required,
                doc=doc if isinstance(doc, str) else ''))

        return [emitted] + body_types

    def inherited_field_names(self, base_type: str) -> Dict[str, str]:
        """Maps the attribute names declared along the base chain of a type to their JSON names."""
        names: Dict[str, str] = {}
        seen = set()
        while base_type in self.generated_types and base_type not in seen:
            seen.add(base_type)
            base = self.generated_types[base_type]
            for base_field in base.fields:
                names.setdefault(base_field.name, base_field.json_name)
            base_type = base.base
        return names

    def check_base_type(self, type_name: str, defined: Set[str]) -> None:
        """Fails unless the base of a top-level type is a class defined above it."""
        base_type = self.generated_types[type_name].base
        if not base_type:
            return
        if base_type not in defined:
            raise SchemaError(f'base type {base_type} must be defined before {type_name}')
        if self.generated_types[base_type].is_alias:
            raise SchemaError(f'base type {base_type} of {type_name} is not an object type')

    def render_type(self, emitted: EmittedType) -> str:
        """Renders one type model as Python source."""
        if emitted.is_alias:
            return process_template(
                "daptopython/alias.jinja",
                alias_name=emitted.name,
                target=emitted.alias_of,
                docstring=python_docstring(emitted.doc, indent='') if emitted.doc else '',
            )
        attributes = [(f.name, f.python_type if f.required else f'typing.Optional[{f.python_type}]', f.doc) for f in emitted.fields]
        return process_template(
            "daptopython/dataclass.jinja",
            class_name=emitted.name,
            base_name=emitted.base,
            docstring=python_docstring(emitted.doc or f'A {emitted.name} record.', attributes),
            fields=emitted.fields,
        )

    def emit_toplevel_type(self, type_name: str, desc_json: str) -> str:
        """
        Emits a single type, and the body type it may spawn, as Python source.

        Args:
            type_name (str): Python name of the type (already renamed).
            desc_json (str): Raw JSON text of the type description.

        Returns:
            str: The source of the type followed by the source of its body type.
        """
        emitted_types = self.build_toplevel_type(type_name, desc_json)
        for emitted in emitted_types:
            self.generated_types[emitted.name] = emitted
        return '\n\n\n'.join(self.render_type(emitted) for emitted in emitted_types)

    def render_preamble(self) -> str:
        """Renders the license header, the imports and the Message capability."""
        return process_template(
            "daptopython/preamble.jinja",
            header_comment=comment_block(self.license_header),
            capability=MESSAGE_CAPABILITY_NAME,
            renamed_capability=replace_python_typename(MESSAGE_CAPABILITY_NAME),
        )

    def render_markers(self, type_names: List[str]) -> str:
        """Registers the top-level message types with the Message capability."""
        return process_template(
            "daptopython/markers.jinja",
            capability=MESSAGE_CAPABILITY_NAME,
            type_names=type_names,
        )

    def convert_schema(self, schema_data: JsonText) -> str:
        """
        Converts the raw text of a schema document to the source of a Python module.

        Args:
            schema_data: The schema as bytes or text.

        Returns:
            str: The formatted module source.
        """
        self.generated_types = {}
        schema_map = dict(members_in_order(schema_data))
        if 'definitions' not in schema_map:
            raise SchemaError("want schema to have 'definitions'")

        parts = [self.render_preamble()]
        type_names: List[str] = []
        for type_name, desc_json in members_in_order(schema_map['definitions']):
            type_name = replace_python_typename(type_name)
            # a base class must be defined above its subtypes
            defined = set(self.generated_types)
            parts.append(self.emit_toplevel_type(type_name, desc_json))
            self.check_base_type(type_name, defined)
            type_names.append(type_name)

        # Every top-level message type gets registered with the capability.
        # Aliases are left out because registering a builtin would make every
        # value of that builtin a Message.
        message_types = [name for name in type_names if is_message_type(name) and not self.generated_types[name].is_alias]
        parts.append(self.render_markers(message_types))
        logger.info('Generated %d types from %d definitions', len(self.generated_types), len(type_names))

        return format_python_source('\n\n\n'.join(parts))

    def convert(self, dap_schema_path: str, py_file_path: Optional[str] = None) -> str:
        """Converts the schema file at dap_schema_path, writing the module to py_file_path if given"""
        with open(dap_schema_path, 'rb') as file:
            schema_data = file.read()
        python_code = self.convert_schema(schema_data)
        if py_file_path:
            with open(py_file_path, 'w', encoding='utf-8') as file:
                file.write(python_code)
        return python_code


def convert_dap_schema_to_python(dap_schema_path, py_file_path=None, license_header=LICENSE_HEADER):
    """Converts a DAP JSON schema file to a Python module of data classes"""
    dap_to_python = DapToPython(license_header=license_header)
    return dap_to_python.convert(dap_schema_path, py_file_path)


def convert_dap_schema_bytes_to_python(schema_data, license_header=LICENSE_HEADER):
    """Converts the raw text of a DAP JSON schema to a Python module of data classes"""
    dap_to_python = DapToPython(license_header=license_header)
    return dap_to_python.convert_schema(schema_data)


def convert_dap_schema_dict_to_python(dap_schema, license_header=LICENSE_HEADER):
    """Converts an already decoded DAP JSON schema to a Python module of data classes"""
    return convert_dap_schema_bytes_to_python(json.dumps(dap_schema), license_header=license_header)
