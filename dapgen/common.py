"""
Common utility functions for dapgen.
"""

# pylint: disable=line-too-long

import json
import os
import re
from typing import List, Optional, Tuple

import jinja2

INDENT = '    '


class DapGenError(Exception):
    """
    Base class for all errors raised while generating Python types.

    Attributes:
        message: Human-readable error description
        context: Optional offending schema fragment or source location
        cause: Optional underlying exception that caused this error
    """

    def __init__(self, message: str, context: Optional[str] = None,
                 cause: Optional[Exception] = None) -> None:
        self.message = message
        self.context = context
        self.cause = cause
        full_message = message
        if context:
            full_message = f"{message}: {context}"
        super().__init__(full_message)


class SchemaError(DapGenError):
    """The schema document is malformed or uses an unsupported construct."""


class JsonStructureError(SchemaError):
    """The raw JSON text does not have the expected object/array structure."""


class FormatError(DapGenError):
    """The generated source text is not valid Python."""


def is_python_reserved_word(word: str) -> bool:
    """Checks if a word is a Python reserved word"""
    reserved_words = [
        'False', 'None', 'True', 'and', 'as', 'assert', 'async', 'await',
        'break', 'class', 'continue', 'def', 'del', 'elif', 'else', 'except',
        'finally', 'for', 'from', 'global', 'if', 'import', 'in', 'is',
        'lambda', 'nonlocal', 'not', 'or', 'pass', 'raise', 'return',
        'try', 'while', 'with', 'yield', 'self', 'cls'
    ]
    return word in reserved_words


def safe_name(name: str) -> str:
    """Converts a name to a safe Python name"""
    if is_python_reserved_word(name):
        return name + "_"
    return name


def snake(string: str) -> str:
    """
    Convert a string to snake_case from snake_case, camelCase, or PascalCase.
    Runs of capitals are kept together as one word, so 'adapterID' becomes
    'adapter_id' and 'URLPath' becomes 'url_path'. Leading and repeated
    underscores are dropped.

    Args:
        string (str): The string to convert.

    Returns:
        str: The string in snake_case.
    """
    if not string:
        return string
    words: List[str] = []
    for part in re.split(r'[^a-zA-Z0-9]+', string):
        words.extend(re.findall(r'[A-Z]+(?![a-z])|[A-Z]?[a-z0-9]+', part))
    return '_'.join(word.lower() for word in words)


def python_field_name(json_name: str) -> str:
    """
    Derives the Python attribute name for a JSON property.

    The result never starts with an underscore (which would trigger name
    mangling for '__x' properties) and never collides with a keyword.
    """
    name = snake(json_name)
    if not name:
        name = 'field'
    if name[0].isdigit():
        name = 'f_' + name
    return safe_name(name)


def comment_block(text: str) -> str:
    """Renders text as a block of '#' comment lines."""
    if not text:
        return ''
    return '\n'.join(('# ' + line).rstrip() for line in text.splitlines())


def python_docstring(summary: str, attributes: Optional[List[Tuple[str, str, str]]] = None, indent: str = INDENT) -> str:
    """
    Builds a docstring literal, including the enclosing triple quotes.

    Args:
        summary (str): Free text, may span several lines.
        attributes (List[Tuple[str, str, str]]): (name, type, description)
            triples listed in an 'Attributes:' section.
        indent (str): Indentation of the continuation lines.

    Returns:
        str: The literal, ready to be placed at the given indentation.
    """
    lines = [line.rstrip() for line in summary.replace('\r', '').strip().split('\n')]
    if attributes:
        lines.extend(['', 'Attributes:'])
        for name, type_name, doc in attributes:
            doc = ' '.join(part.strip() for part in doc.replace('\r', '').split('\n') if part.strip())
            lines.append(f"{INDENT}{name} ({type_name}): {doc}".rstrip())
    text = '\n'.join(lines).replace('\\', '\\\\')
    # a quote followed by another quote or by the closing delimiter is escaped
    text = re.sub(r'"(?="|$)', r'\\"', text)
    lines = text.split('\n')
    if len(lines) == 1:
        return f'"""{lines[0]}"""'
    body = lines[0] + ''.join('\n' + (indent + line if line else '') for line in lines[1:])
    return f'"""{body}\n{indent}"""'


def process_template(file_path: str, **kvargs) -> str:
    """
    Process a file as a Jinja2 template with the given object as input.

    Args:
        file_path (str): The path to the file, relative to the package.
        **kvargs: The keyword arguments to pass to the template.

    Returns:
        str: The processed template as a string.
    """
    # Load the template environment
    file_dir = os.path.dirname(__file__)
    template_loader = jinja2.FileSystemLoader(searchpath=file_dir)
    template_env = jinja2.Environment(loader=template_loader)
    template_env.filters['pystr'] = json.dumps

    # Load the template from the file
    template = template_env.get_template(file_path)

    # Render the template with the object as input
    output = template.render(**kvargs)

    return output

