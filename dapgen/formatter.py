"""Validates generated Python source and normalizes its layout"""

import ast
import io
import tokenize
from typing import List, Set

from dapgen.common import FormatError


def _is_definition(node: ast.stmt) -> bool:
    return isinstance(node, (ast.ClassDef, ast.FunctionDef, ast.AsyncFunctionDef))


def _string_continuation_lines(source: str) -> Set[int]:
    """Returns the 1-based numbers of lines whose line break lies inside a string literal."""
    protected: Set[int] = set()
    try:
        for tok in tokenize.generate_tokens(io.StringIO(source).readline):
            if tok.type == tokenize.STRING and tok.start[0] != tok.end[0]:
                protected.update(range(tok.start[0], tok.end[0]))
    except (tokenize.TokenError, SyntaxError) as e:
        raise FormatError('generated code cannot be tokenized', cause=e) from e
    return protected


def format_python_source(source: str) -> str:
    """
    Checks that source is syntactically valid Python and returns it in
    canonical layout.

    Trailing whitespace is removed, runs of blank lines collapse to one,
    top-level classes and functions are set off by two blank lines and the
    text ends with a single newline. Content of string literals is never
    touched. Formatting already formatted text returns it unchanged.

    Raises:
        FormatError: If the source does not parse.
    """
    source = source.replace('\r\n', '\n').replace('\r', '\n')
    try:
        tree = ast.parse(source)
    except SyntaxError as e:
        line = e.text.strip() if e.text else ''
        raise FormatError(f'generated code is not valid Python: {e.msg}', context=f'line {e.lineno}: {line}', cause=e) from e
    except ValueError as e:
        raise FormatError(f'generated code is not valid Python: {e}', cause=e) from e

    lines = source.split('\n')
    protected = _string_continuation_lines(source)
    output: List[str] = []

    def clean(index: int) -> str:
        return lines[index] if index + 1 in protected else lines[index].rstrip()

    def append_lines(first: int, last: int) -> None:
        for index in range(first, last):
            line = clean(index)
            if not line and index + 1 not in protected and (not output or not output[-1]):
                continue
            output.append(line)

    def append_gap(first: int, last: int) -> bool:
        """Appends the comments found between two statements, returns whether a blank line preceded the next statement."""
        comments = [index for index in range(first, last) if lines[index].strip()]
        if not comments:
            return any(not lines[index].strip() for index in range(first, last))
        append_lines(comments[0], comments[-1] + 1)
        return comments[-1] + 1 < last

    def separate(count: int) -> None:
        while output and not output[-1]:
            output.pop()
        if output:
            output.extend([''] * count)

    previous = None
    consumed = 0
    for node in tree.body:
        decorators = getattr(node, 'decorator_list', [])
        start = min([node.lineno] + [decorator.lineno for decorator in decorators])
        end = node.end_lineno or node.lineno
        if end <= consumed:
            # shares its line with the previous statement
            continue
        start = max(start, consumed + 1)
        gap = range(consumed, start - 1)
        leading_blank = bool(gap) and not lines[gap[0]].strip()
        if previous is not None and (_is_definition(previous) or _is_definition(node)):
            separate(2)
        else:
            separate(1 if leading_blank else 0)
        if append_gap(gap.start, gap.stop) and output and output[-1]:
            output.append('')
        append_lines(start - 1, end)
        previous = node
        consumed = end

    if any(line.strip() for line in lines[consumed:]):
        separate(1)
        append_gap(consumed, len(lines))
    while output and not output[-1]:
        output.pop()
    return '\n'.join(output) + '\n'
