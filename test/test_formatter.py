import ast
import os
import sys
import unittest

current_script_path = os.path.abspath(__file__)
project_root = os.path.dirname(os.path.dirname(current_script_path))
sys.path.append(project_root)

from dapgen.common import FormatError
from dapgen.formatter import format_python_source


class TestFormatter(unittest.TestCase):
    """Test cases for the Python source formatter."""

    def test_invalid_source_is_rejected(self):
        """Text that does not parse raises a FormatError with the location."""
        with self.assertRaises(FormatError) as context:
            format_python_source('class Broken(:\n    pass\n')
        self.assertIn('line 1', str(context.exception))
        self.assertIsInstance(context.exception.cause, SyntaxError)

    def test_blank_lines_are_normalized(self):
        """Top-level definitions get two blank lines, other statements keep at most one."""
        source = 'import os\n\n\n\n\nx = 1\nclass A:\n    pass\n\n\n\n\ny = 2   \n\n\n'
        expected = 'import os\n\nx = 1\n\n\nclass A:\n    pass\n\n\ny = 2\n'
        self.assertEqual(format_python_source(source), expected)

    def test_decorators_belong_to_their_class(self):
        """The blank lines go above the decorators, not between decorator and class."""
        source = 'import dataclasses\n@dataclasses.dataclass\nclass A:\n    x: int\n'
        expected = 'import dataclasses\n\n\n@dataclasses.dataclass\nclass A:\n    x: int\n'
        self.assertEqual(format_python_source(source), expected)

    def test_blank_lines_inside_class_collapse(self):
        """Runs of blank lines inside a class body collapse to one."""
        source = 'class A:\n    x = 1\n\n\n\n    y = 2\n'
        self.assertEqual(format_python_source(source), 'class A:\n    x = 1\n\n    y = 2\n')

    def test_comments_are_kept(self):
        """Header comments and comments above statements survive."""
        source = '# header\n\nimport os\n# lead\nclass A:\n    pass\n# trailer'
        expected = '# header\n\nimport os\n\n\n# lead\nclass A:\n    pass\n\n# trailer\n'
        self.assertEqual(format_python_source(source), expected)

    def test_string_contents_are_untouched(self):
        """Whitespace and blank lines inside multi-line strings are preserved."""
        source = 'x = """a   \n\n\n\nb"""   \n'
        formatted = format_python_source(source)
        self.assertEqual(ast.literal_eval(formatted.split(' = ', 1)[1]), 'a   \n\n\n\nb')

    def test_formatting_is_idempotent(self):
        """Formatting formatted text changes nothing."""
        source = '# c\nimport os\n\n\n\nx = 1\ny = 2\n\nclass A:\n    """Doc   \n\n    text."""\n    z = 3\ndef f():\n    return 1\nf()\n'
        once = format_python_source(source)
        self.assertEqual(format_python_source(once), once)

    def test_crlf_line_endings(self):
        """Windows line endings are normalized."""
        self.assertEqual(format_python_source('x = 1\r\ny = 2\r\n'), 'x = 1\ny = 2\n')


if __name__ == '__main__':
    unittest.main()
