import argparse
import io
import os
import shutil
import sys
import tempfile
import unittest
from unittest.mock import patch

current_script_path = os.path.abspath(__file__)
project_root = os.path.dirname(os.path.dirname(current_script_path))
sys.path.append(project_root)

import dapgen
from dapgen.dapgen import main


def get_dap_schema():
    """Provides the DAP schema input file path."""
    return os.path.join(os.path.dirname(__file__), 'dap', 'debugProtocol.json')


def make_args(**kwargs):
    """Builds the parsed arguments of a dapgen invocation."""
    values = dict(input=get_dap_schema(), out=None, no_header=False, verbose=False, version=False)
    values.update(kwargs)
    return argparse.Namespace(**values)


class TestMain(unittest.TestCase):
    """Test cases for the dapgen command line."""

    def setUp(self):
        self.out_dir = tempfile.mkdtemp(prefix='dapgen-')
        self.addCleanup(shutil.rmtree, self.out_dir, True)

    def test_main_out_file(self):
        """Test main function writing to --out."""
        out_path = os.path.join(self.out_dir, 'dap.py')
        with patch('argparse.ArgumentParser.parse_args', return_value=make_args(out=out_path)):
            with patch('sys.stdout', new_callable=io.StringIO) as stdout:
                main()
        assert os.path.exists(out_path)
        with open(out_path, 'r', encoding='utf-8') as file:
            code = file.read()
        self.assertIn('class StoppedEvent(Event):', code)
        self.assertEqual(stdout.getvalue(), '')

    def test_main_stdout(self):
        """Test main function writing to standard output."""
        with patch('argparse.ArgumentParser.parse_args', return_value=make_args()):
            with patch('sys.stdout', new_callable=io.StringIO) as stdout:
                main()
        self.assertEqual(stdout.getvalue(), dapgen.convert_dap_schema_to_python(get_dap_schema()))

    def test_main_no_header(self):
        """Test main function with --no-header."""
        with patch('argparse.ArgumentParser.parse_args', return_value=make_args(no_header=True)):
            with patch('sys.stdout', new_callable=io.StringIO) as stdout:
                main()
        self.assertTrue(stdout.getvalue().startswith('# DO NOT EDIT'))

    def test_main_verbose(self):
        """Test main function with --verbose still writes only code to standard output."""
        with patch('argparse.ArgumentParser.parse_args', return_value=make_args(verbose=True)):
            with patch('sys.stdout', new_callable=io.StringIO) as stdout, patch('sys.stderr', new_callable=io.StringIO):
                main()
        self.assertTrue(stdout.getvalue().startswith('# Licensed'))

    def test_main_missing_input_file(self):
        """Test main function with an input file that does not exist."""
        missing = os.path.join(self.out_dir, 'missing.json')
        out_path = os.path.join(self.out_dir, 'dap.py')
        with patch('argparse.ArgumentParser.parse_args', return_value=make_args(input=missing, out=out_path)):
            with patch('sys.stderr', new_callable=io.StringIO) as stderr:
                with self.assertRaises(SystemExit) as context:
                    main()
        self.assertEqual(context.exception.code, 1)
        self.assertTrue(stderr.getvalue().startswith('Error: '))
        self.assertFalse(os.path.exists(out_path))

    def test_main_invalid_schema(self):
        """Test main function with a schema that cannot be converted."""
        schema_path = os.path.join(self.out_dir, 'schema.json')
        with open(schema_path, 'w', encoding='utf-8') as file:
            file.write('{"definitions": {"Foo": {"type": "object", "properties": {"a": {"$ref": 123}}}}}')
        with patch('argparse.ArgumentParser.parse_args', return_value=make_args(input=schema_path)):
            with patch('sys.stdout', new_callable=io.StringIO) as stdout, patch('sys.stderr', new_callable=io.StringIO) as stderr:
                with self.assertRaises(SystemExit) as context:
                    main()
        self.assertEqual(context.exception.code, 1)
        self.assertIn("want ref to start with '#/definitions/'", stderr.getvalue())
        self.assertEqual(stdout.getvalue(), '')

    def test_main_no_input(self):
        """Test main function without an input file."""
        with patch('argparse.ArgumentParser.parse_args', return_value=make_args(input=None)):
            with patch('sys.stderr', new_callable=io.StringIO):
                with self.assertRaises(SystemExit) as context:
                    main()
        self.assertEqual(context.exception.code, 2)

    def test_main_version(self):
        """Test main function with --version."""
        with patch('argparse.ArgumentParser.parse_args', return_value=make_args(input=None, version=True)):
            with patch('sys.stdout', new_callable=io.StringIO) as stdout:
                main()
        self.assertEqual(stdout.getvalue().strip(), 'dapgen 0.1.0')

    def test_lazy_loader(self):
        """Test the package level functions."""
        code = dapgen.convert_dap_schema_dict_to_python({'definitions': {'PingRequest': {'type': 'object'}}}, license_header='')
        self.assertIn('Message.register(PingRequest)', code)
        self.assertEqual(dapgen.keys_in_order('{"b": 1, "a": 2}'), ['b', 'a'])
        self.assertIs(dapgen.format_python_source, dapgen.formatter.format_python_source)


if __name__ == '__main__':
    unittest.main()
