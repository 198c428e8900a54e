"""

Command line utility to generate Python data classes from the Debug Adapter Protocol JSON schema.

"""

import argparse
import logging
import sys
from dapgen import _version


def create_parser():
    """Create the argument parser."""
    parser = argparse.ArgumentParser(description='Generate Python data classes from a Debug Adapter Protocol JSON schema (debugProtocol.json).')
    parser.add_argument('input', nargs='?', help='Path to the schema document.')
    parser.add_argument('--out', help='Write the generated module to this file instead of standard output.')
    parser.add_argument('--no-header', dest='no_header', action='store_true', help='Omit the license header from the generated module.')
    parser.add_argument('--verbose', '-v', action='store_true', help='Log progress to standard error.')
    parser.add_argument('--version', action='store_true', help='Print the version of dapgen.')
    return parser


def main():
    """Main function for the command line utility."""
    parser = create_parser()
    args = parser.parse_args()

    if 'version' in args and args.version:
        print(f'dapgen {_version.version}')
        return

    if args.input is None:
        parser.error('the following arguments are required: input')

    logging.basicConfig(
        level=logging.DEBUG if getattr(args, 'verbose', False) else logging.WARNING,
        format='%(levelname)s %(name)s: %(message)s',
        stream=sys.stderr)

    try:
        # imported here so that --version and usage errors stay fast
        from dapgen.constants import LICENSE_HEADER
        from dapgen.daptopython import convert_dap_schema_to_python
        license_header = '' if getattr(args, 'no_header', False) else LICENSE_HEADER
        python_code = convert_dap_schema_to_python(args.input, getattr(args, 'out', None), license_header=license_header)
        if not getattr(args, 'out', None):
            sys.stdout.write(python_code)
    except Exception as e:  # pylint: disable=broad-except
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
