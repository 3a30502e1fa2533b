#!/usr/bin/env python3
"""
Test runner for the ExoMiner demo.

Usage:
    python run_tests.py [suite] [options]

Test Suites:
    unit        - Schema, generator, accumulator and helper tests
    integration - API tests through the FastAPI test client
    all         - Run all tests (default)

Options:
    --verbose   - Detailed output
    --coverage  - Generate coverage report
    --html      - Generate HTML coverage report
    --quick     - Skip slow tests
"""

import sys
import subprocess
import argparse
import time
from pathlib import Path


def print_header(title):
    """Print formatted section header."""
    print(f"\n{'='*60}")
    print(f"🧪 {title}")
    print('='*60)


def print_success(message):
    print(f"✅ {message}")


def print_error(message):
    print(f"❌ {message}")


def print_info(message):
    print(f"ℹ️  {message}")


class TestRunner:
    """Runs pytest with the marker selection of a suite."""

    SUITE_MARKERS = {
        'unit': 'unit',
        'integration': 'integration',
        'all': None,
    }

    def __init__(self):
        self.project_root = Path(__file__).parent

    def check_dependencies(self):
        """Check that pytest is importable; report optional plugins."""
        try:
            __import__('pytest')
        except ImportError:
            print_error("Missing required package: pytest")
            print_info("Install with: pip install -e .[test]")
            return False

        try:
            __import__('pytest_cov')
        except ImportError:
            print_info("pytest-cov not available, coverage reports disabled")

        return True

    def build_command(self, suite, verbose=False, coverage=False, html=False, quick=False):
        cmd = [sys.executable, '-m', 'pytest', 'tests/']

        markers = []
        if self.SUITE_MARKERS[suite]:
            markers.append(self.SUITE_MARKERS[suite])
        if quick:
            markers.append('not slow')
        if markers:
            cmd.extend(['-m', ' and '.join(markers)])

        if verbose:
            cmd.append('-v')

        if coverage:
            cmd.extend(['--cov=exominer_demo', '--cov-report=term-missing'])
            if html:
                cmd.append('--cov-report=html:reports/coverage')

        return cmd

    def _run_command(self, cmd):
        """Run a command and return success status."""
        try:
            print_info(f"Running: {' '.join(cmd)}")
            subprocess.run(cmd, cwd=self.project_root, check=True)
            return True
        except subprocess.CalledProcessError as e:
            print_error(f"Command failed with exit code {e.returncode}")
            return False

    def run_test_suite(self, suite, **kwargs):
        """Run specified test suite."""
        if suite not in self.SUITE_MARKERS:
            print_error(f"Unknown test suite: {suite}")
            return False

        (self.project_root / 'reports').mkdir(exist_ok=True)
        print_header(f"{suite.capitalize()} Tests")

        start_time = time.time()
        success = self._run_command(self.build_command(suite, **kwargs))
        duration = time.time() - start_time

        print_header("Test Summary")
        if success:
            print_success(f"Test suite '{suite}' completed successfully!")
        else:
            print_error(f"Test suite '{suite}' failed!")
        print_info(f"Total time: {duration:.2f} seconds")

        return success


def main():
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="Test runner for the ExoMiner demo",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    python run_tests.py unit --verbose
    python run_tests.py all --coverage --html
    python run_tests.py integration --quick
        """
    )

    parser.add_argument('suite', nargs='?', default='all',
                        choices=list(TestRunner.SUITE_MARKERS),
                        help='Test suite to run (default: all)')
    parser.add_argument('--verbose', '-v', action='store_true',
                        help='Enable verbose output')
    parser.add_argument('--coverage', action='store_true',
                        help='Generate coverage report')
    parser.add_argument('--html', action='store_true',
                        help='Generate HTML coverage report')
    parser.add_argument('--quick', '-q', action='store_true',
                        help='Skip slow tests')

    args = parser.parse_args()

    runner = TestRunner()
    if not runner.check_dependencies():
        sys.exit(1)

    success = runner.run_test_suite(
        args.suite,
        verbose=args.verbose,
        coverage=args.coverage,
        html=args.html,
        quick=args.quick
    )

    sys.exit(0 if success else 1)


if __name__ == "__main__":
    main()
