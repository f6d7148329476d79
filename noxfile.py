"""
Nox configuration for mailtri

Unified development command entry point, running in the current
environment
"""

import nox

# Disable virtual environment, use current environment
nox.options.sessions = ["eml_tests", "tests", "format"]

TESTS_DIR = "mailtri/intake/tests"


@nox.session(venv_backend="none")
def eml_tests(session):
    """
    Run EML email intake tests
    """
    session.log("🧪 Running EML email intake tests")

    session.run(
        "python", "-m", "pytest",
        f"{TESTS_DIR}/functional/test_eml_parsing.py",
        "-v", "-s"
    )


@nox.session(venv_backend="none")
def tests(session):
    """
    Run all tests
    """
    session.log("🧪 Running all tests")

    session.run("python", "-m", "pytest", f"{TESTS_DIR}/", "-v")


@nox.session(venv_backend="none")
def unit_tests(session):
    """
    Run unit tests
    """
    session.log("🧪 Running unit tests")

    session.run("python", "-m", "pytest", f"{TESTS_DIR}/unit/", "-v")


@nox.session(venv_backend="none")
def functional_tests(session):
    """
    Run functional tests
    """
    session.log("🧪 Running functional tests")

    session.run("python", "-m", "pytest", f"{TESTS_DIR}/functional/", "-v")


@nox.session(venv_backend="none")
def legacy_tests(session):
    """
    Run all tests with the standard library backend only
    """
    session.log("🧪 Running tests against the legacy MIME backend")

    session.run(
        "python", "-m", "pytest",
        f"{TESTS_DIR}/",
        "-v", "-k", "not flanker"
    )


@nox.session(venv_backend="none")
def coverage(session):
    """
    Generate test coverage report
    """
    session.log("📊 Generating test coverage report")

    session.run(
        "python", "-m", "pytest",
        f"{TESTS_DIR}/",
        "--cov=mailtri",
        "--cov-report=html",
        "--cov-report=term-missing"
    )


@nox.session(venv_backend="none")
def format(session):
    """
    Auto format code
    """
    session.log("🔧 Auto formatting code")

    try:
        session.run("black", "mailtri/")
        session.run("isort", "mailtri/")
        session.log("✅ Code formatting completed")
    except Exception as e:
        session.log(f"⚠️  Formatting failed: {e}")
        session.log("Please ensure installed: pip install black isort")


@nox.session(venv_backend="none")
def lint(session):
    """
    Code quality check
    """
    session.log("🔍 Running code quality check")

    try:
        session.run("black", "mailtri/", "--check", "--diff")
        session.run("isort", "mailtri/", "--check-only", "--diff")
        session.log("✅ Code quality check passed")
    except Exception as e:
        session.log(f"⚠️  Code quality check failed: {e}")


@nox.session(venv_backend="none")
def sample(session):
    """
    Run the CLI over the bundled EML samples
    """
    path = (
        session.posargs[0] if session.posargs
        else f"{TESTS_DIR}/fixtures/eml_samples"
    )
    session.log(f"📨 Parsing {path}")

    session.run("python", "-m", "mailtri", path)


# Convenient aliases
@nox.session(venv_backend="none")
def test(session):
    """Alias for tests"""
    tests(session)


@nox.session(venv_backend="none")
def cov(session):
    """Alias for coverage"""
    coverage(session)
