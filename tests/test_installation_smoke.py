"""
Smoke test to verify package installation and critical dependencies.

This test ensures:
1. The pyrecurrent package can be imported
2. Critical dependencies are installed
3. Core functionality is accessible
"""

import pytest
import sys


@pytest.mark.smoke
def test_pyrecurrent_imports():
    """Verify pyrecurrent package can be imported."""
    import pyrecurrent
    assert hasattr(pyrecurrent, '__version__')
    assert pyrecurrent.__version__ is not None


@pytest.mark.smoke
def test_python_version():
    """Verify Python version meets minimum requirements."""
    assert sys.version_info >= (3, 9), (
        f"Python 3.9+ is required (found {sys.version_info.major}.{sys.version_info.minor})."
    )


@pytest.mark.smoke
def test_core_modules_importable():
    """Verify key classes and functions are exposed at package level."""
    import pyrecurrent

    for name in ['recurrent_event',
                 'recurrent_event_table',
                 'survey_site',
                 'classify_species',
                 'assemble',
                 'setup_logging',
                 'ValidationError',
                 'ConfigurationError',
                 'JoinError',
                 'DegenerateIntervalWarning']:
        assert hasattr(pyrecurrent, name), name


@pytest.mark.smoke
def test_critical_dependencies():
    """Verify all critical dependencies are importable."""
    critical_deps = [
        'numpy',
        'pandas',
        'tqdm',
    ]

    missing = []
    for dep in critical_deps:
        try:
            __import__(dep)
        except ImportError:
            missing.append(dep)

    assert not missing, f"Missing critical dependencies: {', '.join(missing)}"


@pytest.mark.smoke
def test_setup_logging_writes_file(tmp_path):
    """Verify the package logger writes to a log file when asked."""
    import logging
    from pyrecurrent import setup_logging

    log_file = tmp_path / 'run.log'
    logger = setup_logging(level = logging.DEBUG, log_file = str(log_file), capture_warnings = False)
    logger.info("survey table built")
    for handler in logger.handlers:
        handler.close()
    assert 'survey table built' in log_file.read_text()
    logger.handlers = []


@pytest.mark.smoke
def test_setup_logging_leaves_warning_capture_alone(monkeypatch):
    """Verify setup_logging never disables warning capture or drops existing handlers."""
    import logging
    from pyrecurrent import setup_logging

    calls = []
    monkeypatch.setattr(logging, 'captureWarnings', calls.append)
    warn_logger = logging.getLogger('py.warnings')
    existing = logging.NullHandler()
    warn_logger.addHandler(existing)

    logger = setup_logging(capture_warnings = False)
    try:
        assert calls == []
        assert existing in warn_logger.handlers
        assert not any(handler in warn_logger.handlers for handler in logger.handlers)

        logger = setup_logging(capture_warnings = True)
        assert calls == [True]
        assert existing in warn_logger.handlers
        assert all(handler in warn_logger.handlers for handler in logger.handlers)
    finally:
        for handler in logger.handlers:
            warn_logger.removeHandler(handler)
        warn_logger.removeHandler(existing)
        logger.handlers = []


if __name__ == '__main__':
    # Allow running directly for quick verification
    pytest.main([__file__, '-v'])
