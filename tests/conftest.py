"""Shared pytest fixtures for unit, integration, and e2e tests.

This module provides:
- Temporary directory fixtures for file I/O testing
- Sample calendar templates and vaccine records
- Configuration fixtures for parameter testing
"""

from __future__ import annotations

import logging
import tempfile
from pathlib import Path
from typing import Any, Dict, Generator, List

import pytest
import yaml

from vaccine_schedule import data_models
from vaccine_schedule.enums import RecordStatus

BIRTH = 1704067200000  # 2024-01-01T00:00:00Z
DAY_MS = 86_400_000


@pytest.fixture
def tmp_test_dir() -> Generator[Path, None, None]:
    """Provide a temporary directory that's cleaned up after each test.

    Real-world significance:
    - Isolates file I/O tests from each other
    - Prevents logs and result files from polluting the file system

    Yields
    ------
    Path
        Absolute path to temporary directory (automatically deleted after test)
    """
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture(autouse=True)
def restore_root_logging() -> Generator[None, None, None]:
    """Close file handlers installed by cli.configure_logging during a test.

    Real-world significance:
    - configure_logging replaces the root handlers for the whole process
    - Later tests must not keep writing into an earlier test's log file
    """
    root_logger = logging.getLogger()
    level = root_logger.level
    before = list(root_logger.handlers)
    yield
    for handler in list(root_logger.handlers):
        if isinstance(handler, logging.FileHandler) and handler not in before:
            root_logger.removeHandler(handler)
            handler.close()
    root_logger.setLevel(level)


@pytest.fixture
def birth() -> int:
    """Birth instant of the sample child (2024-01-01, epoch ms)."""
    return BIRTH


@pytest.fixture
def sample_templates() -> List[data_models.DoseTemplate]:
    """Provide a small calendar: BCG and Hepatitis B at birth, Pentavalent at 2 months.

    Real-world significance:
    - Covers a bucket with several doses and a later single-dose bucket
    - Matches the payload built by tests.fixtures.sample_input.create_calendar_items
    """
    return [
        data_models.DoseTemplate(id="t-bcg", name="BCG", target_age_months=0, notes="Single dose"),
        data_models.DoseTemplate(
            id="t-hepb", name="Hepatitis B", target_age_months=0, notes="Birth dose"
        ),
        data_models.DoseTemplate(
            id="t-penta-1", name="Pentavalent", target_age_months=2, notes="1st dose"
        ),
    ]


@pytest.fixture
def sample_records(birth: int) -> List[data_models.VaccineRecord]:
    """Provide the sample child's records: BCG on day 4 and an undated custom dose."""
    return [
        data_models.VaccineRecord(
            id="r-bcg",
            name="bcg",
            status=RecordStatus.APPLIED,
            scheduled_date=birth + 4 * DAY_MS,
            applied_date=birth + 4 * DAY_MS,
        ),
        data_models.VaccineRecord(id="r-custom", name="Travel vaccine"),
    ]


@pytest.fixture
def default_config() -> Dict[str, Any]:
    """Provide a minimal engine configuration for testing.

    Real-world significance:
    - Tests can assume this config structure is valid
    - Matches the production config/parameters.yaml schema

    Returns
    -------
    Dict[str, Any]
        Configuration dict with all standard sections
    """
    return {
        "language": "en",
        "reconciliation": {"tolerance_months": 1},
        "registration": {"name_match_threshold": 80},
        "logging": {"level": "INFO"},
    }


@pytest.fixture
def config_file(tmp_test_dir: Path, default_config: Dict[str, Any]) -> Path:
    """Create a temporary config file with default configuration.

    Parameters
    ----------
    tmp_test_dir : Path
        Root temporary directory
    default_config : Dict[str, Any]
        Default configuration dict

    Returns
    -------
    Path
        Path to created YAML config file
    """
    config_path = tmp_test_dir / "parameters.yaml"
    with open(config_path, "w") as f:
        yaml.dump(default_config, f)
    return config_path
